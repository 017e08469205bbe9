"""Registration endpoints: sign-ups and hour logging."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dogood.auth.dependencies import get_current_actor
from dogood.dependencies import get_store
from dogood.policy.actor import Actor
from dogood.registrations.schemas import HoursUpdateRequest, RegistrationResponse, registration_response
from dogood.registrations.service import list_own_registrations, log_hours, register_for_opportunity
from dogood.store.retry import with_retries
from dogood.store.sql import SqlStore

router = APIRouter(prefix="/api/v1", tags=["Registrations"])


@router.post(
    "/opportunities/{opportunity_id}/registrations",
    response_model=RegistrationResponse,
    status_code=201,
)
async def register(
    opportunity_id: int,
    actor: Actor = Depends(get_current_actor),
    store: SqlStore = Depends(get_store),
) -> RegistrationResponse:
    """Register the calling student for an opportunity."""
    registration = await with_retries(lambda: register_for_opportunity(store, actor, opportunity_id))
    return registration_response(registration)


@router.get("/registrations/mine", response_model=list[RegistrationResponse])
async def my_registrations(
    actor: Actor = Depends(get_current_actor),
    store: SqlStore = Depends(get_store),
) -> list[RegistrationResponse]:
    """The calling student's registrations."""
    registrations = await list_own_registrations(store, actor)
    return [registration_response(r) for r in registrations]


@router.patch("/registrations/{registration_id}", response_model=RegistrationResponse)
async def update_hours(
    registration_id: int,
    body: HoursUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    store: SqlStore = Depends(get_store),
) -> RegistrationResponse:
    """Log hours completed on one of the caller's registrations."""
    registration = await with_retries(lambda: log_hours(store, actor, registration_id, body.hours_completed))
    return registration_response(registration)
