"""Request/response schemas for registration endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from dogood.db.models import Registration
from dogood.opportunities.schemas import OpportunityResponse, opportunity_response


class HoursUpdateRequest(BaseModel):
    """Hours completed on a registration. Range is checked against the opportunity."""

    model_config = ConfigDict(extra="forbid")

    hours_completed: int


class RegistrationResponse(BaseModel):
    id: int
    user_id: int
    opportunity_id: int
    registered_at: datetime
    status: str
    hours_completed: int
    opportunity: OpportunityResponse


def registration_response(registration: Registration) -> RegistrationResponse:
    return RegistrationResponse(
        id=registration.id,
        user_id=registration.user_id,
        opportunity_id=registration.opportunity_id,
        registered_at=registration.registered_at,
        status=registration.status,
        hours_completed=registration.hours_completed,
        opportunity=opportunity_response(registration.opportunity),
    )
