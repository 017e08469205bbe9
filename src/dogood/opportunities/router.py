"""Opportunity endpoints under /api/v1/opportunities."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from dogood.auth.dependencies import get_current_actor
from dogood.dependencies import get_store
from dogood.enums import OpportunityCategory
from dogood.opportunities.schemas import (
    HoursBucket,
    OpportunityCreateRequest,
    OpportunityResponse,
    OpportunityUpdateRequest,
    opportunity_response,
)
from dogood.opportunities.service import (
    create_opportunity,
    delete_opportunity,
    get_opportunity,
    list_opportunities,
    list_own_opportunities,
    update_opportunity,
)
from dogood.policy.actor import Actor
from dogood.store.retry import with_retries
from dogood.store.sql import SqlStore

router = APIRouter(prefix="/api/v1/opportunities", tags=["Opportunities"])


@router.get("", response_model=list[OpportunityResponse])
async def browse(
    category: OpportunityCategory | None = None,
    hours: HoursBucket | None = None,
    city: str | None = Query(None, max_length=128),
    q: str | None = Query(None, max_length=200),
    limit: int = Query(100, ge=1, le=500),
    store: SqlStore = Depends(get_store),
) -> list[OpportunityResponse]:
    """Active opportunities, filterable by category, hours, city and free text."""
    opportunities = await with_retries(
        lambda: list_opportunities(
            store,
            category=category.value if category else None,
            hours=hours,
            city=city,
            q=q,
            limit=limit,
        )
    )
    return [opportunity_response(o) for o in opportunities]


@router.get("/mine", response_model=list[OpportunityResponse])
async def mine(
    actor: Actor = Depends(get_current_actor),
    store: SqlStore = Depends(get_store),
) -> list[OpportunityResponse]:
    """The calling organization's opportunities in any status."""
    opportunities = await list_own_opportunities(store, actor)
    return [opportunity_response(o) for o in opportunities]


@router.get("/{opportunity_id}", response_model=OpportunityResponse)
async def detail(
    opportunity_id: int,
    actor: Actor = Depends(get_current_actor),
    store: SqlStore = Depends(get_store),
) -> OpportunityResponse:
    opportunity = await get_opportunity(store, actor, opportunity_id)
    return opportunity_response(opportunity)


@router.post("", response_model=OpportunityResponse, status_code=201)
async def create(
    body: OpportunityCreateRequest,
    actor: Actor = Depends(get_current_actor),
    store: SqlStore = Depends(get_store),
) -> OpportunityResponse:
    """Post a new opportunity (verified organizations only)."""
    opportunity = await with_retries(lambda: create_opportunity(store, actor, body))
    return opportunity_response(opportunity)


@router.patch("/{opportunity_id}", response_model=OpportunityResponse)
async def update(
    opportunity_id: int,
    body: OpportunityUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    store: SqlStore = Depends(get_store),
) -> OpportunityResponse:
    fields = body.model_dump(exclude_unset=True)
    opportunity = await with_retries(lambda: update_opportunity(store, actor, opportunity_id, fields))
    return opportunity_response(opportunity)


@router.delete("/{opportunity_id}", status_code=204)
async def delete(
    opportunity_id: int,
    actor: Actor = Depends(get_current_actor),
    store: SqlStore = Depends(get_store),
) -> Response:
    await with_retries(lambda: delete_opportunity(store, actor, opportunity_id))
    return Response(status_code=204)
