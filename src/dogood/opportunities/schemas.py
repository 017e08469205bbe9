"""Request/response schemas for opportunity endpoints."""

from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from dogood.db.models import Opportunity
from dogood.enums import OpportunityCategory, OpportunityStatus

HoursBucket = Literal["<2", "2-5", "5+"]


class OpportunityCreateRequest(BaseModel):
    """New opportunity. The owning organization is always the caller."""

    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    category: OpportunityCategory
    hours_needed: int = Field(..., gt=0, le=1000)
    max_volunteers: int = Field(..., gt=0, le=10_000)
    date: dt.date | None = None
    time: dt.time | None = None
    location: str | None = Field(None, max_length=256)
    city: str | None = Field(None, max_length=128)
    state: str | None = Field(None, max_length=32)
    zip_code: str | None = Field(None, max_length=16)
    requirements: str | None = Field(None, max_length=2000)


class OpportunityUpdateRequest(BaseModel):
    """Owner edits. ``current_volunteers`` and ``organization_id`` are not writable."""

    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    category: OpportunityCategory | None = None
    hours_needed: int | None = Field(None, gt=0, le=1000)
    max_volunteers: int | None = Field(None, gt=0, le=10_000)
    status: OpportunityStatus | None = None
    date: dt.date | None = None
    time: dt.time | None = None
    location: str | None = Field(None, max_length=256)
    city: str | None = Field(None, max_length=128)
    state: str | None = Field(None, max_length=32)
    zip_code: str | None = Field(None, max_length=16)
    requirements: str | None = Field(None, max_length=2000)


class OpportunityResponse(BaseModel):
    id: int
    organization_id: int
    organization_name: str
    organization_verified: bool
    title: str
    description: str
    category: str
    hours_needed: int
    max_volunteers: int
    current_volunteers: int
    spots_remaining: int
    status: str
    date: dt.date | None = None
    time: dt.time | None = None
    location: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    requirements: str | None = None
    created_at: dt.datetime | None = None


def opportunity_response(opportunity: Opportunity) -> OpportunityResponse:
    """Build an OpportunityResponse with the organization joined in."""
    organization = opportunity.organization
    return OpportunityResponse(
        id=opportunity.id,
        organization_id=opportunity.organization_id,
        organization_name=(organization.organization_name if organization else None) or "Unknown Organization",
        organization_verified=bool(organization and organization.verified),
        title=opportunity.title,
        description=opportunity.description,
        category=opportunity.category,
        hours_needed=opportunity.hours_needed,
        max_volunteers=opportunity.max_volunteers,
        current_volunteers=opportunity.current_volunteers,
        spots_remaining=max(0, opportunity.max_volunteers - opportunity.current_volunteers),
        status=opportunity.status,
        date=opportunity.date,
        time=opportunity.time,
        location=opportunity.location,
        city=opportunity.city,
        state=opportunity.state,
        zip_code=opportunity.zip_code,
        requirements=opportunity.requirements,
        created_at=opportunity.created_at,
    )
