"""Request/response schemas for account endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from dogood.enums import AccountKind


class AccountResponse(BaseModel):
    """Own account, including private fields."""

    id: int
    email: str
    kind: AccountKind
    verified: bool = False
    full_name: str | None = None
    organization_name: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    service_hours_goal: int | None = None
    total_hours_logged: int | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class AccountUpdateRequest(BaseModel):
    """Profile update.

    Only named fields are accepted; anything else (``verified``, ``kind``,
    ``total_hours_logged``, ...) is rejected. Which of these the caller may
    actually write depends on its account kind.
    """

    model_config = ConfigDict(extra="forbid")

    full_name: str | None = Field(None, min_length=1, max_length=128)
    service_hours_goal: int | None = Field(None, ge=0, le=10_000)
    organization_name: str | None = Field(None, min_length=1, max_length=128)
    phone: str | None = Field(None, max_length=32)
    address: str | None = Field(None, max_length=256)
    city: str | None = Field(None, max_length=128)
    state: str | None = Field(None, max_length=32)
    zip_code: str | None = Field(None, max_length=16)


class VerificationRequest(BaseModel):
    """External verifier decision for an organization."""

    model_config = ConfigDict(extra="forbid")

    verified: bool
