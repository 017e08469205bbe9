"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from dogood.accounts.schemas import AccountResponse


class _Credentials(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()


class StudentRegisterRequest(_Credentials):
    """Student sign-up."""

    full_name: str = Field(..., min_length=1, max_length=128)
    service_hours_goal: int | None = Field(None, ge=0, le=10_000)


class OrganizationRegisterRequest(_Credentials):
    """Organization sign-up. Organizations start unverified."""

    organization_name: str = Field(..., min_length=1, max_length=128)
    contact_person: str = Field(..., min_length=1, max_length=128)
    phone: str | None = Field(None, max_length=32)
    address: str | None = Field(None, max_length=256)
    city: str | None = Field(None, max_length=128)
    state: str | None = Field(None, max_length=32)
    zip_code: str | None = Field(None, max_length=16)


class LoginRequest(_Credentials):
    """Login with email + password."""


class TokenResponse(BaseModel):
    """Token response returned after successful auth."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = 3600
    account: AccountResponse
