"""Authentication endpoints under /api/v1/auth."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException

from dogood.accounts.schemas import AccountResponse
from dogood.auth.jwt import create_access_token
from dogood.auth.password import PasswordStrengthError
from dogood.auth.schemas import (
    LoginRequest,
    OrganizationRegisterRequest,
    StudentRegisterRequest,
    TokenResponse,
)
from dogood.auth.service import (
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    authenticate,
    register_organization,
    register_student,
)
from dogood.config import get_settings
from dogood.db.models import Account
from dogood.dependencies import get_store
from dogood.store.retry import with_retries
from dogood.store.sql import SqlStore

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


def _issue_token(account: Account) -> TokenResponse:
    settings = get_settings()
    return TokenResponse(
        access_token=create_access_token(account.id, account.kind),
        token_type="bearer",
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        account=AccountResponse.model_validate(account),
    )


@router.post("/register/student", response_model=TokenResponse, status_code=201)
async def register_student_endpoint(
    body: StudentRegisterRequest,
    store: SqlStore = Depends(get_store),
) -> TokenResponse:
    """Sign up as a student."""
    try:
        account = await with_retries(
            lambda: register_student(
                store,
                email=body.email,
                password=body.password,
                full_name=body.full_name,
                service_hours_goal=body.service_hours_goal,
            )
        )
    except PasswordStrengthError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return _issue_token(account)


@router.post("/register/organization", response_model=TokenResponse, status_code=201)
async def register_organization_endpoint(
    body: OrganizationRegisterRequest,
    store: SqlStore = Depends(get_store),
) -> TokenResponse:
    """Sign up as an organization (starts unverified)."""
    try:
        account = await with_retries(
            lambda: register_organization(
                store,
                email=body.email,
                password=body.password,
                organization_name=body.organization_name,
                contact_person=body.contact_person,
                phone=body.phone,
                address=body.address,
                city=body.city,
                state=body.state,
                zip_code=body.zip_code,
            )
        )
    except PasswordStrengthError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return _issue_token(account)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    store: SqlStore = Depends(get_store),
) -> TokenResponse:
    """Login with email + password."""
    try:
        account = await authenticate(store, body.email, body.password)
    except InvalidCredentialsError as e:
        logger.info("login_failed")
        raise HTTPException(status_code=401, detail=str(e)) from e
    return _issue_token(account)
