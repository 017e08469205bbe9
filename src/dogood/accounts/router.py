"""Account endpoints and the external verifier endpoint."""

from __future__ import annotations

import secrets

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException

from dogood.accounts.schemas import AccountResponse, AccountUpdateRequest, VerificationRequest
from dogood.accounts.service import get_own_account, set_verification, update_profile
from dogood.auth.dependencies import get_current_actor, require_authenticated
from dogood.config import get_settings
from dogood.dependencies import get_store
from dogood.policy.actor import Actor
from dogood.store.retry import with_retries
from dogood.store.sql import SqlStore

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1", tags=["Accounts"])


@router.get("/accounts/me", response_model=AccountResponse)
async def get_my_account(
    actor: Actor = Depends(require_authenticated),
    store: SqlStore = Depends(get_store),
) -> AccountResponse:
    """Get own full profile."""
    account = await get_own_account(store, actor)
    return AccountResponse.model_validate(account)


@router.patch("/accounts/me", response_model=AccountResponse)
async def update_my_account(
    body: AccountUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    store: SqlStore = Depends(get_store),
) -> AccountResponse:
    """Update the profile fields writable for the caller's account kind."""
    fields = body.model_dump(exclude_unset=True)
    account = await with_retries(lambda: update_profile(store, actor, fields))
    return AccountResponse.model_validate(account)


def _require_verifier(x_verifier_key: str | None, account_id: int) -> None:
    expected = get_settings().verifier_api_key
    if not expected:
        raise HTTPException(status_code=403, detail="Verification is disabled")
    if not x_verifier_key or not secrets.compare_digest(x_verifier_key, expected):
        logger.warning("verifier_key_rejected", account_id=account_id)
        raise HTTPException(status_code=403, detail="Invalid verifier key")


@router.post("/admin/organizations/{account_id}/verification", response_model=AccountResponse)
async def verify_organization(
    account_id: int,
    body: VerificationRequest,
    x_verifier_key: str | None = Header(default=None),
    store: SqlStore = Depends(get_store),
) -> AccountResponse:
    """External verifier grants or revokes an organization's verification."""
    _require_verifier(x_verifier_key, account_id)
    account = await with_retries(lambda: set_verification(store, account_id, body.verified))
    return AccountResponse.model_validate(account)
