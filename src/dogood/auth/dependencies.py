"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from dogood.auth.jwt import verify_token
from dogood.auth.service import get_account_by_id
from dogood.dependencies import get_store
from dogood.errors import AuthenticationRequired
from dogood.policy.actor import Actor
from dogood.store.sql import SqlStore

_bearer = HTTPBearer(auto_error=False)


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    store: SqlStore = Depends(get_store),
) -> Actor:
    """
    Resolve the caller into an explicit Actor.

    No token means an anonymous actor; the access policy decides what that
    actor may do. A token that is present but invalid is rejected with 401.
    The account is re-read so a verification granted after login is seen.
    """
    if credentials is None:
        return Actor.anonymous()

    try:
        payload = verify_token(credentials.credentials, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise AuthenticationRequired(str(e)) from e

    account = await get_account_by_id(store, int(payload["sub"]))
    if account is None:
        msg = "Account not found"
        raise AuthenticationRequired(msg)
    return Actor.from_account(account)


async def require_authenticated(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Same as get_current_actor but rejects anonymous callers."""
    if not actor.is_authenticated:
        raise AuthenticationRequired()
    return actor
