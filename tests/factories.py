"""Test data helpers: committed rows written in their own sessions."""

from __future__ import annotations

import itertools
from datetime import date, datetime, timedelta, timezone
from functools import lru_cache
from typing import Any

from dogood.auth.jwt import create_access_token
from dogood.auth.password import hash_password
from dogood.database import get_session_factory
from dogood.db.models import Account, Opportunity
from dogood.enums import AccountKind, OpportunityCategory, OpportunityStatus
from dogood.policy.actor import Actor
from dogood.store.sql import SqlStore

TEST_PASSWORD = "volunteer123"
VERIFIER_KEY = "test-verifier-key"

_sequence = itertools.count(1)


@lru_cache
def _test_password_hash() -> str:
    """Hash once per run; argon2 is slow."""
    return hash_password(TEST_PASSWORD)


async def create_account(
    kind: AccountKind = AccountKind.STUDENT,
    *,
    email: str | None = None,
    verified: bool = False,
    **profile: Any,
) -> Account:
    now = datetime.now(timezone.utc)
    fields: dict[str, Any] = {
        "email": email or f"{kind.value}{next(_sequence)}@example.com",
        "password_hash": _test_password_hash(),
        "kind": kind.value,
        "verified": verified and kind is AccountKind.ORGANIZATION,
        "created_at": now,
        "updated_at": now,
    }
    if kind is AccountKind.ORGANIZATION:
        fields["organization_name"] = "Community Food Bank"
        fields["full_name"] = "Dana Reyes"
    else:
        fields["full_name"] = "Sam Student"
    fields.update(profile)

    async with get_session_factory()() as session:
        store = SqlStore(session)
        async with store.transaction():
            return await store.create(Account, fields)


async def create_student(**profile: Any) -> Account:
    return await create_account(AccountKind.STUDENT, **profile)


async def create_organization(*, verified: bool = True, **profile: Any) -> Account:
    return await create_account(AccountKind.ORGANIZATION, verified=verified, **profile)


async def create_opportunity_row(organization: Account, **overrides: Any) -> Opportunity:
    """Insert an opportunity directly, bypassing the access policy."""
    now = datetime.now(timezone.utc)
    fields: dict[str, Any] = {
        "organization_id": organization.id,
        "title": "Food Drive",
        "description": "Sort and pack donated food for local families",
        "category": OpportunityCategory.HEALTH.value,
        "hours_needed": 5,
        "max_volunteers": 10,
        "current_volunteers": 0,
        "status": OpportunityStatus.ACTIVE.value,
        "date": date.today() + timedelta(days=7),
        "city": "Springfield",
        "state": "IL",
        "created_at": now,
        "updated_at": now,
    }
    fields.update(overrides)

    async with get_session_factory()() as session:
        store = SqlStore(session)
        async with store.transaction():
            return await store.create(Opportunity, fields)


async def fetch(model: type, entity_id: int) -> Any:  # noqa: ANN401
    """Committed state of a row, read in a fresh session."""
    async with get_session_factory()() as session:
        return await SqlStore(session).get(model, entity_id)


def actor_for(account: Account) -> Actor:
    return Actor.from_account(account)


def auth_headers(account: Account) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(account.id, account.kind)}"}
