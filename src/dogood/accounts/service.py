"""Account profile business logic."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import func, select

from dogood.db.models import Account, Registration
from dogood.enums import AccountKind
from dogood.errors import NotFound, ValidationFailed, account_id_of, enforce
from dogood.policy.actor import Actor
from dogood.policy.evaluator import Operation, can_perform
from dogood.store.sql import SqlStore

logger = structlog.get_logger()

_NOT_NULL_FIELDS = frozenset({"service_hours_goal"})


async def get_own_account(store: SqlStore, actor: Actor) -> Account:
    account = await store.get(Account, account_id_of(actor))
    if account is None:
        msg = "Account not found"
        raise NotFound(msg)
    return account


async def update_profile(store: SqlStore, actor: Actor, fields: dict[str, Any]) -> Account:
    """
    Update the caller's own profile.

    ``fields`` holds only the fields the caller set. Each must be writable for
    the caller's account kind; ``verified`` never is.
    """
    for field in sorted(_NOT_NULL_FIELDS & fields.keys()):
        if fields[field] is None:
            raise ValidationFailed(field, f"'{field}' cannot be null")

    async with store.transaction():
        if actor.id is None:
            enforce(can_perform(actor, Operation.UPDATE_ACCOUNT, None, fields=fields.keys()))
        account = await get_own_account(store, actor)
        enforce(can_perform(actor, Operation.UPDATE_ACCOUNT, account, fields=fields.keys()))
        if not fields:
            return account
        account = await store.update(
            Account,
            account.id,
            {**fields, "updated_at": datetime.now(timezone.utc)},
        )

    logger.info("profile_updated", account_id=account.id, fields=sorted(fields))
    return account


async def recompute_total_hours(store: SqlStore, account_id: int) -> Account:
    """
    Set total_hours_logged to the sum of hours_completed over the account's
    registrations. The sum is computed by the database inside the caller's
    transaction, so it can never drift from the rows it summarizes.
    """
    total = (
        select(func.coalesce(func.sum(Registration.hours_completed), 0))
        .where(Registration.user_id == account_id)
        .scalar_subquery()
    )
    return await store.update(Account, account_id, {"total_hours_logged": total})


async def set_verification(store: SqlStore, account_id: int, verified: bool) -> Account:
    """
    Record an external verifier's decision on an organization.

    This is the only path that writes ``verified``; it is not reachable with
    account credentials.
    """
    async with store.transaction():
        account = await store.get(Account, account_id)
        if account is None:
            msg = "Account not found"
            raise NotFound(msg)
        if account.kind != AccountKind.ORGANIZATION:
            msg = "Only organizations can be verified"
            raise ValidationFailed("verified", msg)
        account = await store.update(
            Account,
            account_id,
            {"verified": verified, "updated_at": datetime.now(timezone.utc)},
            precondition=(Account.kind == AccountKind.ORGANIZATION.value,),
        )

    logger.info("organization_verification_set", account_id=account_id, verified=verified)
    return account
