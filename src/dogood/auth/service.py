"""
Authentication business logic.

Handles account sign-up for students and organizations and email + password
login.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import func

from dogood.auth.password import (
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)
from dogood.config import get_settings
from dogood.db.models import Account
from dogood.enums import AccountKind
from dogood.errors import ConflictFailed
from dogood.store.sql import SqlStore

logger = structlog.get_logger()


class EmailAlreadyRegisteredError(ValueError):
    """Raised when signing up with an email that already has an account."""


class InvalidCredentialsError(ValueError):
    """Raised when email or password do not match."""


# ---------------------------------------------------------------------------
# Account queries
# ---------------------------------------------------------------------------


async def get_account_by_id(store: SqlStore, account_id: int) -> Account | None:
    return await store.get(Account, account_id)


async def get_account_by_email(store: SqlStore, email: str) -> Account | None:
    accounts = await store.read(Account, func.lower(Account.email) == email.lower().strip(), limit=1)
    return accounts[0] if accounts else None


# ---------------------------------------------------------------------------
# Sign-up
# ---------------------------------------------------------------------------


async def _register_account(
    store: SqlStore,
    email: str,
    password: str,
    kind: AccountKind,
    profile: dict[str, Any],
) -> Account:
    validate_password_strength(password)

    async with store.transaction():
        if await get_account_by_email(store, email) is not None:
            msg = "Email already registered"
            raise EmailAlreadyRegisteredError(msg)

        now = datetime.now(timezone.utc)
        try:
            account = await store.create(
                Account,
                {
                    "email": email.lower().strip(),
                    "password_hash": hash_password(password),
                    "kind": kind.value,
                    "verified": False,
                    "created_at": now,
                    "updated_at": now,
                    **profile,
                },
            )
        except ConflictFailed as e:
            # Lost a race with a concurrent sign-up for the same email
            msg = "Email already registered"
            raise EmailAlreadyRegisteredError(msg) from e

    logger.info("account_created", account_id=account.id, kind=kind.value)
    return account


async def register_student(
    store: SqlStore,
    email: str,
    password: str,
    full_name: str,
    service_hours_goal: int | None = None,
) -> Account:
    """
    Register a new student account.

    Raises:
        PasswordStrengthError: If the password is too short or too long.
        EmailAlreadyRegisteredError: If the email already has an account.
    """
    settings = get_settings()
    goal = service_hours_goal if service_hours_goal is not None else settings.default_service_hours_goal
    return await _register_account(
        store,
        email,
        password,
        AccountKind.STUDENT,
        {"full_name": full_name, "service_hours_goal": goal, "total_hours_logged": 0},
    )


async def register_organization(
    store: SqlStore,
    email: str,
    password: str,
    organization_name: str,
    contact_person: str,
    phone: str | None = None,
    address: str | None = None,
    city: str | None = None,
    state: str | None = None,
    zip_code: str | None = None,
) -> Account:
    """
    Register a new organization account. It starts unverified and cannot post
    opportunities until an external verifier approves it.
    """
    return await _register_account(
        store,
        email,
        password,
        AccountKind.ORGANIZATION,
        {
            "full_name": contact_person,
            "organization_name": organization_name,
            "phone": phone,
            "address": address,
            "city": city,
            "state": state,
            "zip_code": zip_code,
        },
    )


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


async def authenticate(store: SqlStore, email: str, password: str) -> Account:
    """
    Authenticate with email + password.

    Raises:
        InvalidCredentialsError: If credentials are invalid.
    """
    account = await get_account_by_email(store, email)
    if account is None or not verify_password(password, account.password_hash):
        msg = "Invalid email or password"
        raise InvalidCredentialsError(msg)

    if check_needs_rehash(account.password_hash):
        async with store.transaction():
            account = await store.update(Account, account.id, {"password_hash": hash_password(password)})
        logger.info("password_rehashed", account_id=account.id)

    return account
