"""Access policy for opportunities, registrations, bookmarks and profiles.

Rules (checked in order, the first failure decides the reason):
- Create opportunity: organization, verified, posting as itself
- Update/delete opportunity: the owning organization (verification is not re-checked)
- Read opportunity: anyone while active, the owner in any status
- Create registration: student, not already registered, opportunity active, a slot free
- Log hours: the registered student, 0 <= hours <= opportunity.hours_needed
- Save/unsave bookmark: the owning student
- Update profile: the account itself, only fields writable for its kind

The store enforces the same rules at its own boundary; this module exists so
callers get a fast, consistent answer before any write is issued. Nothing here
performs I/O and nothing raises on malformed input.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterable
from typing import Any, Protocol

from dogood.enums import AccountKind, OpportunityStatus
from dogood.policy.actor import Actor
from dogood.policy.decisions import ALLOW, Decision, Deny, DenyReason

STUDENT_WRITABLE_FIELDS = frozenset({"full_name", "service_hours_goal"})
ORGANIZATION_WRITABLE_FIELDS = frozenset(
    {"full_name", "organization_name", "phone", "address", "city", "state", "zip_code"}
)


class Operation(str, enum.Enum):
    CREATE_OPPORTUNITY = "create_opportunity"
    UPDATE_OPPORTUNITY = "update_opportunity"
    DELETE_OPPORTUNITY = "delete_opportunity"
    READ_OPPORTUNITY = "read_opportunity"
    CREATE_REGISTRATION = "create_registration"
    UPDATE_REGISTRATION_HOURS = "update_registration_hours"
    CREATE_BOOKMARK = "create_bookmark"
    DELETE_BOOKMARK = "delete_bookmark"
    UPDATE_ACCOUNT = "update_account"


class OpportunityTarget(Protocol):
    organization_id: int
    status: str
    hours_needed: int
    max_volunteers: int
    current_volunteers: int


class RegistrationTarget(Protocol):
    user_id: int


class BookmarkTarget(Protocol):
    user_id: int


class AccountTarget(Protocol):
    id: int


def writable_account_fields(actor: Actor) -> frozenset[str]:
    """Profile fields the actor may write on its own account. Never includes ``verified``."""
    if actor.kind is AccountKind.STUDENT:
        return STUDENT_WRITABLE_FIELDS
    if actor.kind is AccountKind.ORGANIZATION:
        return ORGANIZATION_WRITABLE_FIELDS
    return frozenset()


def require_kind(actor: Actor, kind: AccountKind) -> Decision:
    """Authenticated actor of the given kind."""
    if not actor.is_authenticated:
        return Deny(DenyReason.NOT_AUTHENTICATED)
    if actor.kind is not kind:
        return Deny(DenyReason.WRONG_ROLE)
    return ALLOW


# ---------------------------------------------------------------------------
# Opportunities
# ---------------------------------------------------------------------------


def check_create_opportunity(actor: Actor, opportunity: OpportunityTarget) -> Decision:
    decision = require_kind(actor, AccountKind.ORGANIZATION)
    if not decision:
        return decision
    if not actor.verified:
        return Deny(DenyReason.NOT_VERIFIED)
    if actor.id != opportunity.organization_id:
        return Deny(DenyReason.NOT_OWNER)
    return ALLOW


def check_modify_opportunity(actor: Actor, opportunity: OpportunityTarget) -> Decision:
    decision = require_kind(actor, AccountKind.ORGANIZATION)
    if not decision:
        return decision
    if actor.id != opportunity.organization_id:
        return Deny(DenyReason.NOT_OWNER)
    return ALLOW


def check_read_opportunity(actor: Actor, opportunity: OpportunityTarget) -> Decision:
    if opportunity.status == OpportunityStatus.ACTIVE:
        return ALLOW
    if actor.is_organization and actor.id == opportunity.organization_id:
        return ALLOW
    return Deny(DenyReason.INACTIVE_TARGET)


# ---------------------------------------------------------------------------
# Registrations
# ---------------------------------------------------------------------------


def check_create_registration(
    actor: Actor,
    opportunity: OpportunityTarget,
    *,
    already_registered: bool,
) -> Decision:
    decision = require_kind(actor, AccountKind.STUDENT)
    if not decision:
        return decision
    if already_registered:
        return Deny(DenyReason.DUPLICATE_REGISTRATION)
    if opportunity.status != OpportunityStatus.ACTIVE:
        return Deny(DenyReason.INACTIVE_TARGET)
    if opportunity.current_volunteers >= opportunity.max_volunteers:
        return Deny(DenyReason.CAPACITY_EXCEEDED)
    return ALLOW


def check_update_registration_hours(
    actor: Actor,
    registration: RegistrationTarget,
    *,
    opportunity: OpportunityTarget,
    hours: Any,
) -> Decision:
    decision = require_kind(actor, AccountKind.STUDENT)
    if not decision:
        return decision
    if actor.id != registration.user_id:
        return Deny(DenyReason.NOT_OWNER)
    # bool is an int subclass; True is not an hour count
    if not isinstance(hours, int) or isinstance(hours, bool):
        return Deny(DenyReason.INVALID_RANGE, "hours_completed")
    if not 0 <= hours <= opportunity.hours_needed:
        return Deny(DenyReason.INVALID_RANGE, "hours_completed")
    return ALLOW


# ---------------------------------------------------------------------------
# Bookmarks
# ---------------------------------------------------------------------------


def check_bookmark(actor: Actor, bookmark: BookmarkTarget) -> Decision:
    decision = require_kind(actor, AccountKind.STUDENT)
    if not decision:
        return decision
    if actor.id != bookmark.user_id:
        return Deny(DenyReason.NOT_OWNER)
    return ALLOW


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


def check_update_account(actor: Actor, account: AccountTarget, *, fields: Iterable[str]) -> Decision:
    if not actor.is_authenticated:
        return Deny(DenyReason.NOT_AUTHENTICATED)
    if actor.id != account.id:
        return Deny(DenyReason.NOT_OWNER)
    writable = writable_account_fields(actor)
    for field in sorted(fields):
        if field not in writable:
            return Deny(DenyReason.WRONG_ROLE, field)
    return ALLOW


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

_CHECKS: dict[Operation, Callable[..., Decision]] = {
    Operation.CREATE_OPPORTUNITY: check_create_opportunity,
    Operation.UPDATE_OPPORTUNITY: check_modify_opportunity,
    Operation.DELETE_OPPORTUNITY: check_modify_opportunity,
    Operation.READ_OPPORTUNITY: check_read_opportunity,
    Operation.CREATE_REGISTRATION: check_create_registration,
    Operation.UPDATE_REGISTRATION_HOURS: check_update_registration_hours,
    Operation.CREATE_BOOKMARK: check_bookmark,
    Operation.DELETE_BOOKMARK: check_bookmark,
    Operation.UPDATE_ACCOUNT: check_update_account,
}


def can_perform(actor: Actor, operation: Operation, target: Any, **context: Any) -> Decision:  # noqa: ANN401
    """Decide whether ``actor`` may perform ``operation`` on ``target``.

    Extra context per operation:
        CREATE_REGISTRATION: already_registered
        UPDATE_REGISTRATION_HOURS: opportunity, hours
        UPDATE_ACCOUNT: fields
    """
    return _CHECKS[operation](actor, target, **context)
