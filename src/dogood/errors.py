"""Domain error taxonomy.

Authentication, authorization and validation failures are decided locally by
the access policy before any store call. ConflictFailed and StoreUnavailable
are only discovered after a store call: the first is never retried (the caller
must re-fetch and re-decide), the second may be retried a bounded number of
times.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from dogood.policy.decisions import Decision, Deny, DenyReason

if TYPE_CHECKING:
    from dogood.policy.actor import Actor


class DoGoodError(Exception):
    """Base class for all domain errors."""

    code: str = "error"
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code, "retryable": self.retryable}


class AuthenticationRequired(DoGoodError):
    code = "authentication_required"

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class AuthorizationDenied(DoGoodError):
    code = "authorization_denied"

    def __init__(self, reason: DenyReason, detail: str | None = None) -> None:
        message = f"Operation denied: {reason.value}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.reason = reason
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["reason"] = self.reason.value
        if self.detail:
            data["field"] = self.detail
        return data


class ValidationFailed(DoGoodError):
    code = "validation_failed"

    def __init__(self, field: str, message: str | None = None) -> None:
        super().__init__(message or f"Invalid value for '{field}'")
        self.field = field
        self.reason = DenyReason.INVALID_RANGE

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["reason"] = self.reason.value
        data["field"] = self.field
        return data


class NotFound(DoGoodError):
    code = "not_found"


class ConflictFailed(DoGoodError):
    """A uniqueness or capacity race was lost at the store."""

    code = "conflict"


class StoreUnavailable(DoGoodError):
    """Transient store failure."""

    code = "store_unavailable"
    retryable = True


def error_for(decision: Deny) -> DoGoodError:
    """Map a policy refusal to the exception surfaced to callers."""
    if decision.reason is DenyReason.NOT_AUTHENTICATED:
        return AuthenticationRequired()
    if decision.reason is DenyReason.INVALID_RANGE:
        return ValidationFailed(decision.detail or "value", f"Value out of range for '{decision.detail}'")
    return AuthorizationDenied(decision.reason, decision.detail)


def enforce(decision: Decision) -> None:
    """Raise the matching domain error when the decision is a Deny."""
    if isinstance(decision, Deny):
        raise error_for(decision)


def account_id_of(actor: Actor) -> int:
    """The actor's account id, or AuthenticationRequired for anonymous callers."""
    if actor.id is None:
        raise AuthenticationRequired()
    return actor.id
