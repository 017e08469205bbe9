"""Allow / Deny results returned by the access policy."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import ClassVar


class DenyReason(str, enum.Enum):
    NOT_AUTHENTICATED = "NotAuthenticated"
    WRONG_ROLE = "WrongRole"
    NOT_VERIFIED = "NotVerified"
    NOT_OWNER = "NotOwner"
    CAPACITY_EXCEEDED = "CapacityExceeded"
    DUPLICATE_REGISTRATION = "DuplicateRegistration"
    INVALID_RANGE = "InvalidRange"
    INACTIVE_TARGET = "InactiveTarget"


@dataclass(frozen=True)
class Allow:
    allowed: ClassVar[bool] = True

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class Deny:
    """A refusal with a machine-readable reason and optional detail (e.g. a field name)."""

    reason: DenyReason
    detail: str | None = None
    allowed: ClassVar[bool] = False

    def __bool__(self) -> bool:
        return False


Decision = Allow | Deny

ALLOW = Allow()
