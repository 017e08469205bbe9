"""The identity an operation is evaluated for.

An Actor is built once per request from the session token and passed
explicitly into every policy check; there is no ambient current user.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from dogood.enums import AccountKind

if TYPE_CHECKING:
    from dogood.db.models import Account


@dataclass(frozen=True)
class Actor:
    """An anonymous visitor, a student, or an organization."""

    id: int | None = None
    kind: AccountKind | None = None
    verified: bool = False

    @classmethod
    def anonymous(cls) -> Actor:
        return cls()

    @classmethod
    def from_account(cls, account: Account) -> Actor:
        """Build an actor from a stored account.

        ``verified`` only carries meaning for organizations and is forced to
        False for students whatever the stored row says.
        """
        kind = AccountKind(account.kind)
        return cls(
            id=account.id,
            kind=kind,
            verified=bool(account.verified) and kind is AccountKind.ORGANIZATION,
        )

    @property
    def is_authenticated(self) -> bool:
        return self.id is not None and self.kind is not None

    @property
    def is_student(self) -> bool:
        return self.kind is AccountKind.STUDENT

    @property
    def is_organization(self) -> bool:
        return self.kind is AccountKind.ORGANIZATION
