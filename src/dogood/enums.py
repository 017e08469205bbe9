"""Value sets shared by the ORM models, schemas and the access policy."""

from __future__ import annotations

import enum


class AccountKind(str, enum.Enum):
    STUDENT = "student"
    ORGANIZATION = "organization"


class OpportunityCategory(str, enum.Enum):
    STEM = "STEM"
    ENVIRONMENT = "Environment"
    HEALTH = "Health"
    EDUCATION = "Education"
    OTHER = "Other"


class OpportunityStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    COMPLETED = "completed"


class RegistrationStatus(str, enum.Enum):
    REGISTERED = "registered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def sql_in(values: type[enum.Enum]) -> str:
    """Render an enum's values as a SQL IN list for CHECK constraints."""
    return ", ".join(f"'{member.value}'" for member in values)
