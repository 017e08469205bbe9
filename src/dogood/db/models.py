"""ORM models for the volunteer marketplace.

The tables are created by Alembic migration 001_marketplace_tables. The
constraints declared here mirror the migration so a metadata ``create_all``
(used by the test suite) enforces the same invariants.
"""

from __future__ import annotations

import datetime as dt

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dogood.db.base import Base, IdType
from dogood.enums import (
    AccountKind,
    OpportunityCategory,
    OpportunityStatus,
    RegistrationStatus,
    sql_in,
)


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class Account(Base):
    """A student or organization account."""

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint(f"kind IN ({sql_in(AccountKind)})", name="ck_accounts_kind"),
        CheckConstraint("kind = 'organization' OR verified = false", name="ck_accounts_student_unverified"),
        CheckConstraint("service_hours_goal >= 0", name="ck_accounts_goal"),
        CheckConstraint("total_hours_logged >= 0", name="ck_accounts_total_hours"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    # --- Profile ---
    full_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    organization_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    address: Mapped[str | None] = mapped_column(String(256), nullable=True)
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    state: Mapped[str | None] = mapped_column(String(32), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(16), nullable=True)

    # --- Student progress ---
    service_hours_goal: Mapped[int] = mapped_column(Integer, nullable=False, default=100, server_default="100")
    total_hours_logged: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Opportunities
# ---------------------------------------------------------------------------


class Opportunity(Base):
    """A volunteer opportunity posted by an organization."""

    __tablename__ = "opportunities"
    __table_args__ = (
        CheckConstraint(f"category IN ({sql_in(OpportunityCategory)})", name="ck_opportunities_category"),
        CheckConstraint(f"status IN ({sql_in(OpportunityStatus)})", name="ck_opportunities_status"),
        CheckConstraint("hours_needed > 0", name="ck_opportunities_hours_needed"),
        CheckConstraint("max_volunteers > 0", name="ck_opportunities_max_volunteers"),
        CheckConstraint(
            "current_volunteers >= 0 AND current_volunteers <= max_volunteers",
            name="ck_opportunities_capacity",
        ),
        Index("idx_opportunities_org", "organization_id"),
        Index("idx_opportunities_status_date", "status", "date"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    organization_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String(16), nullable=False)
    hours_needed: Mapped[int] = mapped_column(Integer, nullable=False)
    max_volunteers: Mapped[int] = mapped_column(Integer, nullable=False)
    current_volunteers: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=OpportunityStatus.ACTIVE.value, server_default="active"
    )

    # --- Schedule & location ---
    date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    time: Mapped[dt.time | None] = mapped_column(Time, nullable=True)
    location: Mapped[str | None] = mapped_column(String(256), nullable=True)
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    state: Mapped[str | None] = mapped_column(String(32), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(16), nullable=True)
    requirements: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    organization: Mapped[Account] = relationship("Account", lazy="joined")


# ---------------------------------------------------------------------------
# Registrations & bookmarks
# ---------------------------------------------------------------------------


class Registration(Base):
    """A student's sign-up for an opportunity."""

    __tablename__ = "volunteer_registrations"
    __table_args__ = (
        UniqueConstraint("user_id", "opportunity_id", name="uq_registrations_user_opportunity"),
        CheckConstraint(f"status IN ({sql_in(RegistrationStatus)})", name="ck_registrations_status"),
        CheckConstraint("hours_completed >= 0", name="ck_registrations_hours"),
        Index("idx_registrations_opportunity", "opportunity_id"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(IdType, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    opportunity_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("opportunities.id", ondelete="CASCADE"), nullable=False
    )
    registered_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=RegistrationStatus.REGISTERED.value, server_default="registered"
    )
    hours_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    opportunity: Mapped[Opportunity] = relationship("Opportunity", lazy="joined")


class SavedBookmark(Base):
    """An opportunity saved by a student for later."""

    __tablename__ = "saved_opportunities"
    __table_args__ = (
        UniqueConstraint("user_id", "opportunity_id", name="uq_saved_user_opportunity"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(IdType, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    opportunity_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("opportunities.id", ondelete="CASCADE"), nullable=False
    )
    saved_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    opportunity: Mapped[Opportunity] = relationship("Opportunity", lazy="joined")
