"""Opportunity business logic.

Rules:
- Only verified organizations can post; they always post as themselves
- Only the owning organization edits or deletes (verification is not re-checked)
- Anyone reads active opportunities; the owner reads its own in any status
- max_volunteers can never drop below the current registration count
- hours_needed can never drop below hours a student already logged
- Deleting an opportunity removes its registrations and bookmarks and
  recomputes the logged hours of every affected student in the same transaction
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import ColumnElement, or_, select

from dogood.accounts.service import recompute_total_hours
from dogood.db.models import Account, Opportunity, Registration, SavedBookmark
from dogood.enums import AccountKind, OpportunityStatus
from dogood.errors import NotFound, ValidationFailed, enforce
from dogood.opportunities.schemas import HoursBucket, OpportunityCreateRequest
from dogood.policy.actor import Actor
from dogood.policy.evaluator import Operation, can_perform, require_kind
from dogood.store.sql import SqlStore

logger = structlog.get_logger()

_REQUIRED_FIELDS = frozenset({"title", "description", "category", "hours_needed", "max_volunteers", "status"})


async def _load(store: SqlStore, opportunity_id: int) -> Opportunity:
    opportunity = await store.get(Opportunity, opportunity_id)
    if opportunity is None:
        msg = "Opportunity not found"
        raise NotFound(msg)
    return opportunity


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_opportunity(store: SqlStore, actor: Actor, opportunity_id: int) -> Opportunity:
    """Get one opportunity. Ones the actor may not read are reported as not found."""
    opportunity = await _load(store, opportunity_id)
    if not can_perform(actor, Operation.READ_OPPORTUNITY, opportunity):
        msg = "Opportunity not found"
        raise NotFound(msg)
    return opportunity


def _hours_filter(bucket: HoursBucket) -> ColumnElement[bool]:
    if bucket == "<2":
        return Opportunity.hours_needed < 2
    if bucket == "2-5":
        return Opportunity.hours_needed.between(2, 5)
    return Opportunity.hours_needed > 5


async def list_opportunities(
    store: SqlStore,
    *,
    category: str | None = None,
    hours: HoursBucket | None = None,
    city: str | None = None,
    q: str | None = None,
    limit: int = 100,
) -> list[Opportunity]:
    """
    Active opportunities, soonest first.

    ``city`` is a case-insensitive substring match; ``q`` matches title,
    description, organization name or city.
    """
    filters: list[ColumnElement[bool]] = [Opportunity.status == OpportunityStatus.ACTIVE.value]
    if category:
        filters.append(Opportunity.category == category)
    if hours:
        filters.append(_hours_filter(hours))
    if city:
        filters.append(Opportunity.city.ilike(f"%{city}%"))
    if q:
        pattern = f"%{q}%"
        filters.append(
            or_(
                Opportunity.title.ilike(pattern),
                Opportunity.description.ilike(pattern),
                Opportunity.city.ilike(pattern),
                Opportunity.organization.has(Account.organization_name.ilike(pattern)),
            )
        )
    return await store.read(
        Opportunity,
        *filters,
        order_by=(Opportunity.date.asc(), Opportunity.id.asc()),
        limit=limit,
    )


async def list_own_opportunities(store: SqlStore, actor: Actor) -> list[Opportunity]:
    """All of the organization's opportunities in any status, newest first."""
    enforce(require_kind(actor, AccountKind.ORGANIZATION))
    return await store.read(
        Opportunity,
        Opportunity.organization_id == actor.id,
        order_by=(Opportunity.created_at.desc(), Opportunity.id.desc()),
    )


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def create_opportunity(store: SqlStore, actor: Actor, data: OpportunityCreateRequest) -> Opportunity:
    """Post a new opportunity as the calling organization."""
    now = datetime.now(timezone.utc)
    opportunity = Opportunity(
        **data.model_dump(),
        organization_id=actor.id,
        current_volunteers=0,
        status=OpportunityStatus.ACTIVE.value,
        created_at=now,
        updated_at=now,
    )
    enforce(can_perform(actor, Operation.CREATE_OPPORTUNITY, opportunity))

    async with store.transaction():
        opportunity = await store.add(opportunity)

    logger.info(
        "opportunity_created",
        opportunity_id=opportunity.id,
        organization_id=actor.id,
        max_volunteers=opportunity.max_volunteers,
    )
    return opportunity


async def update_opportunity(
    store: SqlStore,
    actor: Actor,
    opportunity_id: int,
    fields: dict[str, Any],
) -> Opportunity:
    """
    Apply owner edits.

    Raises:
        ValidationFailed: a required field set to null, max_volunteers
            below the current registration count, or hours_needed below
            hours already logged.
        ConflictFailed: a registration or an hours update landed between the
            check and the write and the new limits no longer fit.
    """
    for field in sorted(_REQUIRED_FIELDS & fields.keys()):
        if fields[field] is None:
            raise ValidationFailed(field, f"'{field}' cannot be null")

    async with store.transaction():
        opportunity = await _load(store, opportunity_id)
        enforce(can_perform(actor, Operation.UPDATE_OPPORTUNITY, opportunity))

        precondition: list[ColumnElement[bool]] = [Opportunity.organization_id == actor.id]
        new_max = fields.get("max_volunteers")
        if new_max is not None:
            if new_max < opportunity.current_volunteers:
                msg = (
                    f"max_volunteers cannot be lower than the {opportunity.current_volunteers} "
                    "volunteers already registered"
                )
                raise ValidationFailed("max_volunteers", msg)
            precondition.append(Opportunity.current_volunteers <= new_max)

        new_hours = fields.get("hours_needed")
        if new_hours is not None:
            exceeding = (Registration.opportunity_id == opportunity_id, Registration.hours_completed > new_hours)
            if await store.read(Registration, *exceeding, limit=1):
                msg = "hours_needed cannot be lower than hours already logged by a volunteer"
                raise ValidationFailed("hours_needed", msg)
            precondition.append(~select(Registration.id).where(*exceeding).exists())

        if fields:
            opportunity = await store.update(
                Opportunity,
                opportunity_id,
                {**fields, "updated_at": datetime.now(timezone.utc)},
                precondition=precondition,
            )

    logger.info("opportunity_updated", opportunity_id=opportunity_id, fields=sorted(fields))
    return opportunity


async def delete_opportunity(store: SqlStore, actor: Actor, opportunity_id: int) -> None:
    """Delete an opportunity with its registrations and bookmarks."""
    async with store.transaction():
        opportunity = await _load(store, opportunity_id)
        enforce(can_perform(actor, Operation.DELETE_OPPORTUNITY, opportunity))

        registrations = await store.read(Registration, Registration.opportunity_id == opportunity_id)
        affected_students = sorted({registration.user_id for registration in registrations})

        await store.delete_where(Registration, Registration.opportunity_id == opportunity_id)
        await store.delete_where(SavedBookmark, SavedBookmark.opportunity_id == opportunity_id)
        await store.delete(Opportunity, opportunity_id)

        for student_id in affected_students:
            await recompute_total_hours(store, student_id)

    logger.info(
        "opportunity_deleted",
        opportunity_id=opportunity_id,
        organization_id=actor.id,
        registrations_removed=len(registrations),
    )

