"""Volunteer registration business logic.

Rules:
- Only students register, once per opportunity, while it is active and has a free slot
- Taking a slot is one conditional UPDATE (current_volunteers < max_volunteers)
  in the same transaction as the registration insert; losing the race rolls
  both back and raises ConflictFailed
- Logging hours sets status to completed for any positive amount, registered
  for zero, and recomputes the student's total from all registrations in the
  same transaction
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy import select

from dogood.accounts.service import recompute_total_hours
from dogood.db.models import Opportunity, Registration
from dogood.enums import AccountKind, OpportunityStatus, RegistrationStatus
from dogood.errors import ConflictFailed, NotFound, account_id_of, enforce
from dogood.policy.actor import Actor
from dogood.policy.evaluator import Operation, can_perform, require_kind
from dogood.store.sql import SqlStore

logger = structlog.get_logger()


async def find_registration(store: SqlStore, user_id: int, opportunity_id: int) -> Registration | None:
    registrations = await store.read(
        Registration,
        Registration.user_id == user_id,
        Registration.opportunity_id == opportunity_id,
        limit=1,
    )
    return registrations[0] if registrations else None


async def claim_registration(store: SqlStore, user_id: int, opportunity_id: int) -> Registration:
    """
    Take one slot on the opportunity and record the registration.

    Runs inside the caller's transaction. The capacity check happens in the
    database, so two callers that both saw a free slot cannot both win.

    Raises:
        ConflictFailed: the opportunity filled up or went inactive, or the
            student registered concurrently.
    """
    try:
        await store.update(
            Opportunity,
            opportunity_id,
            {"current_volunteers": Opportunity.current_volunteers + 1},
            precondition=(
                Opportunity.status == OpportunityStatus.ACTIVE.value,
                Opportunity.current_volunteers < Opportunity.max_volunteers,
            ),
        )
        return await store.create(
            Registration,
            {
                "user_id": user_id,
                "opportunity_id": opportunity_id,
                "registered_at": datetime.now(timezone.utc),
                "status": RegistrationStatus.REGISTERED.value,
                "hours_completed": 0,
            },
        )
    except ConflictFailed:
        logger.warning("registration_conflict", user_id=user_id, opportunity_id=opportunity_id)
        raise


async def register_for_opportunity(store: SqlStore, actor: Actor, opportunity_id: int) -> Registration:
    """Register the calling student for an opportunity."""
    async with store.transaction():
        opportunity = await store.get(Opportunity, opportunity_id)
        if opportunity is None:
            msg = "Opportunity not found"
            raise NotFound(msg)

        already_registered = (
            actor.id is not None and await find_registration(store, actor.id, opportunity_id) is not None
        )
        enforce(
            can_perform(
                actor,
                Operation.CREATE_REGISTRATION,
                opportunity,
                already_registered=already_registered,
            )
        )
        user_id = account_id_of(actor)
        registration = await claim_registration(store, user_id, opportunity_id)

    logger.info(
        "registration_created",
        registration_id=registration.id,
        user_id=user_id,
        opportunity_id=opportunity_id,
        current_volunteers=registration.opportunity.current_volunteers,
    )
    return registration


async def log_hours(store: SqlStore, actor: Actor, registration_id: int, hours: int) -> Registration:
    """
    Record hours completed on a registration and refresh the student's total.

    Raises:
        ValidationFailed: hours outside 0..opportunity.hours_needed.
        ConflictFailed: the opportunity's hours_needed dropped below ``hours``
            between the check and the write.
    """
    async with store.transaction():
        registration = await store.get(Registration, registration_id)
        if registration is None:
            msg = "Registration not found"
            raise NotFound(msg)
        enforce(
            can_perform(
                actor,
                Operation.UPDATE_REGISTRATION_HOURS,
                registration,
                opportunity=registration.opportunity,
                hours=hours,
            )
        )
        user_id = account_id_of(actor)

        status = RegistrationStatus.COMPLETED if hours > 0 else RegistrationStatus.REGISTERED
        registration = await store.update(
            Registration,
            registration_id,
            {"hours_completed": hours, "status": status.value},
            precondition=(
                Registration.user_id == user_id,
                Registration.opportunity_id.in_(
                    select(Opportunity.id).where(Opportunity.hours_needed >= hours)
                ),
            ),
        )
        account = await recompute_total_hours(store, user_id)

    logger.info(
        "hours_logged",
        registration_id=registration_id,
        user_id=user_id,
        hours=hours,
        total_hours_logged=account.total_hours_logged,
    )
    return registration


async def list_own_registrations(store: SqlStore, actor: Actor) -> list[Registration]:
    """The student's registrations, most recent first."""
    enforce(require_kind(actor, AccountKind.STUDENT))
    return await store.read(
        Registration,
        Registration.user_id == actor.id,
        order_by=(Registration.registered_at.desc(), Registration.id.desc()),
    )
