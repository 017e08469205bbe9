"""Opportunity service: posting, editing, deleting and browsing."""

from datetime import date, timedelta

import pytest
from sqlalchemy import update

from dogood.bookmarks.service import save_opportunity
from dogood.db.models import Account, Opportunity, Registration, SavedBookmark
from dogood.errors import (
    AuthenticationRequired,
    AuthorizationDenied,
    ConflictFailed,
    NotFound,
    ValidationFailed,
)
from dogood.opportunities.schemas import OpportunityCreateRequest
from dogood.opportunities.service import (
    create_opportunity,
    delete_opportunity,
    get_opportunity,
    list_opportunities,
    list_own_opportunities,
    update_opportunity,
)
from dogood.policy.actor import Actor
from dogood.policy.decisions import DenyReason
from dogood.registrations.service import log_hours, register_for_opportunity
from dogood.store.sql import SqlStore
from factories import actor_for, create_opportunity_row, create_organization, create_student, fetch


def _request(**overrides) -> OpportunityCreateRequest:
    fields = {
        "title": "Food Drive",
        "description": "Sort and pack donations",
        "category": "Health",
        "hours_needed": 3,
        "max_volunteers": 10,
        "date": date.today() + timedelta(days=3),
        "city": "Springfield",
    }
    fields.update(overrides)
    return OpportunityCreateRequest(**fields)


class TestCreate:
    async def test_verified_organization_posts(self, store: SqlStore):
        org = await create_organization(verified=True)

        opp = await create_opportunity(store, actor_for(org), _request())

        assert opp.organization_id == org.id
        assert opp.current_volunteers == 0
        assert opp.status == "active"
        assert opp.category == "Health"
        assert opp.organization.organization_name == "Community Food Bank"

    async def test_unverified_organization_rejected(self, store: SqlStore):
        org = await create_organization(verified=False)

        with pytest.raises(AuthorizationDenied) as exc_info:
            await create_opportunity(store, actor_for(org), _request())

        assert exc_info.value.reason is DenyReason.NOT_VERIFIED
        assert await store.read(Opportunity) == []

    async def test_student_rejected(self, store: SqlStore):
        student = await create_student()
        with pytest.raises(AuthorizationDenied) as exc_info:
            await create_opportunity(store, actor_for(student), _request())
        assert exc_info.value.reason is DenyReason.WRONG_ROLE

    async def test_anonymous_rejected(self, store: SqlStore):
        with pytest.raises(AuthenticationRequired):
            await create_opportunity(store, Actor.anonymous(), _request())


class TestUpdate:
    async def test_owner_edits(self, store: SqlStore):
        org = await create_organization()
        opp = await create_opportunity_row(org)

        updated = await update_opportunity(store, actor_for(org), opp.id, {"title": "Winter Food Drive"})

        assert updated.title == "Winter Food Drive"

    async def test_owner_edits_after_losing_verification(self, store: SqlStore):
        org = await create_organization(verified=False)
        opp = await create_opportunity_row(org)

        updated = await update_opportunity(store, actor_for(org), opp.id, {"status": "inactive"})

        assert updated.status == "inactive"

    async def test_other_organization_rejected(self, store: SqlStore):
        owner = await create_organization()
        other = await create_organization()
        opp = await create_opportunity_row(owner)

        with pytest.raises(AuthorizationDenied) as exc_info:
            await update_opportunity(store, actor_for(other), opp.id, {"title": "Hijacked"})

        assert exc_info.value.reason is DenyReason.NOT_OWNER
        assert (await fetch(Opportunity, opp.id)).title == "Food Drive"

    async def test_max_below_current_rejected(self, store: SqlStore):
        org = await create_organization()
        opp = await create_opportunity_row(org, max_volunteers=10, current_volunteers=4)

        with pytest.raises(ValidationFailed) as exc_info:
            await update_opportunity(store, actor_for(org), opp.id, {"max_volunteers": 3})

        assert exc_info.value.field == "max_volunteers"
        assert (await fetch(Opportunity, opp.id)).max_volunteers == 10

    async def test_max_equal_to_current_allowed(self, store: SqlStore):
        org = await create_organization()
        opp = await create_opportunity_row(org, max_volunteers=10, current_volunteers=4)

        updated = await update_opportunity(store, actor_for(org), opp.id, {"max_volunteers": 4})

        assert updated.max_volunteers == 4

    async def test_hours_below_logged_rejected(self, store: SqlStore):
        org = await create_organization()
        student = await create_student()
        opp = await create_opportunity_row(org, hours_needed=5)
        registration = await register_for_opportunity(store, actor_for(student), opp.id)
        await log_hours(store, actor_for(student), registration.id, 5)

        with pytest.raises(ValidationFailed) as exc_info:
            await update_opportunity(store, actor_for(org), opp.id, {"hours_needed": 1})

        assert exc_info.value.field == "hours_needed"
        assert (await fetch(Opportunity, opp.id)).hours_needed == 5

    async def test_hours_down_to_logged_allowed(self, store: SqlStore):
        org = await create_organization()
        student = await create_student()
        opp = await create_opportunity_row(org, hours_needed=5)
        registration = await register_for_opportunity(store, actor_for(student), opp.id)
        await log_hours(store, actor_for(student), registration.id, 3)

        updated = await update_opportunity(store, actor_for(org), opp.id, {"hours_needed": 3})

        assert updated.hours_needed == 3

    async def test_hours_logged_between_check_and_write_conflicts(self, store: SqlStore, monkeypatch):
        org = await create_organization()
        student = await create_student()
        opp = await create_opportunity_row(org, hours_needed=5)
        registration = await register_for_opportunity(store, actor_for(student), opp.id)
        original_update = store.update

        async def _update_after_logging(model, entity_id, fields, precondition=()):
            # The student logs 4 hours after the owner's check already passed
            if model is Opportunity:
                await store.session.execute(
                    update(Registration).where(Registration.id == registration.id).values(hours_completed=4)
                )
            return await original_update(model, entity_id, fields, precondition)

        monkeypatch.setattr(store, "update", _update_after_logging)

        with pytest.raises(ConflictFailed):
            await update_opportunity(store, actor_for(org), opp.id, {"hours_needed": 2})

        assert (await fetch(Opportunity, opp.id)).hours_needed == 5

    async def test_required_field_cannot_be_null(self, store: SqlStore):
        org = await create_organization()
        opp = await create_opportunity_row(org)

        with pytest.raises(ValidationFailed) as exc_info:
            await update_opportunity(store, actor_for(org), opp.id, {"title": None})
        assert exc_info.value.field == "title"

    async def test_missing_opportunity(self, store: SqlStore):
        org = await create_organization()
        with pytest.raises(NotFound):
            await update_opportunity(store, actor_for(org), 9999, {"title": "x"})


class TestDelete:
    async def test_delete_removes_children_and_recomputes_totals(self, store: SqlStore):
        org = await create_organization()
        student = await create_student()
        actor = actor_for(student)
        kept = await create_opportunity_row(org, title="Tutoring", hours_needed=5)
        doomed = await create_opportunity_row(org, title="Park Cleanup", hours_needed=5)
        reg_kept = await register_for_opportunity(store, actor, kept.id)
        reg_doomed = await register_for_opportunity(store, actor, doomed.id)
        await log_hours(store, actor, reg_kept.id, 2)
        await log_hours(store, actor, reg_doomed.id, 3)
        await save_opportunity(store, actor, doomed.id)
        assert (await fetch(Account, student.id)).total_hours_logged == 5

        await delete_opportunity(store, actor_for(org), doomed.id)

        assert await fetch(Opportunity, doomed.id) is None
        assert await fetch(Registration, reg_doomed.id) is None
        assert await store.read(SavedBookmark, SavedBookmark.opportunity_id == doomed.id) == []
        assert (await fetch(Account, student.id)).total_hours_logged == 2

    async def test_other_organization_cannot_delete(self, store: SqlStore):
        owner = await create_organization()
        other = await create_organization()
        opp = await create_opportunity_row(owner)

        with pytest.raises(AuthorizationDenied) as exc_info:
            await delete_opportunity(store, actor_for(other), opp.id)

        assert exc_info.value.reason is DenyReason.NOT_OWNER
        assert await fetch(Opportunity, opp.id) is not None


class TestRead:
    async def test_inactive_hidden_from_others(self, store: SqlStore):
        org = await create_organization()
        student = await create_student()
        opp = await create_opportunity_row(org, status="inactive")

        with pytest.raises(NotFound):
            await get_opportunity(store, actor_for(student), opp.id)
        assert (await get_opportunity(store, actor_for(org), opp.id)).id == opp.id

    async def test_active_visible_to_anonymous(self, store: SqlStore):
        org = await create_organization()
        opp = await create_opportunity_row(org)

        assert (await get_opportunity(store, Actor.anonymous(), opp.id)).id == opp.id

    async def test_own_listing_includes_every_status(self, store: SqlStore):
        org = await create_organization()
        other = await create_organization()
        await create_opportunity_row(org, title="Open")
        await create_opportunity_row(org, title="Closed", status="inactive")
        await create_opportunity_row(other, title="Not mine")

        mine = await list_own_opportunities(store, actor_for(org))

        assert sorted(o.title for o in mine) == ["Closed", "Open"]

    async def test_own_listing_rejects_students(self, store: SqlStore):
        student = await create_student()
        with pytest.raises(AuthorizationDenied):
            await list_own_opportunities(store, actor_for(student))


class TestBrowse:
    @pytest.fixture
    async def catalog(self, store: SqlStore):
        food_bank = await create_organization(organization_name="Community Food Bank")
        green = await create_organization(organization_name="Green Earth Society")
        await create_opportunity_row(
            food_bank, title="Food Drive", category="Health", hours_needed=3, city="Springfield"
        )
        await create_opportunity_row(
            green, title="Tree Planting", category="Environment", hours_needed=1, city="Shelbyville"
        )
        await create_opportunity_row(
            green, title="Robotics Mentor", category="STEM", hours_needed=8, city="Springfield"
        )
        await create_opportunity_row(food_bank, title="Closed Drive", category="Health", status="inactive")

    async def _titles(self, store, **filters):
        return sorted(o.title for o in await list_opportunities(store, **filters))

    async def test_only_active(self, store: SqlStore, catalog):
        assert await self._titles(store) == ["Food Drive", "Robotics Mentor", "Tree Planting"]

    async def test_category(self, store: SqlStore, catalog):
        assert await self._titles(store, category="Environment") == ["Tree Planting"]

    @pytest.mark.parametrize(
        ("bucket", "expected"),
        [("<2", ["Tree Planting"]), ("2-5", ["Food Drive"]), ("5+", ["Robotics Mentor"])],
    )
    async def test_hours_bucket(self, store: SqlStore, catalog, bucket, expected):
        assert await self._titles(store, hours=bucket) == expected

    async def test_city_is_case_insensitive(self, store: SqlStore, catalog):
        assert await self._titles(store, city="springfield") == ["Food Drive", "Robotics Mentor"]

    async def test_free_text_matches_organization_name(self, store: SqlStore, catalog):
        assert await self._titles(store, q="green earth") == ["Robotics Mentor", "Tree Planting"]

    async def test_free_text_matches_title(self, store: SqlStore, catalog):
        assert await self._titles(store, q="robot") == ["Robotics Mentor"]
