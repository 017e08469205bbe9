"""Saved opportunity (bookmark) business logic."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog

from dogood.db.models import Opportunity, SavedBookmark
from dogood.enums import AccountKind
from dogood.errors import ConflictFailed, NotFound, account_id_of, enforce
from dogood.policy.actor import Actor
from dogood.policy.evaluator import Operation, can_perform, require_kind
from dogood.store.sql import SqlStore

logger = structlog.get_logger()


async def find_bookmark(store: SqlStore, user_id: int, opportunity_id: int) -> SavedBookmark | None:
    bookmarks = await store.read(
        SavedBookmark,
        SavedBookmark.user_id == user_id,
        SavedBookmark.opportunity_id == opportunity_id,
        limit=1,
    )
    return bookmarks[0] if bookmarks else None


async def save_opportunity(store: SqlStore, actor: Actor, opportunity_id: int) -> tuple[SavedBookmark, bool]:
    """
    Bookmark an opportunity for the calling student.

    Saving twice is a no-op. Returns (bookmark, created).
    """
    async with store.transaction():
        draft = SavedBookmark(user_id=actor.id, opportunity_id=opportunity_id, saved_at=datetime.now(timezone.utc))
        enforce(can_perform(actor, Operation.CREATE_BOOKMARK, draft))
        user_id = account_id_of(actor)

        if await store.get(Opportunity, opportunity_id) is None:
            msg = "Opportunity not found"
            raise NotFound(msg)

        existing = await find_bookmark(store, user_id, opportunity_id)
        if existing is not None:
            return existing, False

        try:
            bookmark = await store.add(draft)
        except ConflictFailed:
            logger.warning("bookmark_conflict", user_id=user_id, opportunity_id=opportunity_id)
            raise

    logger.info("bookmark_saved", user_id=user_id, opportunity_id=opportunity_id)
    return bookmark, True


async def remove_saved_opportunity(store: SqlStore, actor: Actor, opportunity_id: int) -> None:
    """Remove the calling student's bookmark on an opportunity."""
    enforce(require_kind(actor, AccountKind.STUDENT))
    user_id = account_id_of(actor)

    async with store.transaction():
        bookmark = await find_bookmark(store, user_id, opportunity_id)
        if bookmark is None:
            msg = "Bookmark not found"
            raise NotFound(msg)
        enforce(can_perform(actor, Operation.DELETE_BOOKMARK, bookmark))
        await store.delete(SavedBookmark, bookmark.id)

    logger.info("bookmark_removed", user_id=user_id, opportunity_id=opportunity_id)


async def list_saved_opportunities(store: SqlStore, actor: Actor) -> list[SavedBookmark]:
    """The student's bookmarks, most recent first."""
    enforce(require_kind(actor, AccountKind.STUDENT))
    return await store.read(
        SavedBookmark,
        SavedBookmark.user_id == actor.id,
        order_by=(SavedBookmark.saved_at.desc(), SavedBookmark.id.desc()),
    )
