"""Bookmark endpoints: save, unsave and list saved opportunities."""

from datetime import datetime

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from dogood.auth.dependencies import get_current_actor
from dogood.bookmarks.service import list_saved_opportunities, remove_saved_opportunity, save_opportunity
from dogood.db.models import SavedBookmark
from dogood.dependencies import get_store
from dogood.opportunities.schemas import OpportunityResponse, opportunity_response
from dogood.policy.actor import Actor
from dogood.store.retry import with_retries
from dogood.store.sql import SqlStore

router = APIRouter(prefix="/api/v1", tags=["Bookmarks"])


class BookmarkResponse(BaseModel):
    id: int
    opportunity_id: int
    saved_at: datetime
    opportunity: OpportunityResponse


def _bookmark_response(bookmark: SavedBookmark) -> BookmarkResponse:
    return BookmarkResponse(
        id=bookmark.id,
        opportunity_id=bookmark.opportunity_id,
        saved_at=bookmark.saved_at,
        opportunity=opportunity_response(bookmark.opportunity),
    )


@router.put("/opportunities/{opportunity_id}/bookmark", response_model=BookmarkResponse)
async def save(
    opportunity_id: int,
    response: Response,
    actor: Actor = Depends(get_current_actor),
    store: SqlStore = Depends(get_store),
) -> BookmarkResponse:
    """Save an opportunity. 201 when newly saved, 200 when it already was."""
    bookmark, created = await with_retries(lambda: save_opportunity(store, actor, opportunity_id))
    response.status_code = 201 if created else 200
    return _bookmark_response(bookmark)


@router.delete("/opportunities/{opportunity_id}/bookmark", status_code=204)
async def unsave(
    opportunity_id: int,
    actor: Actor = Depends(get_current_actor),
    store: SqlStore = Depends(get_store),
) -> Response:
    await with_retries(lambda: remove_saved_opportunity(store, actor, opportunity_id))
    return Response(status_code=204)


@router.get("/bookmarks/mine", response_model=list[BookmarkResponse])
async def my_bookmarks(
    actor: Actor = Depends(get_current_actor),
    store: SqlStore = Depends(get_store),
) -> list[BookmarkResponse]:
    bookmarks = await list_saved_opportunities(store, actor)
    return [_bookmark_response(b) for b in bookmarks]
