"""Shared FastAPI dependencies."""

from collections.abc import AsyncGenerator

from dogood.database import get_session as _get_session
from dogood.store.sql import SqlStore

get_db = _get_session


async def get_store() -> AsyncGenerator[SqlStore, None]:
    """Yield a SqlStore bound to a fresh session."""
    async for session in _get_session():
        yield SqlStore(session)
