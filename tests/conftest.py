"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from dogood.config import get_settings
from dogood.database import close_db, get_engine, get_session_factory, init_db
from dogood.db.base import Base
from dogood.main import create_app
from dogood.store.sql import SqlStore
from factories import VERIFIER_KEY


@pytest_asyncio.fixture
async def database(tmp_path, monkeypatch) -> AsyncGenerator[None, None]:
    """Fresh SQLite database per test with every table created from metadata."""
    monkeypatch.setenv("DOGOOD_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'dogood.db'}")
    monkeypatch.setenv("DOGOOD_VERIFIER_API_KEY", VERIFIER_KEY)
    monkeypatch.setenv("DOGOOD_STORE_RETRY_BACKOFF_SECONDS", "0")
    get_settings.cache_clear()

    await init_db(get_settings().database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    await close_db()
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def store(database) -> AsyncGenerator[SqlStore, None]:
    """A store bound to its own session, for service-level tests."""
    async with get_session_factory()() as session:
        yield SqlStore(session)


@pytest_asyncio.fixture
async def client(database) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client over the ASGI app, sharing the test database."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def verifier_headers() -> dict[str, str]:
    return {"X-Verifier-Key": VERIFIER_KEY}
