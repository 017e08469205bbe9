"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from dogood.accounts.router import router as accounts_router
from dogood.auth.router import router as auth_router
from dogood.bookmarks.router import router as bookmarks_router
from dogood.config import get_settings
from dogood.database import close_db, init_db
from dogood.health.router import router as health_router
from dogood.middleware import setup_middleware
from dogood.opportunities.router import router as opportunities_router
from dogood.registrations.router import router as registrations_router


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)

    yield

    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="DoGood API",
        description="Volunteer marketplace connecting students with verified organizations",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(accounts_router)
    app.include_router(opportunities_router)
    app.include_router(registrations_router)
    app.include_router(bookmarks_router)

    return app


app = create_app()
