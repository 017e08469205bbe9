"""Global error handler — consistent JSON error responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dogood.errors import (
    AuthenticationRequired,
    AuthorizationDenied,
    ConflictFailed,
    DoGoodError,
    NotFound,
    StoreUnavailable,
    ValidationFailed,
)
from dogood.policy.decisions import DenyReason

logger = structlog.get_logger()

# Denials about the target's state rather than the caller's rights
_CONFLICT_REASONS = frozenset(
    {
        DenyReason.DUPLICATE_REGISTRATION,
        DenyReason.CAPACITY_EXCEEDED,
        DenyReason.INACTIVE_TARGET,
    }
)


def status_for(exc: DoGoodError) -> int:
    """HTTP status for a domain error."""
    if isinstance(exc, AuthenticationRequired):
        return 401
    if isinstance(exc, AuthorizationDenied):
        return 409 if exc.reason in _CONFLICT_REASONS else 403
    if isinstance(exc, ValidationFailed):
        return 422
    if isinstance(exc, NotFound):
        return 404
    if isinstance(exc, ConflictFailed):
        return 409
    if isinstance(exc, StoreUnavailable):
        return 503
    return 400


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(DoGoodError)
    async def domain_exception_handler(request: Request, exc: DoGoodError) -> JSONResponse:
        """Render domain errors with their reason tag."""
        status_code = status_for(exc)
        log = logger.error if status_code >= 500 else logger.info
        log("request_rejected", path=request.url.path, status=status_code, code=exc.code, error=exc.message)
        headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
        return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Handle HTTP exceptions with consistent JSON format."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        """Handle validation errors with consistent JSON format."""
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions — always return JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )
