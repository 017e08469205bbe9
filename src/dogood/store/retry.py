"""Bounded transparent retry for transient store failures."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

from dogood.config import get_settings
from dogood.errors import StoreUnavailable

logger = structlog.get_logger()

T = TypeVar("T")


async def with_retries(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int | None = None,
    backoff_seconds: float | None = None,
) -> T:
    """Run a whole unit of work, re-running it on StoreUnavailable only.

    The unit must open its own transaction so each attempt starts clean.
    ConflictFailed and every other error propagate on the first occurrence.
    """
    settings = get_settings()
    max_attempts = max(1, attempts if attempts is not None else settings.store_retry_attempts)
    backoff = backoff_seconds if backoff_seconds is not None else settings.store_retry_backoff_seconds

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except StoreUnavailable:
            if attempt == max_attempts:
                logger.error("store_retry_exhausted", attempts=max_attempts)
                raise
            logger.warning("store_retry", attempt=attempt, attempts=max_attempts)
            await asyncio.sleep(backoff * attempt)

    msg = "unreachable"
    raise AssertionError(msg)
