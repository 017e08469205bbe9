"""Persistent store over an async SQLAlchemy session.

Every mutation the services need is expressed here as a single statement so
that counters and aggregates are computed by the database inside the caller's
transaction, never read into Python and written back.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator, Mapping, Sequence
from contextlib import asynccontextmanager, contextmanager
from typing import Any, TypeVar

import structlog
from sqlalchemy import ColumnElement, delete, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from dogood.db.base import Base
from dogood.errors import ConflictFailed, StoreUnavailable

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=Base)


@contextmanager
def _store_errors() -> Iterator[None]:
    """Translate driver errors into ConflictFailed / StoreUnavailable."""
    try:
        yield
    except IntegrityError as e:
        msg = "Store rejected the write (constraint violation)"
        raise ConflictFailed(msg) from e
    except (OperationalError, InterfaceError) as e:
        msg = "Store temporarily unavailable"
        raise StoreUnavailable(msg) from e
    except DBAPIError as e:
        if e.connection_invalidated:
            msg = "Store connection lost"
            raise StoreUnavailable(msg) from e
        raise


class SqlStore:
    """create / read / update / delete against the relational store."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SqlStore]:
        """Commit on success, roll back everything on any error."""
        try:
            yield self
            with _store_errors():
                await self.session.commit()
        except BaseException:
            await self.session.rollback()
            raise

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, model: type[ModelT], entity_id: int) -> ModelT | None:
        with _store_errors():
            return await self.session.get(model, entity_id, populate_existing=True)

    async def read(
        self,
        model: type[ModelT],
        *filters: ColumnElement[bool],
        order_by: Sequence[Any] = (),
        limit: int | None = None,
    ) -> list[ModelT]:
        stmt = select(model).where(*filters).order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        with _store_errors():
            result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def add(self, entity: ModelT) -> ModelT:
        """Insert a new entity and return it with relationships loaded."""
        with _store_errors():
            self.session.add(entity)
            await self.session.flush()
            loaded = await self.session.get(type(entity), entity.id, populate_existing=True)  # type: ignore[attr-defined]
        if loaded is None:
            msg = f"{type(entity).__tablename__} row vanished after insert"
            raise ConflictFailed(msg)
        return loaded

    async def create(self, model: type[ModelT], fields: Mapping[str, Any]) -> ModelT:
        return await self.add(model(**fields))

    async def update(
        self,
        model: type[ModelT],
        entity_id: int,
        fields: Mapping[str, Any],
        precondition: Sequence[ColumnElement[bool]] = (),
    ) -> ModelT:
        """Conditionally update one row.

        ``fields`` values may be SQL expressions (``Model.counter + 1``) which
        the database evaluates atomically. Raises ConflictFailed when no row
        matches the id together with every precondition.
        """
        stmt = (
            update(model)
            .where(model.id == entity_id, *precondition)  # type: ignore[attr-defined]
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        with _store_errors():
            result = await self.session.execute(stmt)
        if result.rowcount == 0:  # type: ignore[attr-defined]
            logger.info("store_precondition_failed", table=model.__tablename__, id=entity_id)
            msg = f"{model.__tablename__} {entity_id} changed or no longer matches; re-fetch and retry"
            raise ConflictFailed(msg)
        entity = await self.get(model, entity_id)
        if entity is None:
            msg = f"{model.__tablename__} {entity_id} no longer exists"
            raise ConflictFailed(msg)
        return entity

    async def delete(self, model: type[ModelT], entity_id: int) -> None:
        stmt = delete(model).where(model.id == entity_id)  # type: ignore[attr-defined]
        with _store_errors():
            result = await self.session.execute(stmt)
        if result.rowcount == 0:  # type: ignore[attr-defined]
            msg = f"{model.__tablename__} {entity_id} no longer exists"
            raise ConflictFailed(msg)

    async def delete_where(self, model: type[ModelT], *filters: ColumnElement[bool]) -> int:
        stmt = delete(model).where(*filters).execution_options(synchronize_session=False)
        with _store_errors():
            result = await self.session.execute(stmt)
        return int(result.rowcount or 0)  # type: ignore[attr-defined]
