from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import Any, AsyncIterator, Iterable, TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from asperda.core.errors import (
    INTEGRITY_VIOLATION_CODE,
    UNIQUE_VIOLATION_CODE,
    UpstreamFailure,
)
from asperda.domain.models import Base


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


def _upstream_code(exc: SQLAlchemyError) -> str | None:
    # Prefer the driver's SQLSTATE (asyncpg: sqlstate, psycopg: pgcode).
    orig = getattr(exc, "orig", None)
    for attr in ("sqlstate", "pgcode"):
        value = getattr(orig, attr, None)
        if value:
            return str(value)
    if isinstance(exc, IntegrityError):
        if "unique" in str(exc).lower():
            return UNIQUE_VIOLATION_CODE
        return INTEGRITY_VIOLATION_CODE
    return None


def _to_upstream(exc: SQLAlchemyError, operation: str, table: str) -> UpstreamFailure:
    orig = getattr(exc, "orig", None)
    message = str(orig) if orig is not None else str(exc)
    return UpstreamFailure(
        f"{operation} on {table} failed: {message}",
        upstream_code=_upstream_code(exc),
        operation=operation,
        table=table,
    )


class RecordStore:
    """Tenant-agnostic CRUD transport over one AsyncSession.

    Each write commits on its own unless it runs inside ``transaction()``,
    mirroring a remote row API. Failures surface as ``UpstreamFailure``
    carrying the backend's SQLSTATE so callers can recognise permission
    and uniqueness errors.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._tx_depth = 0

    @property
    def session(self) -> AsyncSession:
        return self._session

    @property
    def in_transaction(self) -> bool:
        return self._tx_depth > 0

    async def _fail(self, exc: SQLAlchemyError, operation: str, table: str) -> UpstreamFailure:
        # Roll back only outside explicit transactions; transaction() owns its rollback.
        if not self.in_transaction:
            await self._session.rollback()
        logger.warning("store_operation_failed operation=%s table=%s", operation, table, exc_info=exc)
        return _to_upstream(exc, operation, table)

    async def _commit(self, operation: str, table: str) -> None:
        if self.in_transaction:
            return
        try:
            await self._session.commit()
        except SQLAlchemyError as exc:
            raise await self._fail(exc, operation, table) from exc

    async def select(
        self,
        model: type[ModelT],
        *criteria: Any,
        order_by: Iterable[Any] = (),
        limit: int | None = None,
    ) -> list[ModelT]:
        table = model.__tablename__
        # Refresh identity-map rows so conditional updates are visible to later reads.
        stmt = select(model).where(*criteria).order_by(*order_by).execution_options(populate_existing=True)
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "select", table) from exc
        return list(result.scalars().all())

    async def get(self, model: type[ModelT], record_id: str, *criteria: Any) -> ModelT | None:
        rows = await self.select(model, model.id == record_id, *criteria, limit=1)
        return rows[0] if rows else None

    async def insert(self, row: ModelT) -> ModelT:
        table = row.__tablename__
        try:
            self._session.add(row)
            await self._session.flush()
            # Load server defaults (created_at) while the row is still attached.
            await self._session.refresh(row)
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "insert", table) from exc
        await self._commit("insert", table)
        return row

    async def update(
        self,
        model: type[ModelT],
        record_id: str,
        patch: dict[str, Any],
        *,
        where: Iterable[Any] = (),
    ) -> int:
        # Return affected rows so callers can express compare-and-set transitions.
        table = model.__tablename__
        stmt = (
            update(model)
            .where(model.id == record_id, *where)
            .values(**patch)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "update", table) from exc
        await self._commit("update", table)
        return int(result.rowcount or 0)

    async def delete(self, model: type[ModelT], record_id: str, *, where: Iterable[Any] = ()) -> int:
        table = model.__tablename__
        stmt = (
            delete(model)
            .where(model.id == record_id, *where)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "delete", table) from exc
        await self._commit("delete", table)
        return int(result.rowcount or 0)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["RecordStore"]:
        # Group writes into one commit; any exception rolls all of them back.
        self._tx_depth += 1
        try:
            yield self
        except BaseException:
            self._tx_depth -= 1
            if self._tx_depth == 0:
                await self._session.rollback()
            raise
        self._tx_depth -= 1
        if self._tx_depth == 0:
            try:
                await self._session.commit()
            except SQLAlchemyError as exc:
                raise await self._fail(exc, "commit", "transaction") from exc
