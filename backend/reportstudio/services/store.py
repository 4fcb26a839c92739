"""Report store: the persistence collaborator the wizard writes through.

Table-style calls, shaped like the hosted data store the browser client
talks to:

    create(table, record)       → StoreResult(data={"id": ..., **record})
    update(table, id, partial)  → StoreResult(data=None)
    query(table, filters, ...)  → StoreResult(data=[record, ...])
    delete(table, id_or_ids)    → StoreResult(data=None)

Errors never cross the boundary as exceptions.  Every call returns a
StoreResult and callers check `.error` before trusting `.data`.
Each call runs in its own short session so the autosave loop and
request handlers can share one store instance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy import delete as sa_delete, select, update as sa_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reportstudio.database import async_session
from reportstudio.models.report import Report

logger = logging.getLogger(__name__)

REPORTS_TABLE = "reports"

TABLES = {
    REPORTS_TABLE: Report,
}


@dataclass
class StoreResult:
    data: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DataStore(Protocol):
    async def create(self, table: str, record: dict) -> StoreResult: ...

    async def update(self, table: str, record_id: str, partial: dict) -> StoreResult: ...

    async def query(
        self,
        table: str,
        filters: dict | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> StoreResult: ...

    async def delete(self, table: str, id_or_ids: str | list[str]) -> StoreResult: ...


def _row_to_dict(row) -> dict:
    return {col.key: getattr(row, col.key) for col in row.__table__.columns}


class SqlReportStore:
    """DataStore over SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self._session_factory = session_factory or async_session

    @staticmethod
    def _model(table: str):
        try:
            return TABLES[table]
        except KeyError:
            raise ValueError(f"Unknown table: {table}") from None

    async def create(self, table: str, record: dict) -> StoreResult:
        model = self._model(table)
        try:
            async with self._session_factory() as db:
                row = model(**record)
                db.add(row)
                await db.commit()
                return StoreResult(data=_row_to_dict(row))
        except SQLAlchemyError as exc:
            logger.warning("Store create on %s failed: %s", table, exc)
            return StoreResult(error=str(exc))

    async def update(self, table: str, record_id: str, partial: dict) -> StoreResult:
        model = self._model(table)
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    sa_update(model).where(model.id == record_id).values(**partial)
                )
                await db.commit()
        except SQLAlchemyError as exc:
            logger.warning("Store update on %s/%s failed: %s", table, record_id, exc)
            return StoreResult(error=str(exc))
        if result.rowcount == 0:
            return StoreResult(error=f"{table} row not found: {record_id}")
        return StoreResult()

    async def query(
        self,
        table: str,
        filters: dict | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> StoreResult:
        model = self._model(table)
        columns = model.__table__.columns
        unknown = [k for k in (filters or {}) if k not in columns]
        if order_by and order_by not in columns:
            unknown.append(order_by)
        if unknown:
            return StoreResult(error=f"Unknown column(s) on {table}: {', '.join(unknown)}")

        stmt = select(model)
        for key, value in (filters or {}).items():
            stmt = stmt.where(getattr(model, key) == value)
        if order_by:
            col = getattr(model, order_by)
            stmt = stmt.order_by(col.desc() if descending else col.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with self._session_factory() as db:
                result = await db.execute(stmt)
                rows = result.scalars().all()
        except SQLAlchemyError as exc:
            logger.warning("Store query on %s failed: %s", table, exc)
            return StoreResult(error=str(exc))
        return StoreResult(data=[_row_to_dict(r) for r in rows])

    async def delete(self, table: str, id_or_ids: str | list[str]) -> StoreResult:
        model = self._model(table)
        ids = [id_or_ids] if isinstance(id_or_ids, str) else list(id_or_ids)
        try:
            async with self._session_factory() as db:
                await db.execute(sa_delete(model).where(model.id.in_(ids)))
                await db.commit()
        except SQLAlchemyError as exc:
            logger.warning("Store delete on %s failed: %s", table, exc)
            return StoreResult(error=str(exc))
        return StoreResult()
