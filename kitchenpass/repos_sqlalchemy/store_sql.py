"""SQLAlchemy-backed implementation of :class:`~kitchenpass.repos.Store`.

All writes issued inside :meth:`SqlStore.transaction` are committed together
or rolled back together. Driver errors are translated into the store's
failure modes: ``OperationalError`` becomes ``Unavailable`` and
``IntegrityError`` becomes ``Conflict``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Mapping

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import Conflict, NotFound, Unavailable
from ..models import AuditLog, MenuItem, Order, Payment, Ticket
from ..repos.store import Store

logger = logging.getLogger("kitchenpass.store")

MODELS = {
    "menu_item": MenuItem,
    "order": Order,
    "ticket": Ticket,
    "payment": Payment,
    "audit_log": AuditLog,
}

_OPERATORS = {
    "eq": lambda col, v: col == v,
    "in": lambda col, v: col.in_(list(v)),
    "gte": lambda col, v: col >= v,
    "gt": lambda col, v: col > v,
    "lt": lambda col, v: col < v,
    "lte": lambda col, v: col <= v,
    "isnull": lambda col, v: col.is_(None) if v else col.is_not(None),
}


def _model(entity: str):
    try:
        return MODELS[entity]
    except KeyError:
        raise ValueError(f"unknown entity {entity!r}") from None


def _where(model, filters: Mapping[str, Any]) -> list:
    """Translate ``{"field__op": value}`` filters into SQL expressions."""
    clauses = []
    for key, value in filters.items():
        name, _, op = key.partition("__")
        clauses.append(_OPERATORS[op or "eq"](getattr(model, name), value))
    return clauses


def _ordering(model, order_by: str | Iterable[str] | None) -> list:
    if order_by is None:
        return []
    if isinstance(order_by, str):
        order_by = [order_by]
    columns = []
    for name in order_by:
        if name.startswith("-"):
            columns.append(getattr(model, name[1:]).desc())
        else:
            columns.append(getattr(model, name).asc())
    return columns


class SqlStore(Store):
    """Store operating on a single :class:`AsyncSession`."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self._depth = 0

    @asynccontextmanager
    async def _guard(self) -> AsyncIterator[None]:
        try:
            yield
        except IntegrityError as exc:
            await self.session.rollback()
            raise Conflict(str(exc.orig)) from exc
        except OperationalError as exc:
            await self.session.rollback()
            raise Unavailable(str(exc.orig)) from exc

    async def _autocommit(self) -> None:
        if self._depth == 0:
            async with self._guard():
                await self.session.commit()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SqlStore"]:
        """Commit every write made in the block atomically.

        Nested calls join the outermost transaction.
        """

        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            async with self._guard():
                yield self
                await self.session.commit()
        except BaseException:
            await self.session.rollback()
            raise
        finally:
            self._depth = 0

    async def insert(self, entity: str, record: Any) -> Any:
        model = _model(entity)
        obj = model(**record) if isinstance(record, Mapping) else record
        async with self._guard():
            self.session.add(obj)
            await self.session.flush()
        await self._autocommit()
        return obj

    async def get(self, entity: str, record_id: str) -> Any:
        async with self._guard():
            return await self.session.get(_model(entity), record_id)

    async def require(self, entity: str, record_id: str) -> Any:
        obj = await self.get(entity, record_id)
        if obj is None:
            raise NotFound(f"{entity} not found", id=record_id)
        return obj

    async def update(self, entity: str, record_id: str, fields: Mapping[str, Any]) -> None:
        model = _model(entity)
        async with self._guard():
            result = await self.session.execute(
                update(model).where(model.id == record_id).values(**fields)
            )
        if result.rowcount == 0:
            raise NotFound(f"{entity} not found", id=record_id)
        await self._autocommit()

    async def query_all(
        self,
        entity: str,
        filters: Mapping[str, Any] | None = None,
        order_by: str | Iterable[str] | None = None,
    ) -> list[Any]:
        model = _model(entity)
        stmt = select(model).where(*_where(model, filters or {}))
        stmt = stmt.order_by(*_ordering(model, order_by))
        async with self._guard():
            result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def flush(self) -> None:
        async with self._guard():
            await self.session.flush()
