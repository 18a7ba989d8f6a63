"""Engine and session helpers for the restaurant store.

The engine and session factory are owned by the FastAPI application
(``app.state``) rather than module globals, so tests can point each app at
its own SQLite file.
"""

from __future__ import annotations

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..models import Base
from ..obs import add_query_logger


def get_engine(url: str) -> AsyncEngine:
    """Create an :class:`AsyncEngine` for ``url`` with slow query logging."""
    engine = create_async_engine(url)
    add_query_logger(engine)
    return engine


def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables if they do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield an ``AsyncSession`` from the application's session factory."""
    async with request.app.state.sessionmaker() as session:
        yield session


__all__ = ["create_schema", "get_engine", "get_session", "session_factory"]
