"""Dependencies exposing application-owned state to route handlers."""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..db import get_session
from ..events import ChangeFeed
from ..repos_sqlalchemy import SqlStore
from ..utils.clock import Clock


def get_store(session: AsyncSession = Depends(get_session)) -> SqlStore:
    return SqlStore(session)


def get_feed(request: Request) -> ChangeFeed:
    return request.app.state.feed


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


def get_config(request: Request) -> Settings:
    return request.app.state.settings
