from contextlib import asynccontextmanager

import fakeredis.aioredis
import pytest
from fastapi.testclient import TestClient
from helpers import FrozenClock

from kitchenpass.config import Settings
from kitchenpass.db import create_schema, get_engine, session_factory
from kitchenpass.main import create_app
from kitchenpass.repos_sqlalchemy import SqlStore


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path}/pos.db",
        redis_url="redis://localhost:6379/15",
    )


@pytest.fixture
def app(settings, clock):
    return create_app(settings, redis=fakeredis.aioredis.FakeRedis(), clock=clock)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def menu(client):
    """Seed a small catalog and return its ids by short name."""

    items = {
        "pad_thai": {
            "id": "pad-thai",
            "name": "Pad Thai",
            "name_th": "ผัดไทย",
            "price": "80",
            "category": "mains",
            "station": "kitchen",
            "modifiers": [{"name": "extra egg", "price": "10"}],
        },
        "green_curry": {
            "id": "green-curry",
            "name": "Green Curry",
            "price": "120",
            "category": "mains",
            "station": "kitchen",
        },
        "thai_tea": {
            "id": "thai-tea",
            "name": "Thai Tea",
            "price": "45",
            "category": "drinks",
            "station": "tea",
            "modifiers": [{"name": "less sugar", "price": "0"}],
        },
    }
    for payload in items.values():
        resp = client.post("/api/menu", json=payload)
        assert resp.status_code == 200, resp.text
    return {key: payload["id"] for key, payload in items.items()}


@pytest.fixture
def database(tmp_path):
    """Return a factory for an async context yielding a session maker."""

    @asynccontextmanager
    async def _open():
        engine = get_engine(f"sqlite+aiosqlite:///{tmp_path}/store.db")
        await create_schema(engine)
        try:
            yield session_factory(engine)
        finally:
            await engine.dispose()

    return _open


@pytest.fixture
def sql_store(database):
    """Return a factory for an async context yielding one :class:`SqlStore`."""

    @asynccontextmanager
    async def _open():
        async with database() as maker:
            async with maker() as session:
                yield SqlStore(session)

    return _open
