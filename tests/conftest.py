"""Shared test fixtures."""

from __future__ import annotations

import random
from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from questboard.boards.store import BoardStore
from questboard.database import close_db, get_engine, init_db
from questboard.db import models  # noqa: F401
from questboard.db.base import Base
from questboard.main import create_app
from questboard.redis_client import close_redis

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Fixed clock for pure-function tests.
NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
NOW_ISO = "2026-01-02T03:04:05+00:00"


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Fresh in-memory database with the schema created, per test."""
    await init_db(TEST_DATABASE_URL)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()
    await close_redis()


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for service-level tests and assertions."""
    async with AsyncSession(get_engine(), expire_on_commit=False) as session:
        yield session


@pytest_asyncio.fixture
async def store(db_session: AsyncSession) -> BoardStore:
    return BoardStore(db_session)


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against a fresh app. Redis is left uninitialized."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def rng() -> random.Random:
    return random.Random(7)


async def create_board(client: AsyncClient, **body: Any) -> dict[str, Any]:
    """Helper: create a board over HTTP and return the response body."""
    body.setdefault("name", "Quest Log")
    response = await client.post("/api/boards", json=body)
    assert response.status_code == 201, response.text
    return response.json()


async def add_achievement(client: AsyncClient, board_id: str, **body: Any) -> dict[str, Any]:
    """Helper: create an achievement over HTTP and return the response body."""
    response = await client.post(f"/api/boards/{board_id}/achievements", json=body)
    assert response.status_code == 201, response.text
    return response.json()
