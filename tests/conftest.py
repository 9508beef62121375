"""Shared test fixtures.

Provides:
- An in-memory SQLite engine (aiosqlite + StaticPool so every session sees
  the same database) with all tables created
- A session_factory matching the repository's async-generator contract
- MeetingRepository / MeetingService wired to that database
- seed(): insert ORM rows (users, contacts, leads) in one commit
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-do-not-use")
os.environ.setdefault("ENVIRONMENT", "development")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from src.crm.core.database import Base
from src.crm.meetings import models as _meeting_models  # noqa: F401
from src.crm.meetings.repository import MeetingRepository
from src.crm.meetings.service import MeetingService
from src.crm.models import people as _people_models  # noqa: F401


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Async generator factory yielding sessions on the test engine."""

    async def factory() -> AsyncGenerator[AsyncSession, None]:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            yield session

    return factory


@pytest.fixture
def repository(session_factory) -> MeetingRepository:
    return MeetingRepository(session_factory=session_factory)


@pytest.fixture
def service(repository) -> MeetingService:
    return MeetingService(repository)


@pytest.fixture
def seed(session_factory):
    """Insert ORM rows and return them (ids populated)."""

    async def _seed(*rows):
        async for session in session_factory():
            session.add_all(rows)
            await session.commit()
        return rows

    return _seed
