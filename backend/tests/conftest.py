"""Shared test fixtures for all test groups."""

import os
from datetime import UTC, datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from venuehub.db.base import Base
from venuehub.scheduling.clock import FakeClock
from venuehub.scheduling.store_fake import InMemoryActivityStore


@pytest.fixture
def now() -> datetime:
    """Fixed reference instant for lifecycle tests."""
    return datetime(2026, 3, 14, 18, 0, tzinfo=UTC)


@pytest.fixture
def clock(now: datetime) -> FakeClock:
    """FakeClock pinned to ``now``."""
    return FakeClock(now)


@pytest.fixture
def memory_store() -> InMemoryActivityStore:
    """Empty in-memory activity store."""
    return InMemoryActivityStore()


@pytest.fixture
def database_url(tmp_path) -> str:
    """TEST_DATABASE_URL if set, else a throwaway SQLite file per test."""
    return os.getenv("TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'venuehub_test.db'}")


@pytest.fixture
async def session_factory(database_url: str):
    """Session factory over a freshly created schema, bound to the test's event loop."""
    engine = create_async_engine(database_url, echo=False)

    # Import all models so metadata is populated
    import venuehub.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
