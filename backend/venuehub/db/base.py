"""Declarative base and the process-wide async engine for the activities schema."""

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from venuehub.core.config import get_settings

logger = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    pass


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


async def init_db(url: str | None = None, *, create_tables: bool | None = None) -> None:
    """Create the engine and session factory once per process.

    Args:
        url: Overrides ``settings.database_url`` (tests pass a SQLite URL).
        create_tables: Run ``create_all`` for the activities schema. Defaults to
            ``settings.database_create_tables``; off when Alembic owns the schema.
    """
    global _engine, _session_factory

    if _engine is not None:
        return

    settings = get_settings()
    db_url = url or settings.database_url
    if create_tables is None:
        create_tables = settings.database_create_tables

    # SQL echo is routed through logging config, not SQLAlchemy's own handler
    _engine = create_async_engine(db_url, pool_pre_ping=True)
    _session_factory = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)

    if create_tables:
        import venuehub.db.models  # noqa: F401

        async with _engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    logger.info("db_engine_created", dialect=_engine.dialect.name, create_tables=create_tables)


async def close_db() -> None:
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None


def get_engine() -> AsyncEngine:
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory shared by the activity service and the scheduler's store."""
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _session_factory
