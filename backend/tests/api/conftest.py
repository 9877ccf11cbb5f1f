"""API-specific test fixtures."""

from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta

import jwt as pyjwt
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from venuehub.core.config import get_settings

_TEST_JWT_SECRET = "test-secret-for-activity-api"


@pytest.fixture
def jwt_secret(monkeypatch) -> str:
    """Configure the HS256 secret for the duration of a test."""
    monkeypatch.setenv("JWT_SECRET", _TEST_JWT_SECRET)
    get_settings.cache_clear()
    yield _TEST_JWT_SECRET
    get_settings.cache_clear()


@pytest.fixture
def auth_headers(jwt_secret):
    """Factory for Authorization headers carrying a signed token for ``user_id``."""

    def make(user_id: int = 1, expires_in: timedelta = timedelta(hours=1)) -> dict[str, str]:
        token = pyjwt.encode(
            {"id": user_id, "exp": datetime.now(UTC) + expires_in},
            jwt_secret,
            algorithm="HS256",
        )
        return {"Authorization": f"Bearer {token}"}

    return make


@pytest.fixture
def api_client(database_url, jwt_secret):
    """FastAPI test client with test database.

    Initializes the global database via init_db inside the TestClient's
    own event loop so route handlers can use get_session_factory(). The
    scheduler is constructed but not started; tests drive it through
    POST /api/scheduler/trigger.
    """
    from fastapi import HTTPException
    from fastapi.middleware.cors import CORSMiddleware

    from venuehub.api.routes import api_router
    from venuehub.db import Base, close_db, get_engine, get_session_factory, init_db
    from venuehub.main import generic_exception_handler, http_exception_handler
    from venuehub.middleware.correlation import setup_correlation_middleware
    from venuehub.scheduling.scheduler import ActivityScheduler
    from venuehub.scheduling.store import SqlActivityStore

    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        """Test lifespan - initialize DB in TestClient's event loop."""
        # Reset global so init_db creates a fresh engine in THIS loop
        import venuehub.db.base as db_mod

        db_mod._engine = None
        db_mod._session_factory = None
        await init_db(database_url, create_tables=False)
        async with get_engine().begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)

        app.state.shutting_down = False
        app.state.activity_scheduler = ActivityScheduler(SqlActivityStore(get_session_factory()))
        yield
        app.state.activity_scheduler.stop()
        await close_db()

    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="VenueHub - Test Client",
        version="0.1.0",
        lifespan=test_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_correlation_middleware(app)

    # Exception handlers (needed for debug_id testing)
    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(Exception)(generic_exception_handler)

    app.include_router(api_router, prefix="/api")

    with TestClient(app) as client:
        yield client
