"""Shared async test fixtures for settings, database and HTTP client."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from syncguard.config import Settings
from syncguard.models.base import Base


@pytest.fixture
def settings():
    """Enabled policy with small limits: disable at 3 failures or 10 days."""
    return Settings(
        auto_disables_failing_connections=True,
        max_failed_jobs_in_a_row_before_connection_disable=3,
        max_days_of_only_failed_jobs_before_connection_disable=10,
        auto_disable_max_attempts=2,
    )


# ---------------------------------------------------------------------------
# Database (function-scoped, in-memory SQLite)
# StaticPool keeps every session on the same connection, and therefore on
# the same in-memory database.
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Provide an isolated database session for each test."""
    session = session_factory()
    yield session
    await session.close()


# ---------------------------------------------------------------------------
# FastAPI test client (function-scoped)
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def client(db_session):
    """Async HTTP client with the test database session injected."""
    from syncguard.database import get_session
    from syncguard.main import app

    async def _override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
