"""Pytest configuration and fixtures for API tests.

Tests run against an in-memory SQLite database (aiosqlite) so the upsert and
conditional-update statements execute for real rather than against mocks.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from coach_api.main import register_exception_handlers
from coach_api.middleware import CorrelationIdMiddleware
from coach_api.routes import admin_usage, health, subscriptions, usage_limits
from coach_shared.config import get_settings, refresh_settings
from coach_shared.db.connection import create_session_factory, get_session
from coach_shared.db.models import Base, User

from helpers import FIXED_NOW, TEST_JWT_SECRET, bearer, create_user


# ============================================================================
# Settings
# ============================================================================


@pytest.fixture(autouse=True)
def auth_settings(monkeypatch):
    """Configure the token secret for every test and reset cached settings."""
    monkeypatch.setenv("AUTH_JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.delenv("AUTH_JWT_ALGORITHM", raising=False)
    refresh_settings()
    yield
    get_settings.cache_clear()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory database shared by every connection of one test."""
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
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    factory = create_session_factory(engine)
    async with factory() as session:
        yield session


@pytest.fixture
def clock():
    """A fixed clock for the quota services."""
    return lambda: FIXED_NOW


@pytest.fixture
async def member(session) -> User:
    """A regular (non-admin) user."""
    return await create_user(session, "member@example.com", full_name="Morgan Member")


@pytest.fixture
async def admin(session) -> User:
    """A user whose profile carries the admin flag."""
    return await create_user(session, "admin@example.com", full_name="Ada Admin", is_admin=True)


@pytest.fixture
def member_headers(member) -> dict[str, str]:
    return bearer(member.id)


@pytest.fixture
def admin_headers(admin) -> dict[str, str]:
    return bearer(admin.id, email=admin.email)


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def app(session):
    """Create a FastAPI test application bound to the test session.

    Creates a minimal FastAPI app without the full lifespan initialization
    to avoid database connection attempts during testing.
    """

    @asynccontextmanager
    async def mock_lifespan(app: FastAPI):
        """Mock lifespan that skips database initialization."""
        app.state.db_initialized = False
        yield

    application = FastAPI(
        title="Leadcoach API",
        version="0.1.0",
        lifespan=mock_lifespan,
    )
    application.add_middleware(CorrelationIdMiddleware)
    register_exception_handlers(application)

    application.include_router(health.router)
    application.include_router(usage_limits.router)
    application.include_router(admin_usage.router)
    application.include_router(subscriptions.router)

    async def override_get_session():
        yield session

    application.dependency_overrides[get_session] = override_get_session
    return application


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
