"""Async access to the account store.

Production runs on PostgreSQL through asyncpg; the test suite and local
experiments may point ``DATABASE_URL`` at SQLite through aiosqlite. Upserts go
through :func:`dialect_insert`, which picks the ``ON CONFLICT``-capable INSERT
for whichever of the two is bound.
"""

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import Table, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from tenacity import retry, stop_after_attempt, wait_exponential

from ..config import DatabaseSettings, get_settings
from .models import Base

ASYNC_POSTGRES_SCHEME = "postgresql+asyncpg://"
_PLAIN_POSTGRES_SCHEMES = ("postgres://", "postgresql://")

# Seconds before a pooled connection is recycled
POOL_RECYCLE = 1800


def normalize_database_url(url: str) -> str:
    """Point a plain PostgreSQL URL at the asyncpg driver.

    URLs that already name a driver (``postgresql+asyncpg://``,
    ``sqlite+aiosqlite://``) are returned unchanged.
    """
    for scheme in _PLAIN_POSTGRES_SCHEMES:
        if url.startswith(scheme):
            return ASYNC_POSTGRES_SCHEME + url.removeprefix(scheme)
    return url


def get_database_url() -> str:
    """``DATABASE_URL`` from the environment, else from settings, normalized."""
    url = os.environ.get("DATABASE_URL") or get_settings().database.url
    if not url:
        raise ValueError("Database connection string not found. Set DATABASE_URL")
    return normalize_database_url(url)


def create_engine(url: str | None = None, settings: DatabaseSettings | None = None) -> AsyncEngine:
    """Build the async engine for ``url`` (or the configured URL).

    Pool sizing from ``settings`` applies to PostgreSQL only; SQLite keeps
    the pool SQLAlchemy picks for the driver.
    """
    settings = settings or get_settings().database
    url = normalize_database_url(url) if url else get_database_url()

    options: dict[str, Any] = {"echo": settings.echo}
    if make_url(url).get_backend_name() == "postgresql":
        options.update(
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_recycle=POOL_RECYCLE,
            pool_pre_ping=True,
        )
    return create_async_engine(url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Services re-read rows after every write.
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


def dialect_insert(session: AsyncSession, table: Table | type[Base]) -> Any:
    """INSERT construct with ``on_conflict_do_nothing``/``on_conflict_do_update``."""
    dialect_name = session.get_bind().dialect.name
    if dialect_name == "postgresql":
        return postgresql.insert(table)
    if dialect_name == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"Upserts are not supported on dialect {dialect_name!r}")


class DatabaseConnection:
    """Lazily created engine and session factory with a unit-of-work helper."""

    def __init__(self, url: str | None = None, settings: DatabaseSettings | None = None):
        self._url = url
        self._settings = settings
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_engine(self._url, self._settings)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = create_session_factory(self.engine)
        return self._session_factory

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """One unit of work: committed on clean exit, rolled back on error.

        Usage:
            async with db.session() as session:
                await UsageLedger(session).increment(user_id, "email")
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def connect(self) -> None:
        """Round-trip ``SELECT 1``, retried with exponential backoff."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    async def create_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)


_db: DatabaseConnection | None = None


def get_db() -> DatabaseConnection:
    """Process-wide connection manager, configured from settings on first use."""
    global _db
    if _db is None:
        _db = DatabaseConnection()
    return _db


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a request-scoped session.

    Usage in FastAPI:
        @router.get("/api/usage-limits")
        async def get_usage(session: AsyncSession = Depends(get_session)):
            ...
    """
    async with get_db().session() as session:
        yield session
