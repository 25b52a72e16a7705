"""
Database connection management.

Async SQLAlchemy engine and session factory for the platform's PostgreSQL
database. Only the bootstrap path talks to the database; the sync server and
capture hooks never do.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from flowsync.config import Settings, get_settings
from flowsync.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine(settings: Settings | None = None) -> AsyncEngine:
    """
    Get (or lazily create) the async engine.

    Raises:
        ConfigurationError: If database connection settings are incomplete
    """
    global _engine
    if _engine is None:
        settings = settings or get_settings()
        if not settings.database_configured:
            raise ConfigurationError(
                "Database connection is not configured "
                "(DB_POSTGRESDB_HOST, DB_POSTGRESDB_DATABASE and DB_POSTGRESDB_USER are required)"
            )
        # A single sequential pass needs one connection
        _engine = create_async_engine(
            settings.database_url,
            pool_size=1,
            max_overflow=0,
            pool_pre_ping=True,
        )
    return _engine


def get_session_factory(settings: Settings | None = None) -> async_sessionmaker[AsyncSession]:
    """Get (or lazily create) the session factory."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(settings),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


async def check_connection(settings: Settings | None = None) -> None:
    """
    Verify the database is reachable.

    Raises:
        Exception: Whatever the driver raises when the connection fails
    """
    engine = get_engine(settings)
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info("Database connection established")


@asynccontextmanager
async def get_db_context(settings: Settings | None = None) -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a session for the duration of a block.

    Rolls back on error; callers commit explicitly.
    """
    factory = get_session_factory(settings)
    async with factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def close_db() -> None:
    """Dispose of the engine and reset module state."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
