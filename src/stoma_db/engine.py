"""Async engine and session factory for the diagnosis-history database.

:class:`HistoryDatabase` binds one :class:`DatabaseSettings` to an engine and
a session factory.  The process-wide instance is created on first use by
:func:`get_database` and released by :func:`dispose_database` at shutdown.
"""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from stoma_db.config import DatabaseSettings, load_database_settings

logger = logging.getLogger(__name__)


class HistoryDatabase:
    """Connection pool and sessions for the ``diagnosis_history`` table.

    Sessions keep attributes loaded after commit so a route can serialise a
    record it just created.
    """

    def __init__(self, settings: DatabaseSettings) -> None:
        self.settings = settings
        self.engine: AsyncEngine = create_async_engine(
            settings.async_url,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_recycle=settings.pool_recycle,
            pool_pre_ping=True,
            connect_args=settings.connect_args,
        )
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine, expire_on_commit=False,
        )

    async def ping(self) -> None:
        """Round-trip ``SELECT 1``; raises if the database is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        await self.engine.dispose()


_database: HistoryDatabase | None = None


def get_database() -> HistoryDatabase:
    """Return the process-wide database, building it from the environment once."""
    global _database
    if _database is None:
        settings = load_database_settings()
        _database = HistoryDatabase(settings)
        logger.info(
            "History database pool ready (size=%d, overflow=%d, statement_timeout=%dms)",
            settings.pool_size, settings.max_overflow, settings.statement_timeout_ms,
        )
    return _database


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return get_database().session_factory


async def dispose_database() -> None:
    """Close the pool if one was opened; the next call to get_database reopens."""
    global _database
    if _database is not None:
        await _database.dispose()
        _database = None
