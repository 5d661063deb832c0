"""Connection settings for the diagnosis-history database.

History traffic is light: one short INSERT when a triage walk ends, and
calendar reads of one user's day or month.  The defaults size the pool for
that, and every pooled connection is pinned to UTC so the repository's
``[day 00:00, next day 00:00)`` ranges line up with ``created_at``.

``DATABASE_URL`` takes precedence over the ``PG_*`` parts.  Either may name
the asyncpg driver or the plain scheme; :class:`DatabaseSettings` derives
both forms (the app runs on asyncpg, offline Alembic renders plain SQL).
"""

import os
from dataclasses import dataclass

ASYNC_SCHEME = "postgresql+asyncpg://"
PLAIN_SCHEME = "postgresql://"


def _with_scheme(url: str, scheme: str) -> str:
    for prefix in (ASYNC_SCHEME, PLAIN_SCHEME):
        if url.startswith(prefix):
            return scheme + url[len(prefix):]
    return url


@dataclass(frozen=True)
class DatabaseSettings:
    """Where the history table lives and how the pool is shaped.

    Attributes:
        url: connection URL in either scheme
        pool_size: connections kept open per process
        max_overflow: extra connections allowed under a burst of saves
        pool_recycle: seconds before a pooled connection is replaced
        statement_timeout_ms: server-side cap on any single statement;
            a slow calendar read fails instead of holding a connection the
            best-effort save is waiting for
        application_name: shown in ``pg_stat_activity``
    """

    url: str
    pool_size: int = 3
    max_overflow: int = 5
    pool_recycle: int = 1800
    statement_timeout_ms: int = 5000
    application_name: str = "stoma-triage"

    @property
    def async_url(self) -> str:
        return _with_scheme(self.url, ASYNC_SCHEME)

    @property
    def plain_url(self) -> str:
        return _with_scheme(self.url, PLAIN_SCHEME)

    @property
    def connect_args(self) -> dict:
        """asyncpg ``server_settings`` applied to every new connection."""
        return {
            "server_settings": {
                "application_name": self.application_name,
                "statement_timeout": str(self.statement_timeout_ms),
                "timezone": "UTC",
            },
        }


def load_database_settings() -> DatabaseSettings:
    """Build :class:`DatabaseSettings` from environment variables."""
    url = os.getenv("DATABASE_URL") or "{scheme}{user}:{password}@{host}:{port}/{db}".format(
        scheme=PLAIN_SCHEME,
        user=os.getenv("PG_USER", "stoma"),
        password=os.getenv("PG_PASSWORD", "stoma"),
        host=os.getenv("PG_HOST", "localhost"),
        port=os.getenv("PG_PORT", "5432"),
        db=os.getenv("PG_DATABASE", "stoma"),
    )
    return DatabaseSettings(
        url=url,
        pool_size=int(os.getenv("PG_POOL_SIZE", "3")),
        max_overflow=int(os.getenv("PG_MAX_OVERFLOW", "5")),
        pool_recycle=int(os.getenv("PG_POOL_RECYCLE", "1800")),
        statement_timeout_ms=int(os.getenv("PG_STATEMENT_TIMEOUT_MS", "5000")),
        application_name=os.getenv("PG_APPLICATION_NAME", "stoma-triage"),
    )
