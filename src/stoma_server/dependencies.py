"""FastAPI dependency injection: provides DB sessions, engine, store, and user identity.

Each request that touches the database gets a fresh ``AsyncSession`` via
``get_db()``.  The session is committed on success and rolled back on error,
matching the repository convention of calling ``flush()`` but never
``commit()``.
"""

import hmac
from typing import AsyncGenerator

from fastapi import Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from stoma_db.engine import get_session_factory
from stoma_db.repository import DiagnosisRepository
from stoma_triage.engine import TriageEngine
from stoma_triage.interfaces import DiagnosisSink
from stoma_triage.ruleset import TriageContentStore


# ------------------------------------------------------------------
# Database session: transaction boundary lives here
# ------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session; commit on success, rollback on error."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_repository() -> DiagnosisRepository:
    return DiagnosisRepository()


# ------------------------------------------------------------------
# Engine, store & sink: stashed on app.state during lifespan
# ------------------------------------------------------------------

def get_triage_engine(request: Request) -> TriageEngine:
    """Return the TriageEngine singleton from ``app.state``."""
    return request.app.state.engine


def get_store(request: Request) -> TriageContentStore:
    """Return the TriageContentStore singleton from ``app.state``."""
    return request.app.state.store


def get_diagnosis_sink(request: Request) -> DiagnosisSink | None:
    """Return the sink used for automatic saves, or None when disabled."""
    if not request.app.state.settings.persist_results:
        return None
    return request.app.state.diagnosis_sink


# ------------------------------------------------------------------
# User identity: extracted from the X-User-ID header
# ------------------------------------------------------------------

def _check_proxy_secret(request: Request, x_proxy_secret: str | None) -> None:
    """Reject the request unless it came through the trusted gateway.

    Only enforced when ``TRUSTED_PROXY_SECRET`` is configured.
    """
    expected_secret: str | None = request.app.state.settings.trusted_proxy_secret
    if not expected_secret:
        return
    if not x_proxy_secret:
        raise HTTPException(status_code=403, detail="X-Proxy-Secret header is required")
    # Constant-time comparison
    if not hmac.compare_digest(x_proxy_secret, expected_secret):
        raise HTTPException(status_code=403, detail="Invalid proxy secret")


async def get_user_id(
    request: Request,
    x_user_id: str | None = Header(None, alias="X-User-ID"),
    x_proxy_secret: str | None = Header(None, alias="X-Proxy-Secret"),
) -> str:
    """Extract user identity from the ``X-User-ID`` header.

    Returns 401 if the header is missing; history endpoints need a caller.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="X-User-ID header is required")
    _check_proxy_secret(request, x_proxy_secret)
    return x_user_id


async def get_optional_user_id(
    request: Request,
    x_user_id: str | None = Header(None, alias="X-User-ID"),
    x_proxy_secret: str | None = Header(None, alias="X-Proxy-Secret"),
) -> str | None:
    """Like :func:`get_user_id`, but anonymous callers get None.

    Triage itself works without identity; a user id only enables saving.
    """
    if not x_user_id:
        return None
    _check_proxy_secret(request, x_proxy_secret)
    return x_user_id
