"""Diagnosis history endpoints: save and list a user's past results.

All endpoints require the ``X-User-ID`` header.  Listing supports three
modes: paginated (default), a single day (``date=YYYY-MM-DD``) or a
calendar month (``year`` and ``month`` together).
"""

import uuid
from datetime import date as date_type
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from stoma_db.repository import DiagnosisRepository
from stoma_triage.models import DiagnosisRecord

from stoma_server.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from stoma_server.dependencies import get_db, get_repository, get_user_id
from stoma_server.errors import NotFoundError

router = APIRouter(prefix="/history", tags=["history"])


# ------------------------------------------------------------------
# Response models
# ------------------------------------------------------------------

class HistoryRecord(BaseModel):
    """One stored diagnosis as returned to the client."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: str
    diagnosis: str
    description: Optional[str] = None
    risk_level: Optional[int] = None
    advice: Optional[str] = None
    emergency_alert: Optional[str] = None
    image_url: Optional[str] = None
    brightness: Optional[float] = None
    sacs_grade: Optional[str] = None
    created_at: datetime


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("", status_code=201)
async def create_history_record(
    body: DiagnosisRecord,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    repo: DiagnosisRepository = Depends(get_repository),
) -> HistoryRecord:
    """Store a completed diagnosis for the current user."""
    row = await repo.create_record(db, user_id=user_id, **body.model_dump())
    return HistoryRecord.model_validate(row)


@router.get("")
async def list_history(
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    repo: DiagnosisRepository = Depends(get_repository),
    date: Optional[date_type] = Query(None),
    year: Optional[int] = Query(None, ge=1),
    month: Optional[int] = Query(None, ge=1, le=12),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
) -> list[HistoryRecord]:
    """List the current user's diagnoses, most recent first.

    ``date`` wins over ``year``/``month``; pagination applies only when
    neither filter is given.
    """
    if date is not None:
        rows = await repo.list_by_date(db, user_id, date)
    elif year is not None or month is not None:
        if year is None or month is None:
            raise ValueError("year and month must be given together")
        rows = await repo.list_for_month(db, user_id, year, month)
    else:
        rows = await repo.list_by_user(db, user_id, limit=limit, offset=offset)
    return [HistoryRecord.model_validate(r) for r in rows]


@router.get("/{record_id}")
async def get_history_record(
    record_id: uuid.UUID,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    repo: DiagnosisRepository = Depends(get_repository),
) -> HistoryRecord:
    """Fetch one of the current user's diagnoses by id.

    Records owned by other users are reported as not found.
    """
    row = await repo.get_by_id(db, record_id)
    if row is None or row.user_id != user_id:
        raise NotFoundError(f"Record not found: {record_id}")
    return HistoryRecord.model_validate(row)
