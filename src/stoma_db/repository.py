"""Async CRUD repository for DiagnosisHistory.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries.

Date filters work on UTC calendar days: a day is the half-open range
``[00:00, next day 00:00)`` and a month is ``[1st, 1st of next month)``.
"""

import uuid
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stoma_db.models.record import DiagnosisHistory


def _day_start(d: date) -> datetime:
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


def month_range(year: int, month: int) -> tuple[datetime, datetime]:
    """Return the UTC ``[start, end)`` datetimes covering *year*-*month*.

    Raises:
        ValueError: if *month* is not 1..12.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return _day_start(start), _day_start(end)


class DiagnosisRepository:
    """Async read/write operations on the ``diagnosis_history`` table."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_record(
        self,
        db: AsyncSession,
        *,
        user_id: str,
        diagnosis: str,
        description: str | None = None,
        risk_level: int | None = None,
        advice: str | None = None,
        emergency_alert: str | None = None,
        image_url: str | None = None,
        brightness: float | None = None,
        sacs_grade: str | None = None,
    ) -> DiagnosisHistory:
        """Insert a new history row and return it.

        The caller must ``await db.commit()`` to persist.
        """
        row = DiagnosisHistory(
            user_id=user_id,
            diagnosis=diagnosis,
            description=description,
            risk_level=risk_level,
            advice=advice,
            emergency_alert=emergency_alert,
            image_url=image_url,
            brightness=brightness,
            sacs_grade=sacs_grade,
        )
        db.add(row)
        await db.flush()  # Populate id and created_at
        return row

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(
        self, db: AsyncSession, record_id: uuid.UUID
    ) -> DiagnosisHistory | None:
        """Fetch a record by its primary-key UUID."""
        return await db.get(DiagnosisHistory, record_id)

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> list[DiagnosisHistory]:
        """List a user's records, most recent first."""
        stmt = (
            select(DiagnosisHistory)
            .where(DiagnosisHistory.user_id == user_id)
            .order_by(DiagnosisHistory.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def list_by_date(
        self, db: AsyncSession, user_id: str, day: date
    ) -> list[DiagnosisHistory]:
        """List a user's records created on *day*, most recent first."""
        start = _day_start(day)
        return await self._list_between(db, user_id, start, start + timedelta(days=1))

    async def list_for_month(
        self, db: AsyncSession, user_id: str, year: int, month: int
    ) -> list[DiagnosisHistory]:
        """List a user's records created in *year*-*month*, most recent first."""
        start, end = month_range(year, month)
        return await self._list_between(db, user_id, start, end)

    async def _list_between(
        self,
        db: AsyncSession,
        user_id: str,
        start: datetime,
        end: datetime,
    ) -> list[DiagnosisHistory]:
        stmt = (
            select(DiagnosisHistory)
            .where(
                DiagnosisHistory.user_id == user_id,
                DiagnosisHistory.created_at >= start,
                DiagnosisHistory.created_at < end,
            )
            .order_by(DiagnosisHistory.created_at.desc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())
