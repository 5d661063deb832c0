"""DiagnosisRepository tests against an AsyncMock session.

No database is needed: the tests check what the repository adds, flushes
and queries, not what PostgreSQL returns.
"""

import uuid
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from stoma_db.models.record import DiagnosisHistory
from stoma_db.repository import DiagnosisRepository, month_range
from stoma_server.persistence import RepositorySink
from stoma_triage.models import DiagnosisRecord


@pytest.fixture
def mock_db():
    """AsyncMock standing in for AsyncSession.

    ``add`` is synchronous, and so is the ``Result`` that ``execute`` resolves
    to: ``result.scalars().all()`` must not produce coroutines.
    """
    db = AsyncMock()
    db.add = MagicMock()
    db.execute.return_value = MagicMock()
    return db


def _executed(mock_db):
    """Return (sql text, bound parameter values) of the last executed statement."""
    compiled = mock_db.execute.await_args.args[0].compile()
    return str(compiled), list(compiled.params.values())


# =====================================================================
# Month ranges
# =====================================================================


class TestMonthRange:

    def test_regular_month(self):
        start, end = month_range(2026, 10)
        assert start == datetime(2026, 10, 1, tzinfo=timezone.utc)
        assert end == datetime(2026, 11, 1, tzinfo=timezone.utc)

    def test_december_rolls_over(self):
        start, end = month_range(2026, 12)
        assert end == datetime(2027, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("month", [0, 13])
    def test_invalid_month(self, month):
        with pytest.raises(ValueError, match="Invalid month"):
            month_range(2026, month)


# =====================================================================
# Repository
# =====================================================================


class TestRepository:

    @pytest.mark.asyncio
    async def test_create_record_adds_and_flushes(self, mock_db):
        repo = DiagnosisRepository()
        row = await repo.create_record(
            mock_db, user_id="u1", diagnosis="정상 상태", risk_level=1,
        )
        assert isinstance(row, DiagnosisHistory)
        assert row.user_id == "u1"
        assert row.risk_level == 1
        mock_db.add.assert_called_once_with(row)
        mock_db.flush.assert_awaited_once()
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_by_id(self, mock_db):
        pk = uuid.uuid4()
        await DiagnosisRepository().get_by_id(mock_db, pk)
        mock_db.get.assert_awaited_once_with(DiagnosisHistory, pk)

    @pytest.mark.asyncio
    async def test_list_by_date_filters_one_day(self, mock_db):
        await DiagnosisRepository().list_by_date(mock_db, "u1", date(2026, 10, 18))
        sql, params = _executed(mock_db)
        assert datetime(2026, 10, 18, tzinfo=timezone.utc) in params
        assert datetime(2026, 10, 19, tzinfo=timezone.utc) in params
        assert "u1" in params
        assert "ORDER BY diagnosis_history.created_at DESC" in sql

    @pytest.mark.asyncio
    async def test_list_for_month(self, mock_db):
        await DiagnosisRepository().list_for_month(mock_db, "u1", 2026, 2)
        _, params = _executed(mock_db)
        assert datetime(2026, 2, 1, tzinfo=timezone.utc) in params
        assert datetime(2026, 3, 1, tzinfo=timezone.utc) in params

    @pytest.mark.asyncio
    async def test_list_by_user_paginates(self, mock_db):
        rows = [MagicMock(), MagicMock()]
        mock_db.execute.return_value.scalars.return_value.all.return_value = rows
        listed = await DiagnosisRepository().list_by_user(mock_db, "u1", limit=5, offset=10)
        assert listed == rows
        sql, params = _executed(mock_db)
        assert "LIMIT" in sql and "OFFSET" in sql
        assert 5 in params and 10 in params


# =====================================================================
# RepositorySink
# =====================================================================


class TestRepositorySink:

    @pytest.mark.asyncio
    async def test_sink_writes_record_in_own_transaction(self, mock_db):
        repo = AsyncMock(spec=DiagnosisRepository)
        # factory() -> async context manager yielding mock_db
        factory = MagicMock()
        factory.return_value.__aenter__.return_value = mock_db
        mock_db.begin = MagicMock()

        sink = RepositorySink(lambda: factory, repository=repo)
        record = DiagnosisRecord(diagnosis="x", risk_level=2, image_url="u")
        await sink.save(record, user_id="u1")

        mock_db.begin.assert_called_once()
        repo.create_record.assert_awaited_once()
        kwargs = repo.create_record.await_args.kwargs
        assert kwargs["user_id"] == "u1"
        assert kwargs["risk_level"] == 2
        assert kwargs["image_url"] == "u"
