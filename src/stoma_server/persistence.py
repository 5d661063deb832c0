"""DiagnosisSink backed by the ``diagnosis_history`` table.

Each save runs in its own short session and transaction, separate from any
request-scoped session, so a failed save can never poison the transaction
of the request that triggered it.
"""

from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stoma_db.repository import DiagnosisRepository
from stoma_triage.interfaces import DiagnosisSink
from stoma_triage.models.session import DiagnosisRecord


class RepositorySink(DiagnosisSink):
    """Writes records through :class:`DiagnosisRepository`.

    Args:
        session_factory: zero-arg callable returning the async session
            factory; resolved on first save so that building the sink never
            opens a connection pool
        repository: repository instance (a fresh one by default)
    """

    def __init__(
        self,
        session_factory: Callable[[], async_sessionmaker[AsyncSession]],
        repository: DiagnosisRepository | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._repo = repository or DiagnosisRepository()

    async def save(self, record: DiagnosisRecord, *, user_id: str) -> None:
        factory = self._session_factory()
        async with factory() as db:
            async with db.begin():
                await self._repo.create_record(
                    db, user_id=user_id, **record.model_dump(),
                )
