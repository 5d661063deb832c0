"""Abstract interface for the persistence collaborator.

The SDK itself never touches a database.  When a session reaches a final
result the caller packages it as a :class:`DiagnosisRecord` and hands it
to a :class:`DiagnosisSink`.  ``stoma_server`` ships one implementation
backed by the ``diagnosis_history`` table; tests use in-memory ones.

Saving is best-effort: the result shown to the patient must not depend on
whether the record was stored.  :func:`save_best_effort` enforces that.

Typical integration flow::

    session = TriageSession(engine, classification=code, image_url=url)
    # ... answer questions until session.is_finished ...

    sink: DiagnosisSink = MySink(...)
    saved = await save_best_effort(sink, session.to_record(), user_id=uid)
    # display session.result regardless of ``saved``
"""

import logging
from abc import ABC, abstractmethod

from stoma_triage.models.session import DiagnosisRecord

logger = logging.getLogger(__name__)


class DiagnosisSink(ABC):
    """Interface for storing completed diagnoses."""

    @abstractmethod
    async def save(self, record: DiagnosisRecord, *, user_id: str) -> None:
        """Persist *record* for *user_id*.

        Parameters
        ----------
        record:
            The completed diagnosis, including the optional image URL.
        user_id:
            Opaque identifier of the patient the record belongs to.

        Raises
        ------
        Exception
            Any failure; :func:`save_best_effort` absorbs it.
        """
        ...


async def save_best_effort(
    sink: DiagnosisSink, record: DiagnosisRecord, *, user_id: str
) -> bool:
    """Save *record* through *sink*, logging instead of raising on failure.

    Returns True if the sink accepted the record, False otherwise.
    """
    try:
        await sink.save(record, user_id=user_id)
    except Exception:
        logger.exception(
            "Failed to save diagnosis %r for user_id=%s", record.diagnosis, user_id
        )
        return False
    return True
