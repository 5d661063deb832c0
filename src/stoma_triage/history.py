"""TriageSession: caller-side state for one walk through the questionnaire.

The engine is stateless; this class owns everything a UI needs between
steps: the question on screen, the classification code, the provisional
diagnosis label, and a stack of answered steps for back-navigation.

Each :meth:`TriageSession.answer` pushes ``(question, answer_index,
provisional_diagnosis)`` *before* advancing, so :meth:`TriageSession.back`
can pop the entry and restore both the question and the label that was
showing at that point.

Usage::

    session = TriageSession(engine, classification=2)
    step = session.answer(1)          # E_Q1 -> E_Q2
    step = session.answer(1)          # E_Q2 -> C2_Q1 (dynamic start)
    session.back()                    # back on E_Q2
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from stoma_triage.constants import CLASS_ENTRY_QIDS
from stoma_triage.engine import TriageEngine
from stoma_triage.models.question import Question
from stoma_triage.models.result import FinalResult
from stoma_triage.models.session import DiagnosisRecord, HistoryEntry

logger = logging.getLogger(__name__)


class TriageSession:
    """One patient's pass through the triage questions.

    Args:
        engine: the shared :class:`TriageEngine`
        classification: image classification code, 1..3
        image_url: optional URL of the classified photo, carried into
            :meth:`to_record`

    Raises:
        ValueError: if *classification* is not a known class code.
    """

    def __init__(
        self,
        engine: TriageEngine,
        classification: int,
        image_url: str | None = None,
    ) -> None:
        if (
            not isinstance(classification, int)
            or isinstance(classification, bool)
            or classification not in CLASS_ENTRY_QIDS
        ):
            raise ValueError(
                f"Invalid classification: {classification!r} "
                f"(expected one of {sorted(CLASS_ENTRY_QIDS)})"
            )
        self._engine = engine
        self._classification = classification
        self._image_url = image_url

        self._current: Union[Question, FinalResult] = engine.start_emergency_questionnaire()
        self._history: list[HistoryEntry] = []
        self._provisional: Optional[str] = None
        self._apply_label(self._current)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def classification(self) -> int:
        return self._classification

    @property
    def image_url(self) -> str | None:
        return self._image_url

    @property
    def current(self) -> Union[Question, FinalResult]:
        """The step on screen: a question, or the final result."""
        return self._current

    @property
    def is_finished(self) -> bool:
        return isinstance(self._current, FinalResult)

    @property
    def result(self) -> FinalResult | None:
        return self._current if isinstance(self._current, FinalResult) else None

    @property
    def provisional_diagnosis(self) -> str | None:
        return self._provisional

    @property
    def can_go_back(self) -> bool:
        return bool(self._history)

    @property
    def history(self) -> list[HistoryEntry]:
        return list(self._history)

    @property
    def answers(self) -> list[tuple[str, int]]:
        """Answered ``(qid, answer_index)`` pairs in order."""
        return [(h.question.qid, h.answer_index) for h in self._history]

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def answer(self, answer_index: int) -> Union[Question, FinalResult]:
        """Answer the current question and move to the next step.

        An integer outside the option range is recorded as given and ends the
        walk in the engine's fallback result.

        Raises:
            ValueError: if the session already reached a result, or
                *answer_index* is not an integer.
        """
        if self.is_finished:
            raise ValueError(
                f"Session already finished with result {self._current.rid}"
            )
        # The same value goes into history and to the engine
        if not isinstance(answer_index, int) or isinstance(answer_index, bool):
            raise ValueError(f"Invalid answer index: {answer_index!r}")
        question = self._current
        self._history.append(HistoryEntry(
            question=question,
            answer_index=answer_index,
            provisional_diagnosis=self._provisional,
        ))
        step = self._engine.advance(question.qid, answer_index, self._classification)
        self._current = step
        self._apply_label(step)
        logger.debug(
            "Answered %s[%s] -> %s %s",
            question.qid, answer_index, step.type,
            step.qid if isinstance(step, Question) else step.rid,
        )
        return step

    def back(self) -> Question:
        """Return to the previously answered question.

        Works from a final result too, reopening the last question.

        Raises:
            ValueError: if no question has been answered yet.
        """
        if not self._history:
            raise ValueError("Cannot go back: already at the first question")
        entry = self._history.pop()
        self._current = entry.question
        self._provisional = entry.provisional_diagnosis
        return entry.question

    def to_record(self) -> DiagnosisRecord:
        """Package the final result for persistence.

        Raises:
            ValueError: if the session has not reached a result yet.
        """
        result = self.result
        if result is None:
            raise ValueError("Cannot build a record before the session has finished")
        return DiagnosisRecord.from_result(result, image_url=self._image_url)

    def _apply_label(self, step: Union[Question, FinalResult]) -> None:
        # A question without its own label keeps the previous one
        if isinstance(step, Question) and step.temp_diagnosis:
            self._provisional = step.temp_diagnosis
