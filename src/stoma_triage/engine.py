"""TriageEngine: resolves one questionnaire step at a time.

Stateless engine pattern: the caller supplies the current question id, the
chosen answer index and the image classification code, and gets back the
next step.  No session state is kept between calls, so one engine can serve
any number of concurrent sessions.

Resolution order for :meth:`TriageEngine.advance`:
    1  unknown question id            -> fallback result
    2  answer index out of range      -> fallback result
    3  dynamic-start option           -> class entry question for the code
    4  static link                    -> result registry first, then questions
    5  anything else (malformed data) -> fallback result

``advance`` never raises.  Every fallback is logged at WARNING so authoring
bugs still show up even though the caller receives a well-formed result.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Union

from stoma_triage.constants import (
    CLASS_ENTRY_QIDS,
    EMERGENCY_ENTRY_QID,
    FALLBACK_RESULT_ID,
)
from stoma_triage.models.question import Question
from stoma_triage.models.result import FinalResult
from stoma_triage.ruleset import RulesetError, TriageContentStore, load_default_store

logger = logging.getLogger(__name__)


class TriageEngine:
    """Walks the triage content graph.

    Args:
        store: a loaded :class:`TriageContentStore`
        fallback_result_id: result returned whenever traversal cannot
            continue; defaults to ``FALLBACK_RESULT_ID``

    Raises:
        RulesetError: if the store lacks the emergency entry question or
            the fallback result.  Both are needed for ``advance`` to be
            total, so their absence is a startup error.
    """

    def __init__(
        self,
        store: TriageContentStore,
        *,
        fallback_result_id: str = FALLBACK_RESULT_ID,
    ) -> None:
        self._store = store

        entry = store.get_question(EMERGENCY_ENTRY_QID)
        if entry is None:
            raise RulesetError(f"Entry question '{EMERGENCY_ENTRY_QID}' not in content")
        fallback = store.get_result(fallback_result_id)
        if fallback is None:
            raise RulesetError(f"Fallback result '{fallback_result_id}' not in content")

        self._entry = entry
        self._fallback = fallback

    @property
    def store(self) -> TriageContentStore:
        return self._store

    # ==================================================================
    # Entry points
    # ==================================================================

    def start_emergency_questionnaire(self) -> Question:
        """Return the emergency screening question every session starts with."""
        return self._entry

    def class_entry_question(self, classification: int) -> Question | None:
        """Return the first class-specific question for *classification*.

        Returns None for a code outside the class table.
        """
        qid = CLASS_ENTRY_QIDS.get(classification)
        if qid is None:
            return None
        return self._store.get_question(qid)

    def fallback_result(self) -> FinalResult:
        """The default-safe result used when traversal cannot continue."""
        return self._fallback

    # ==================================================================
    # Step resolution
    # ==================================================================

    def advance(
        self,
        current_qid: str,
        answer_index: Any,
        classification: Any,
    ) -> Union[Question, FinalResult]:
        """Resolve the step that follows answering *current_qid*.

        Args:
            current_qid: id of the question that was answered
            answer_index: 0-based position of the chosen option
            classification: image classification code (1, 2 or 3); only
                consulted when the chosen option is a dynamic start

        Returns:
            The next :class:`Question`, or the :class:`FinalResult` that
            ends the questionnaire.
        """
        question = self._store.get_question(current_qid)
        if question is None:
            return self._fall_back("unknown question %r", current_qid)

        # bool is an int subclass; True/False are not answer positions
        if (
            not isinstance(answer_index, int)
            or isinstance(answer_index, bool)
            or not 0 <= answer_index < len(question.options)
        ):
            return self._fall_back(
                "answer index %r out of range for %s (%d options)",
                answer_index, current_qid, len(question.options),
            )

        option = question.options[answer_index]

        if option.dynamic_start:
            entry = None
            if isinstance(classification, int) and not isinstance(classification, bool):
                entry = self.class_entry_question(classification)
            if entry is None:
                return self._fall_back(
                    "no class entry question for classification %r at %s",
                    classification, current_qid,
                )
            return entry

        target = option.next
        if target is not None:
            result = self._store.get_result(target)
            if result is not None:
                return result
            nxt = self._store.get_question(target)
            if nxt is not None:
                return nxt
            return self._fall_back(
                "broken link %s[%d] -> %r", current_qid, answer_index, target,
            )

        return self._fall_back(
            "option %s[%d] (%r) has no action", current_qid, answer_index, option.label,
        )

    def _fall_back(self, reason: str, *args: Any) -> FinalResult:
        logger.warning(
            "Falling back to %s: " + reason, self._fallback.rid, *args,
        )
        return self._fallback


@functools.lru_cache(maxsize=None)
def default_engine() -> TriageEngine:
    """Engine over the packaged content, built once per process."""
    return TriageEngine(load_default_store())
