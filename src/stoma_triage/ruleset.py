"""TriageContentStore: loads the triage YAML content into typed registries.

This is the single source of truth for question and result data at runtime.
The store is loaded once at startup; afterwards its registries are read-only
views and are safe to share across threads and sessions.

Usage::

    store = TriageContentStore()      # defaults to the packaged rulesets/v1/
    store.load()                      # parse + validate all YAML files

    q = store.get_question("E_Q1")
    r = store.get_result("C1_R1")
"""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

import yaml
from pydantic import ValidationError

from stoma_triage.constants import CONTENT_GROUPS
from stoma_triage.models.question import Question
from stoma_triage.models.result import FinalResult

logger = logging.getLogger(__name__)


class RulesetError(ValueError):
    """Triage content is missing, malformed, or internally inconsistent."""


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def default_ruleset_dir() -> Path:
    """Return the content directory shipped inside the package."""
    return Path(__file__).resolve().parent / "rulesets" / "v1"


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


# ---------------------------------------------------------------------------
# TriageContentStore
# ---------------------------------------------------------------------------

class TriageContentStore:
    """Loads ``questions.yaml`` and ``results.yaml`` and provides typed lookup.

    Attributes available after :meth:`load`:

        questions: read-only mapping qid -> Question
        results: read-only mapping rid -> FinalResult
    """

    def __init__(self, ruleset_dir: str | Path | None = None) -> None:
        if ruleset_dir is None:
            ruleset_dir = default_ruleset_dir()
        self._base = Path(ruleset_dir)
        self._loaded = False

        # Populated by load(); only ever exposed through the proxies below
        self._questions: dict[str, Question] = {}
        self._results: dict[str, FinalResult] = {}

        # Ordered ids per content group (preserves YAML order)
        self._question_groups: dict[str, list[str]] = {}
        self._result_groups: dict[str, list[str]] = {}

        self.questions: Mapping[str, Question] = MappingProxyType(self._questions)
        self.results: Mapping[str, FinalResult] = MappingProxyType(self._results)

    @property
    def ruleset_dir(self) -> Path:
        return self._base

    @property
    def loaded(self) -> bool:
        return self._loaded

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, *, validate: bool = True) -> None:
        """Parse both YAML files into typed models.

        Call this once at startup.  With ``validate=True`` (the default) the
        content graph is checked for consistency and a :class:`RulesetError`
        is raised listing every problem found.

        Raises:
            FileNotFoundError: if a content file is missing.
            RulesetError: on duplicate ids, unknown groups, schema errors,
                or (when validating) an inconsistent graph.
        """
        if self._loaded:
            raise RulesetError(f"Content already loaded from {self._base}")

        self._load_questions()
        self._load_results()
        self._loaded = True
        logger.info(
            "TriageContentStore loaded: %d questions, %d results from %s",
            len(self._questions),
            len(self._results),
            self._base,
        )

        if validate:
            self.validate()

    def _load_questions(self) -> None:
        raw = load_yaml(self._base / "questions.yaml") or {}
        for group, items in self._iter_groups(raw, "questions.yaml"):
            order: list[str] = []
            for q_dict in items:
                try:
                    q = Question.model_validate({**q_dict, "group": group})
                except ValidationError as exc:
                    raise RulesetError(
                        f"Invalid question in questions.yaml/{group}: {exc}"
                    ) from exc
                if q.qid in self._questions:
                    raise RulesetError(f"Duplicate question id '{q.qid}'")
                self._questions[q.qid] = q
                order.append(q.qid)
            self._question_groups[group] = order

    def _load_results(self) -> None:
        raw = load_yaml(self._base / "results.yaml") or {}
        for group, items in self._iter_groups(raw, "results.yaml"):
            order: list[str] = []
            for r_dict in items:
                try:
                    r = FinalResult.model_validate({**r_dict, "group": group})
                except ValidationError as exc:
                    raise RulesetError(
                        f"Invalid result in results.yaml/{group}: {exc}"
                    ) from exc
                if r.rid in self._results:
                    raise RulesetError(f"Duplicate result id '{r.rid}'")
                self._results[r.rid] = r
                order.append(r.rid)
            self._result_groups[group] = order

    @staticmethod
    def _iter_groups(raw: Any, filename: str):
        if not isinstance(raw, dict):
            raise RulesetError(f"{filename} must map content groups to lists")
        for group, items in raw.items():
            if group not in CONTENT_GROUPS:
                raise RulesetError(f"Unknown content group '{group}' in {filename}")
            yield group, items or []

    def validate(self):
        """Run the consistency checks and raise if any error is found.

        Returns the :class:`~stoma_triage.validation.ContentReport` so
        callers can inspect reachability details.
        """
        # Imported here: validation walks the store through graph helpers
        from stoma_triage.validation import check_content

        report = check_content(self)
        if report.unreachable_questions:
            logger.info(
                "Questions not reachable from the entry point: %s",
                ", ".join(report.unreachable_questions),
            )
        if report.errors:
            raise RulesetError(
                "Triage content failed validation:\n  - "
                + "\n  - ".join(report.errors)
            )
        return report

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def get_question(self, qid: str) -> Optional[Question]:
        """Look up a question by id.  Returns None if absent."""
        return self._questions.get(qid)

    def get_result(self, rid: str) -> Optional[FinalResult]:
        """Look up a terminal result by id.  Returns None if absent."""
        return self._results.get(rid)

    def questions_in_group(self, group: str) -> list[Question]:
        """Return the questions authored under *group*, in YAML order."""
        return [self._questions[qid] for qid in self._question_groups.get(group, [])]

    def results_in_group(self, group: str) -> list[FinalResult]:
        """Return the results authored under *group*, in YAML order."""
        return [self._results[rid] for rid in self._result_groups.get(group, [])]


@functools.lru_cache(maxsize=None)
def load_default_store() -> TriageContentStore:
    """Load and validate the packaged content once per process."""
    store = TriageContentStore()
    store.load()
    return store
