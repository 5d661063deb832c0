"""Load-time consistency checks for the triage content graph.

Links between nodes are plain ids in YAML, so nothing structural stops an
option from pointing at a node that does not exist.  :func:`check_content`
walks every option once at startup and collects all problems, so a broken
link fails the deployment instead of silently routing a patient to the
fallback result at runtime.

Checked:
  - the emergency entry and follow-up questions exist, and the entry links
    to the follow-up
  - every class entry question exists and is authored in its class group
  - the fallback result exists
  - no id is used by both a question and a result
  - every option has an action, and every goto / result target exists in
    the matching registry
  - dynamic-start options only appear on the emergency follow-up question
  - the question graph has no cycle and its longest walk stays within
    ``MAX_TRIAGE_DEPTH`` questions
  - no class-specific question is reachable from the entry without passing
    through the emergency follow-up

Questions or results that nothing links to are reported but not rejected.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

from stoma_triage.constants import (
    CLASS_ENTRY_QIDS,
    CLASS_GROUPS,
    EMERGENCY_ENTRY_QID,
    EMERGENCY_FOLLOWUP_QID,
    FALLBACK_RESULT_ID,
    MAX_TRIAGE_DEPTH,
)
from stoma_triage.graph import next_question_ids, question_edges
from stoma_triage.models.action import DynamicStartAction, GotoAction, ResultAction


@dataclass
class ContentReport:
    """Outcome of :func:`check_content`."""

    errors: list[str] = field(default_factory=list)
    unreachable_questions: list[str] = field(default_factory=list)
    unreachable_results: list[str] = field(default_factory=list)
    # Most questions answered on any walk from the entry; None if cyclic
    max_depth: int | None = None

    @property
    def ok(self) -> bool:
        return not self.errors


def check_content(store) -> ContentReport:
    """Validate *store* and return a report of every problem found."""
    report = ContentReport()
    questions = store.questions
    results = store.results

    # --- Fixed entry points ---
    entry = questions.get(EMERGENCY_ENTRY_QID)
    if entry is None:
        report.errors.append(f"Emergency entry question '{EMERGENCY_ENTRY_QID}' is missing")
    if EMERGENCY_FOLLOWUP_QID not in questions:
        report.errors.append(
            f"Emergency follow-up question '{EMERGENCY_FOLLOWUP_QID}' is missing"
        )
    elif entry is not None and EMERGENCY_FOLLOWUP_QID not in next_question_ids(entry):
        report.errors.append(
            f"'{EMERGENCY_ENTRY_QID}' does not lead to '{EMERGENCY_FOLLOWUP_QID}'"
        )

    for code, qid in CLASS_ENTRY_QIDS.items():
        q = questions.get(qid)
        if q is None:
            report.errors.append(f"Class {code} entry question '{qid}' is missing")
        elif q.group != CLASS_GROUPS[code]:
            report.errors.append(
                f"Class {code} entry question '{qid}' is authored in group "
                f"'{q.group}', expected '{CLASS_GROUPS[code]}'"
            )

    if FALLBACK_RESULT_ID not in results:
        report.errors.append(f"Fallback result '{FALLBACK_RESULT_ID}' is missing")

    # --- Namespace collisions ---
    for shared in sorted(set(questions) & set(results)):
        report.errors.append(f"Id '{shared}' is used by both a question and a result")

    # --- Per-option links ---
    for q in questions.values():
        for i, opt in enumerate(q.options):
            where = f"{q.qid} option {i} ('{opt.label}')"
            act = opt.action
            if act is None:
                report.errors.append(f"{where} has no action")
            elif isinstance(act, GotoAction):
                if act.qid not in questions:
                    kind = "a result" if act.qid in results else "nothing"
                    report.errors.append(
                        f"{where} goes to question '{act.qid}', which is {kind}"
                    )
            elif isinstance(act, ResultAction):
                if act.rid not in results:
                    kind = "a question" if act.rid in questions else "nothing"
                    report.errors.append(
                        f"{where} ends with result '{act.rid}', which is {kind}"
                    )
            elif isinstance(act, DynamicStartAction):
                if q.qid != EMERGENCY_FOLLOWUP_QID:
                    report.errors.append(
                        f"{where} is a dynamic start; only "
                        f"'{EMERGENCY_FOLLOWUP_QID}' may branch on classification"
                    )

    # --- Cycles and depth ---
    cycle = _find_cycle(questions)
    if cycle:
        report.errors.append("Question cycle: " + " -> ".join(cycle))
    elif entry is not None:
        report.max_depth = _longest_walk(questions, EMERGENCY_ENTRY_QID)
        if report.max_depth > MAX_TRIAGE_DEPTH:
            report.errors.append(
                f"Longest walk asks {report.max_depth} questions, "
                f"limit is {MAX_TRIAGE_DEPTH}"
            )

    if entry is None:
        return report

    # --- Emergency precedence: walk from the entry with the follow-up blocked ---
    class_groups = set(CLASS_GROUPS.values())
    for qid in _reachable(questions, EMERGENCY_ENTRY_QID, blocked={EMERGENCY_FOLLOWUP_QID}):
        if questions[qid].group in class_groups:
            report.errors.append(
                f"Class question '{qid}' is reachable without passing "
                f"'{EMERGENCY_FOLLOWUP_QID}'"
            )

    # --- Reachability (informational) ---
    seen_questions = _reachable(questions, EMERGENCY_ENTRY_QID)
    seen_results = {
        e.target
        for qid in seen_questions
        for e in question_edges(questions[qid])
        if e.kind == "result"
    }
    report.unreachable_questions = [qid for qid in questions if qid not in seen_questions]
    report.unreachable_results = [rid for rid in results if rid not in seen_results]
    return report


def _reachable(questions, start: str, blocked: set[str] | None = None) -> list[str]:
    """Breadth-first list of question ids reachable from *start*.

    Questions in *blocked* are never entered.
    """
    blocked = blocked or set()
    order: list[str] = []
    seen = {start}
    queue = deque([start])
    while queue:
        qid = queue.popleft()
        order.append(qid)
        for nxt in next_question_ids(questions[qid]):
            if nxt in seen or nxt in blocked or nxt not in questions:
                continue
            seen.add(nxt)
            queue.append(nxt)
    return order


def _find_cycle(questions) -> list[str] | None:
    """Return one cycle as a list of qids (first == last), or None."""
    # 0 = unvisited, 1 = on the current path, 2 = done
    state: dict[str, int] = {}
    path: list[str] = []

    def visit(qid: str) -> list[str] | None:
        state[qid] = 1
        path.append(qid)
        for nxt in next_question_ids(questions[qid]):
            if nxt not in questions:
                continue
            if state.get(nxt) == 1:
                return path[path.index(nxt):] + [nxt]
            if state.get(nxt, 0) == 0:
                found = visit(nxt)
                if found:
                    return found
        path.pop()
        state[qid] = 2
        return None

    for qid in questions:
        if state.get(qid, 0) == 0:
            found = visit(qid)
            if found:
                return found
    return None


def _longest_walk(questions, start: str) -> int:
    """Number of questions on the longest walk from *start* (graph must be acyclic)."""
    memo: dict[str, int] = {}

    def depth(qid: str) -> int:
        if qid not in memo:
            children = [n for n in next_question_ids(questions[qid]) if n in questions]
            memo[qid] = 1 + max((depth(n) for n in children), default=0)
        return memo[qid]

    return depth(start)
