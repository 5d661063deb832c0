"""Graph view of the triage content.

``question_edges`` lists the outgoing edges of a question; both the content
validator and the reference API build on it.  ``build_graph`` renders the
whole content set as Cytoscape-style ``{"nodes": [...], "edges": [...]}``
elements for visual inspection.
"""

from __future__ import annotations

from typing import Any, NamedTuple

from stoma_triage.constants import CLASS_ENTRY_QIDS
from stoma_triage.models.action import DynamicStartAction, GotoAction, ResultAction
from stoma_triage.models.question import Question


class Edge(NamedTuple):
    source: str
    target: str
    # "goto", "result" or "dynamic_start"
    kind: str
    label: str
    option_index: int
    classification: int | None = None


def question_edges(question: Question) -> list[Edge]:
    """Return the outgoing edges of *question*.

    A dynamic-start option fans out to every class entry question, one edge
    per classification code.  Options without an action produce no edge.
    """
    edges: list[Edge] = []
    for i, opt in enumerate(question.options):
        act = opt.action
        if isinstance(act, DynamicStartAction):
            for code, entry_qid in CLASS_ENTRY_QIDS.items():
                edges.append(
                    Edge(question.qid, entry_qid, "dynamic_start", opt.label, i, code)
                )
        elif isinstance(act, GotoAction):
            edges.append(Edge(question.qid, act.qid, "goto", opt.label, i))
        elif isinstance(act, ResultAction):
            edges.append(Edge(question.qid, act.rid, "result", opt.label, i))
    return edges


def next_question_ids(question: Question) -> list[str]:
    """Question ids directly reachable from *question* (results excluded)."""
    return [e.target for e in question_edges(question) if e.kind != "result"]


def build_graph(store) -> dict[str, list[dict[str, Any]]]:
    """Render every question, result and edge of *store*."""
    nodes: list[dict[str, Any]] = []
    edges: list[dict[str, Any]] = []

    for q in store.questions.values():
        nodes.append({"data": {
            "id": q.qid,
            "label": q.question,
            "type": "question",
            "group": q.group,
            "options": q.labels,
            "temp_diagnosis": q.temp_diagnosis,
        }})
        for e in question_edges(q):
            label = e.label if e.classification is None else f"{e.label} [class {e.classification}]"
            edges.append({"data": {
                "source": e.source,
                "target": e.target,
                "kind": e.kind,
                "label": label,
                "option_index": e.option_index,
            }})

    for r in store.results.values():
        nodes.append({"data": {
            "id": r.rid,
            "label": r.diagnosis,
            "type": "result",
            "group": r.group,
            "risk_level": int(r.risk_level),
        }})

    return {"nodes": nodes, "edges": edges}
