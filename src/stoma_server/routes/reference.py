"""Reference data endpoints: risk scale, classification codes, content graph.

Read-only views over constants and the loaded content.  They don't
require authentication since the data is public reference information.
"""

from fastapi import APIRouter, Depends

from stoma_triage.constants import CLASS_ENTRY_QIDS, CLASSIFICATION_NAMES
from stoma_triage.graph import build_graph
from stoma_triage.risk import risk_levels
from stoma_triage.ruleset import TriageContentStore

from stoma_server.dependencies import get_store

router = APIRouter(prefix="/reference", tags=["reference"])


@router.get("/risk-levels")
def list_risk_levels() -> list[dict]:
    """Return the risk scale with severity tags and patient-facing labels."""
    return risk_levels()


@router.get("/classifications")
def list_classifications() -> list[dict]:
    """Return each image classification code and the question it starts at."""
    return [
        {
            "code": code,
            "name": CLASSIFICATION_NAMES[code],
            "entry_question": qid,
        }
        for code, qid in CLASS_ENTRY_QIDS.items()
    ]


@router.get("/graph")
def get_graph(
    store: TriageContentStore = Depends(get_store),
) -> dict:
    """Return the content graph as Cytoscape-style nodes and edges."""
    return build_graph(store)
