"""Triage endpoints: start the questionnaire and resolve steps.

The step endpoint is stateless: the client sends the question it just
answered, the chosen option index and the classification code, and gets
the next step back.  The client keeps its own history for back-navigation.

When a step reaches a final result and the caller identified themselves via
``X-User-ID``, the diagnosis is saved best-effort.  A failed save never
changes the response beyond ``saved: false``.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from stoma_triage.engine import TriageEngine
from stoma_triage.interfaces import DiagnosisSink, save_best_effort
from stoma_triage.models import DiagnosisRecord, FinalResult, NextStep, Question
from stoma_triage.risk import risk_level_to_label, risk_level_to_severity_tag
from stoma_triage.ruleset import TriageContentStore

from stoma_server.dependencies import (
    get_diagnosis_sink,
    get_optional_user_id,
    get_store,
    get_triage_engine,
)
from stoma_server.errors import NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/triage", tags=["triage"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class StepRequest(BaseModel):
    """Body for POST /triage/step."""
    question_id: str
    answer_index: int
    classification: int = Field(ge=1, le=3)
    # Carried into the saved record when the step ends the questionnaire
    image_url: Optional[str] = None
    brightness: Optional[float] = None
    sacs_grade: Optional[str] = None


class StepResponse(BaseModel):
    """Next step, plus presentation extras when it is a final result."""
    step: NextStep
    severity: Optional[str] = None
    risk_label: Optional[str] = None
    # True only if the result was stored for the caller
    saved: bool = False


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/start")
def start_triage(
    engine: TriageEngine = Depends(get_triage_engine),
) -> Question:
    """Return the emergency screening question every session starts with."""
    return engine.start_emergency_questionnaire()


@router.post("/step")
async def submit_step(
    body: StepRequest,
    engine: TriageEngine = Depends(get_triage_engine),
    sink: DiagnosisSink | None = Depends(get_diagnosis_sink),
    user_id: str | None = Depends(get_optional_user_id),
) -> StepResponse:
    """Answer ``question_id`` with ``answer_index`` and return the next step.

    Unknown questions or out-of-range answers resolve to the default-safe
    result rather than an error.
    """
    step = engine.advance(body.question_id, body.answer_index, body.classification)
    if not isinstance(step, FinalResult):
        return StepResponse(step=step)

    logger.info(
        "Step %s[%d] reached result %s (risk %d)",
        body.question_id, body.answer_index, step.rid, step.risk_level,
    )
    saved = False
    if user_id and sink is not None:
        record = DiagnosisRecord.from_result(step, image_url=body.image_url)
        record = record.model_copy(
            update={"brightness": body.brightness, "sacs_grade": body.sacs_grade}
        )
        saved = await save_best_effort(sink, record, user_id=user_id)

    return StepResponse(
        step=step,
        severity=risk_level_to_severity_tag(step.risk_level),
        risk_label=risk_level_to_label(step.risk_level),
        saved=saved,
    )


@router.get("/questions/{qid}")
def get_question(
    qid: str,
    store: TriageContentStore = Depends(get_store),
) -> Question:
    """Look up a question by id."""
    question = store.get_question(qid)
    if question is None:
        raise NotFoundError(f"Question not found: {qid}")
    return question


@router.get("/results/{rid}")
def get_result(
    rid: str,
    store: TriageContentStore = Depends(get_store),
) -> FinalResult:
    """Look up a final result by id."""
    result = store.get_result(rid)
    if result is None:
        raise NotFoundError(f"Result not found: {rid}")
    return result
