"""Step and record models: the contract between the engine and its callers.

Step types:
  - Question: show this question next
  - FinalResult: the questionnaire ended with a diagnosis

The ``NextStep`` union covers both cases so callers can dispatch on ``type``.

``DiagnosisRecord`` is the payload handed to the persistence collaborator
once a result is reached.  It is intentionally decoupled from the ORM model
in ``stoma_db`` so that SDK consumers never see database internals.
"""

from __future__ import annotations

from typing import Annotated, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from .question import Question
from .result import FinalResult

# Callers can match on step.type ("question" / "result") to dispatch rendering logic.
NextStep = Annotated[Union[Question, FinalResult], Field(discriminator="type")]


class HistoryEntry(BaseModel):
    """One answered step, captured before the engine advanced past it."""

    model_config = ConfigDict(frozen=True)

    question: Question
    answer_index: StrictInt
    # Provisional label that was active while ``question`` was displayed
    provisional_diagnosis: Optional[str] = None


class DiagnosisRecord(BaseModel):
    """Completed diagnosis as submitted to persistence.

    ``risk_level`` is stored on the numeric 1..3 scale.
    """

    diagnosis: str
    description: Optional[str] = None
    risk_level: Optional[int] = Field(default=None, ge=1, le=3)
    advice: Optional[str] = None
    emergency_alert: Optional[str] = None
    image_url: Optional[str] = None
    # Image-analysis extras reported by the classifier, when available
    brightness: Optional[float] = None
    sacs_grade: Optional[str] = None

    @classmethod
    def from_result(
        cls, result: FinalResult, *, image_url: str | None = None
    ) -> "DiagnosisRecord":
        return cls(
            diagnosis=result.diagnosis,
            description=result.description,
            risk_level=int(result.risk_level),
            advice=result.advice,
            emergency_alert=result.emergency_alert,
            image_url=image_url,
        )
