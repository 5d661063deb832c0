"""Terminal result models: the end states of the triage graph."""

from __future__ import annotations

import enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class RiskLevel(enum.IntEnum):
    """Ordered three-step risk scale: NORMAL < CAUTION < DANGER."""

    NORMAL = 1
    CAUTION = 2
    DANGER = 3


class FinalResult(BaseModel):
    """A terminal diagnosis with care advice.

    ``emergency_alert`` is set only on results that must interrupt the user
    with an immediate instruction (e.g. go to the emergency room now).
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["result"] = "result"
    rid: str
    diagnosis: str
    description: str
    advice: str
    risk_level: RiskLevel
    emergency_alert: Optional[str] = None
    group: Optional[str] = None

    @property
    def is_emergency(self) -> bool:
        return self.risk_level == RiskLevel.DANGER
