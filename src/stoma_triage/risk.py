"""Risk-level presentation helpers.

Both mappings are total over the closed three-value scale; they accept a
:class:`RiskLevel` member or its plain int value.
"""

from __future__ import annotations

from typing import Literal

from stoma_triage.constants import RISK_LABELS, RISK_SEVERITY_TAGS
from stoma_triage.models.result import RiskLevel

SeverityTag = Literal["low", "medium", "high"]


def risk_level_to_severity_tag(level: RiskLevel | int) -> SeverityTag:
    """Map a risk level to the ``low`` / ``medium`` / ``high`` tag."""
    return RISK_SEVERITY_TAGS[RiskLevel(level)]


def risk_level_to_label(level: RiskLevel | int) -> str:
    """Map a risk level to the Korean label shown to the patient."""
    return RISK_LABELS[RiskLevel(level)]


def risk_levels() -> list[dict]:
    """Return the whole scale, lowest first, for reference endpoints."""
    return [
        {
            "level": int(level),
            "name": level.name.lower(),
            "severity": risk_level_to_severity_tag(level),
            "label": risk_level_to_label(level),
        }
        for level in RiskLevel
    ]
