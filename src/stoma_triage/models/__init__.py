"""Public model re-exports for stoma_triage.

Consumers should import from ``stoma_triage.models`` rather than
reaching into sub-modules directly.
"""

# --- Actions ---
from stoma_triage.models.action import (
    Action,
    DynamicStartAction,
    GotoAction,
    ResultAction,
)

# --- Questions ---
from stoma_triage.models.question import Option, Question

# --- Results ---
from stoma_triage.models.result import FinalResult, RiskLevel

# --- Steps / records ---
from stoma_triage.models.session import DiagnosisRecord, HistoryEntry, NextStep

__all__ = [
    # Actions
    "Action",
    "DynamicStartAction",
    "GotoAction",
    "ResultAction",
    # Questions
    "Option",
    "Question",
    # Results
    "FinalResult",
    "RiskLevel",
    # Steps / records
    "DiagnosisRecord",
    "HistoryEntry",
    "NextStep",
]
