"""stoma_triage: Rule-based stoma triage SDK.

Public API:
    TriageEngine: stateless step resolver over the content graph
    TriageContentStore: loads YAML content into typed, read-only registries
    TriageSession: caller-side session with history and back-navigation
    RulesetError: raised for missing, malformed or inconsistent content
    NextStep: union type returned by ``TriageEngine.advance``
    Question / Option: question node and its selectable answers
    FinalResult: terminal diagnosis with risk level and advice
    RiskLevel: the closed 1..3 risk scale

Persistence contract:
    DiagnosisSink: ABC for storing completed diagnoses
    DiagnosisRecord: payload handed to the sink
    save_best_effort: save without letting failures reach the patient

Risk helpers:
    risk_level_to_severity_tag, risk_level_to_label, risk_levels
"""

from stoma_triage.engine import TriageEngine, default_engine
from stoma_triage.history import TriageSession
from stoma_triage.interfaces import DiagnosisSink, save_best_effort
from stoma_triage.models import (
    DiagnosisRecord,
    FinalResult,
    HistoryEntry,
    NextStep,
    Option,
    Question,
    RiskLevel,
)
from stoma_triage.risk import risk_level_to_label, risk_level_to_severity_tag, risk_levels
from stoma_triage.ruleset import RulesetError, TriageContentStore, load_default_store

__all__ = [
    # Engine & store
    "TriageEngine",
    "TriageContentStore",
    "TriageSession",
    "RulesetError",
    "default_engine",
    "load_default_store",
    # Steps
    "NextStep",
    "Question",
    "Option",
    "FinalResult",
    "RiskLevel",
    "HistoryEntry",
    # Persistence
    "DiagnosisSink",
    "DiagnosisRecord",
    "save_best_effort",
    # Risk helpers
    "risk_level_to_severity_tag",
    "risk_level_to_label",
    "risk_levels",
]
