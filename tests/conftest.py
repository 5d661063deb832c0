import copy

import pytest
import yaml

from stoma_triage.engine import TriageEngine
from stoma_triage.ruleset import TriageContentStore

# Smallest content set that passes validation: the two emergency questions,
# one question per class, an emergency result and the fallback result.
MINIMAL_QUESTIONS = {
    "emergency": [
        {
            "qid": "E_Q1",
            "question": "emergency?",
            "options": [
                {"label": "예", "action": {"action": "result", "rid": "E_R1"}},
                {"label": "아니오", "action": {"action": "goto", "qid": "E_Q2"}},
            ],
        },
        {
            "qid": "E_Q2",
            "question": "necrosis?",
            "options": [
                {"label": "예", "action": {"action": "result", "rid": "E_R1"}},
                {"label": "아니오", "action": {"action": "dynamic_start"}},
            ],
        },
    ],
    "class_1": [
        {
            "qid": "C1_Q1",
            "question": "class 1?",
            "options": [{"label": "ok", "action": {"action": "result", "rid": "C1_R1"}}],
        },
    ],
    "class_2": [
        {
            "qid": "C2_Q1",
            "question": "class 2?",
            "options": [{"label": "ok", "action": {"action": "result", "rid": "C1_R1"}}],
        },
    ],
    "class_3": [
        {
            "qid": "C3_Q1",
            "question": "class 3?",
            "options": [{"label": "ok", "action": {"action": "result", "rid": "C1_R1"}}],
        },
    ],
}

MINIMAL_RESULTS = {
    "emergency": [
        {
            "rid": "E_R1",
            "diagnosis": "응급",
            "risk_level": 3,
            "description": "d",
            "advice": "a",
            "emergency_alert": "go now",
        },
    ],
    "class_1": [
        {
            "rid": "C1_R1",
            "diagnosis": "정상 상태",
            "risk_level": 1,
            "description": "d",
            "advice": "a",
        },
    ],
}


@pytest.fixture(scope="session")
def store():
    """Load the packaged content once for the entire test session."""
    s = TriageContentStore()
    s.load()
    return s


@pytest.fixture(scope="session")
def engine(store):
    return TriageEngine(store)


@pytest.fixture
def minimal_content():
    """Fresh, mutable copies of the minimal valid content."""
    return copy.deepcopy(MINIMAL_QUESTIONS), copy.deepcopy(MINIMAL_RESULTS)


@pytest.fixture
def write_content(tmp_path):
    """Write questions/results dicts as YAML and return the directory."""

    def _write(questions, results):
        (tmp_path / "questions.yaml").write_text(
            yaml.safe_dump(questions, allow_unicode=True), encoding="utf-8"
        )
        (tmp_path / "results.yaml").write_text(
            yaml.safe_dump(results, allow_unicode=True), encoding="utf-8"
        )
        return tmp_path

    return _write
