"""Triage constants shared across the SDK.

These values are referenced by the engine, the content store, and the
validator.  They mirror conventions encoded in the YAML content under
``rulesets/v1/``.

The fallback result and the hop bound can be overridden via environment
variables so that deployments can adjust them without code changes.
"""

import os

# Emergency screening always runs first: the entry question and its single
# follow-up, which carries the dynamic branch into the class subgraphs.
EMERGENCY_ENTRY_QID = "E_Q1"
EMERGENCY_FOLLOWUP_QID = "E_Q2"

# Image classification code -> entry question of the class-specific subgraph.
# 1: normal / pale, 2: redness / inflammation, 3: discoloration / necrosis
CLASS_ENTRY_QIDS: dict[int, str] = {
    1: "C1_Q1",
    2: "C2_Q1",
    3: "C3_Q1",
}

CLASSIFICATION_NAMES: dict[int, str] = {
    1: "정상/창백함",
    2: "발적/염증",
    3: "변색/괴사",
}

# Result returned whenever traversal cannot continue (unknown question,
# out-of-range answer, broken link, unknown classification).
# Overridable via TRIAGE_FALLBACK_RESULT_ID env var.
FALLBACK_RESULT_ID = os.getenv("TRIAGE_FALLBACK_RESULT_ID", "C1_R1")

# Upper bound on questions answered in one walk; content whose longest path
# exceeds this is rejected at load time.
# Overridable via TRIAGE_MAX_DEPTH env var.
MAX_TRIAGE_DEPTH = int(os.getenv("TRIAGE_MAX_DEPTH", "32"))

# Content groups, in the order they appear in the YAML files.
GROUP_EMERGENCY = "emergency"
GROUP_COMMON = "common"
CLASS_GROUPS: dict[int, str] = {
    1: "class_1",
    2: "class_2",
    3: "class_3",
}
CONTENT_GROUPS: list[str] = [GROUP_EMERGENCY, *CLASS_GROUPS.values(), GROUP_COMMON]

# Risk scale presentation: severity tag for API consumers and the Korean
# label shown to the patient.
RISK_SEVERITY_TAGS: dict[int, str] = {
    1: "low",
    2: "medium",
    3: "high",
}
RISK_LABELS: dict[int, str] = {
    1: "정상",
    2: "주의",
    3: "위험",
}
