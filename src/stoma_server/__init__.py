"""stoma_server: FastAPI REST API for the stoma triage SDK.

Exposes the TriageEngine as a stateless step API, stores completed
diagnoses in the ``diagnosis_history`` table, and serves reference data
about the risk scale, the classification codes and the content graph.
"""
