"""stoma_db: PostgreSQL persistence layer for completed triage diagnoses.

This package provides the ORM model, async engine factory, and repository
for storing and querying the ``diagnosis_history`` table.  It is consumed
by the FastAPI server; the triage SDK itself never imports it.
"""

from stoma_db.models.record import DiagnosisHistory
from stoma_db.config import DatabaseSettings, load_database_settings
from stoma_db.engine import HistoryDatabase, get_database, get_session_factory
from stoma_db.repository import DiagnosisRepository

__all__ = [
    "DiagnosisHistory",
    "DatabaseSettings",
    "load_database_settings",
    "HistoryDatabase",
    "get_database",
    "get_session_factory",
    "DiagnosisRepository",
]
