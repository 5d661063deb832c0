"""ORM models for stoma_db."""

from stoma_db.models.base import Base
from stoma_db.models.record import DiagnosisHistory

__all__ = ["Base", "DiagnosisHistory"]
