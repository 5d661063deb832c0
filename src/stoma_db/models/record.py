"""DiagnosisHistory ORM model: one row per completed triage.

Rows are append-only: the app writes a row when a session reaches a final
result and later lists them by user, by day or by month for the history
calendar.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Float, Index, SmallInteger, Text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from stoma_db.models.base import Base


class DiagnosisHistory(Base):
    """One saved diagnosis for a user."""

    __tablename__ = "diagnosis_history"

    # --- Primary key ---
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # --- Identity ---
    # External user ID supplied by the auth proxy
    user_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)

    # --- Image ---
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    brightness: Mapped[float | None] = mapped_column(Float, nullable=True)
    sacs_grade: Mapped[str | None] = mapped_column(Text, nullable=True)

    # --- Result (copied from the final result at save time) ---
    diagnosis: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    risk_level: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    advice: Mapped[str | None] = mapped_column(Text, nullable=True)
    emergency_alert: Mapped[str | None] = mapped_column(Text, nullable=True)

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint(
            "risk_level IS NULL OR risk_level BETWEEN 1 AND 3",
            name="ck_risk_level_range",
        ),
        # Calendar queries filter one user's rows by created_at range
        Index("ix_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<DiagnosisHistory(id={self.id!s}, user={self.user_id!r}, "
            f"diagnosis={self.diagnosis!r}, risk={self.risk_level})>"
        )
