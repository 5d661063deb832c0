"""Create the diagnosis_history table.

One row per completed triage, written best-effort when a session reaches a
final result.  The composite (user_id, created_at) index serves the
per-day and per-month history queries.

Revision ID: 20261018_diagnosis_history
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

# revision identifiers, used by Alembic.
revision = "20261018_diagnosis_history"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "diagnosis_history",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("brightness", sa.Float(), nullable=True),
        sa.Column("sacs_grade", sa.Text(), nullable=True),
        sa.Column("diagnosis", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("risk_level", sa.SmallInteger(), nullable=True),
        sa.Column("advice", sa.Text(), nullable=True),
        sa.Column("emergency_alert", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.CheckConstraint(
            "risk_level IS NULL OR risk_level BETWEEN 1 AND 3",
            name="ck_risk_level_range",
        ),
    )
    op.create_index("ix_diagnosis_history_user_id", "diagnosis_history", ["user_id"])
    op.create_index("ix_user_created", "diagnosis_history", ["user_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_user_created", table_name="diagnosis_history")
    op.drop_index("ix_diagnosis_history_user_id", table_name="diagnosis_history")
    op.drop_table("diagnosis_history")
