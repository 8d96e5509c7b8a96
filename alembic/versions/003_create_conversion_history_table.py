"""create conversion_history table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision = "003"
down_revision = "002"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Double precision throughout: stored values are never rounded.
    op.create_table(
        "conversion_history",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id", UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("from_currency", sa.String(3), nullable=False),
        sa.Column("to_currency", sa.String(3), nullable=False),
        sa.Column("amount", sa.Float(precision=53), nullable=False),
        sa.Column("rate", sa.Float(precision=53), nullable=False),
        sa.Column("converted_amount", sa.Float(precision=53), nullable=False),
        sa.Column("fee_type", sa.String(20), server_default="none", nullable=False),
        sa.Column("fee_amount", sa.Float(precision=53), server_default="0", nullable=False),
        sa.Column("final_amount", sa.Float(precision=53), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint("amount >= 0", name="ck_conversion_history_amount"),
        sa.CheckConstraint("rate >= 0", name="ck_conversion_history_rate"),
    )
    op.create_index(
        "ix_conversion_history_user_created",
        "conversion_history",
        ["user_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_conversion_history_user_created", table_name="conversion_history")
    op.drop_table("conversion_history")
