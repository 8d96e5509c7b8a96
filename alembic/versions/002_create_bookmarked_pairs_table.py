"""create bookmarked_pairs table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    bookmarktrend = sa.Enum("up", "down", "neutral", name="bookmarktrend")
    bookmarktrend.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "bookmarked_pairs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id", UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("from_currency", sa.String(3), nullable=False),
        sa.Column("to_currency", sa.String(3), nullable=False),
        sa.Column("current_rate", sa.Float(precision=53), nullable=False),
        sa.Column(
            "trend",
            sa.Enum("up", "down", "neutral", name="bookmarktrend", create_type=False),
            server_default="neutral",
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint(
            "user_id", "from_currency", "to_currency",
            name="uq_bookmarked_pairs_user_pair",
        ),
        sa.CheckConstraint("current_rate >= 0", name="ck_bookmarked_pairs_rate"),
    )
    op.create_index(
        "ix_bookmarked_pairs_user_updated",
        "bookmarked_pairs",
        ["user_id", "updated_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_bookmarked_pairs_user_updated", table_name="bookmarked_pairs")
    op.drop_table("bookmarked_pairs")
    sa.Enum(name="bookmarktrend").drop(op.get_bind(), checkfirst=True)
