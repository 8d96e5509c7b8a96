"""
ConversionHistory model — one saved conversion for a user.

Amounts and rates are stored as double precision exactly as computed;
rounding to 2 (amounts) or 4 (rates) decimals happens only when
responses are built.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    event,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class ConversionHistory(Base):
    __tablename__ = "conversion_history"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_conversion_history_amount"),
        CheckConstraint("rate >= 0", name="ck_conversion_history_rate"),
        Index("ix_conversion_history_user_created", "user_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    from_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    to_currency: Mapped[str] = mapped_column(String(3), nullable=False)

    amount: Mapped[float] = mapped_column(Float(precision=53), nullable=False)
    rate: Mapped[float] = mapped_column(Float(precision=53), nullable=False)
    converted_amount: Mapped[float] = mapped_column(Float(precision=53), nullable=False)
    fee_type: Mapped[str] = mapped_column(String(20), default="none")
    fee_amount: Mapped[float] = mapped_column(Float(precision=53), default=0.0)
    final_amount: Mapped[float] = mapped_column(Float(precision=53), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    user = relationship("User", back_populates="conversions")

    def __repr__(self) -> str:
        return (
            f"<ConversionHistory {self.from_currency}->{self.to_currency} "
            f"amount={self.amount} final={self.final_amount}>"
        )


@event.listens_for(ConversionHistory, "init")
def _set_defaults(target, args, kwargs):
    if "id" not in kwargs:
        target.id = uuid.uuid4()
    for field in ("from_currency", "to_currency"):
        if kwargs.get(field):
            kwargs[field] = kwargs[field].upper()
    if "fee_type" not in kwargs:
        target.fee_type = "none"
    if "fee_amount" not in kwargs:
        target.fee_amount = 0.0
    if "created_at" not in kwargs:
        target.created_at = datetime.now(timezone.utc)
