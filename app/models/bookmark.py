"""
BookmarkedPair model — a currency pair a user follows, with its last
known rate and the direction of the most recent change.

At most one bookmark exists per (user, from_currency, to_currency).
Rate refreshes update the row in place.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    event,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Trend(str, enum.Enum):
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


class BookmarkedPair(Base):
    __tablename__ = "bookmarked_pairs"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "from_currency", "to_currency",
            name="uq_bookmarked_pairs_user_pair",
        ),
        CheckConstraint("current_rate >= 0", name="ck_bookmarked_pairs_rate"),
        Index("ix_bookmarked_pairs_user_updated", "user_id", "updated_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    from_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    to_currency: Mapped[str] = mapped_column(String(3), nullable=False)

    current_rate: Mapped[float] = mapped_column(Float(precision=53), nullable=False)
    trend: Mapped[Trend] = mapped_column(
        SAEnum(Trend, name="bookmarktrend", values_callable=lambda e: [m.value for m in e]),
        default=Trend.NEUTRAL,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    user = relationship("User", back_populates="bookmarks")

    @property
    def pair(self) -> tuple[str, str]:
        return self.from_currency, self.to_currency

    def __repr__(self) -> str:
        return (
            f"<BookmarkedPair {self.from_currency}-{self.to_currency} "
            f"rate={self.current_rate} trend={self.trend.value if self.trend else 'N/A'}>"
        )


@event.listens_for(BookmarkedPair, "init")
def _set_defaults(target, args, kwargs):
    if "id" not in kwargs:
        target.id = uuid.uuid4()
    for field in ("from_currency", "to_currency"):
        if kwargs.get(field):
            kwargs[field] = kwargs[field].upper()
    if "trend" not in kwargs:
        target.trend = Trend.NEUTRAL
    now = datetime.now(timezone.utc)
    if "created_at" not in kwargs:
        target.created_at = now
    if "updated_at" not in kwargs:
        target.updated_at = now
