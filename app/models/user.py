"""
User model — a registered account that owns bookmarks and conversion history.

Email/password accounts hash the password with bcrypt. The hash column
is nullable so accounts created through an external identity provider
can exist without a local password.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, event
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.security import hash_password, verify_password
from app.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )

    username: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(
        String(254), unique=True, index=True, nullable=False
    )
    password_hash: Mapped[str | None] = mapped_column(String(256))
    avatar: Mapped[str | None] = mapped_column(String(500))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    bookmarks = relationship(
        "BookmarkedPair", back_populates="user", cascade="all, delete-orphan"
    )
    conversions = relationship(
        "ConversionHistory", back_populates="user", cascade="all, delete-orphan"
    )

    # ------------------------------------------------------------------
    # Password helpers
    # ------------------------------------------------------------------

    def set_password(self, plain_password: str) -> None:
        """Hash and store a password using bcrypt."""
        self.password_hash = hash_password(plain_password)

    def check_password(self, plain_password: str) -> bool:
        """Return True if *plain_password* matches the stored hash."""
        if self.password_hash is None:
            return False
        return verify_password(plain_password, self.password_hash)

    def __repr__(self) -> str:
        return f"<User {self.username!r} email={self.email!r}>"


@event.listens_for(User, "init")
def _set_defaults(target, args, kwargs):
    if "id" not in kwargs:
        target.id = uuid.uuid4()
    if "email" in kwargs and kwargs["email"]:
        kwargs["email"] = kwargs["email"].strip().lower()
    now = datetime.now(timezone.utc)
    if "created_at" not in kwargs:
        target.created_at = now
    if "updated_at" not in kwargs:
        target.updated_at = now
