"""SQLAlchemy ORM models for the currency converter."""

from app.models.user import User
from app.models.bookmark import BookmarkedPair, Trend
from app.models.conversion import ConversionHistory

__all__ = [
    "User",
    "BookmarkedPair", "Trend",
    "ConversionHistory",
]
