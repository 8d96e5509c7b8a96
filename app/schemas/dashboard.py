"""
Pydantic schemas for the dashboard summary and the news feed.
"""

from app.schemas.base import CamelModel
from app.schemas.bookmark import BookmarkRead
from app.schemas.history import HistoryItem


class DashboardUser(CamelModel):
    username: str
    email: str
    avatar: str | None = None


class DashboardTotals(CamelModel):
    total_conversions: int
    total_bookmarks: int
    total_amount: str


class NewsItemRead(CamelModel):
    id: int
    title: str
    date: str


class DashboardResponse(CamelModel):
    user: DashboardUser
    stats: DashboardTotals
    recent_history: list[HistoryItem]
    bookmarked_pairs: list[BookmarkRead]
    news_items: list[NewsItemRead]
