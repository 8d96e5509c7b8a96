"""Canned forex headlines for the dashboard until a news feed is wired in."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from app.services.history_service import format_relative_time

# (id, title, hours since publication)
_MOCK_HEADLINES = [
    (1, "Federal Reserve Announces Interest Rate Decision", 2),
    (2, "EUR/USD Reaches New Monthly High Amid ECB Policy", 4),
    (3, "Cryptocurrency Market Impact on Traditional Forex", 6),
    (4, "Asian Markets Open Strong Following US Session", 8),
    (5, "UK Inflation Data Affects GBP Exchange Rates", 12),
    (6, "Oil Prices Surge Impact on Currency Markets", 24),
]


@dataclass(frozen=True)
class NewsItem:
    id: int
    title: str
    date: str


def get_mock_forex_news(now: datetime | None = None) -> list[NewsItem]:
    now = now or datetime.now(timezone.utc)
    return [
        NewsItem(
            id=item_id,
            title=title,
            date=format_relative_time(now - timedelta(hours=hours), now),
        )
        for item_id, title, hours in _MOCK_HEADLINES
    ]
