"""
Bookmark trend tracking and bulk rate refresh.

A refresh compares the fresh rate with the stored one:

    new > old  -> up
    new < old  -> down
    new == old -> neutral

The transition is applied in memory only; callers flush the session.
Refreshing with an unchanged rate always yields ``neutral``, even if the
previous trend was up or down.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Iterable

from app.models.bookmark import BookmarkedPair, Trend
from app.services.rate_providers import ExchangeRate

logger = logging.getLogger(__name__)

RateResolver = Callable[[str, str], Awaitable[ExchangeRate]]


def classify_trend(old_rate: float, new_rate: float) -> Trend:
    if new_rate > old_rate:
        return Trend.UP
    if new_rate < old_rate:
        return Trend.DOWN
    return Trend.NEUTRAL


def apply_rate_change(old_rate: float, new_rate: float) -> tuple[float, Trend]:
    """Pure transition: (old rate, new rate) -> (stored rate, trend)."""
    return new_rate, classify_trend(old_rate, new_rate)


def refresh_trend(
    bookmark: BookmarkedPair, new_rate: float, now: datetime | None = None,
) -> BookmarkedPair:
    """Apply a fresh rate to *bookmark* in place and stamp ``updated_at``."""
    bookmark.current_rate, bookmark.trend = apply_rate_change(bookmark.current_rate, new_rate)
    bookmark.updated_at = now or datetime.now(timezone.utc)
    return bookmark


def is_stale(bookmark: BookmarkedPair, now: datetime, max_age: timedelta) -> bool:
    """True when the bookmark was last updated more than *max_age* ago."""
    updated_at = bookmark.updated_at
    if updated_at.tzinfo is None:
        updated_at = updated_at.replace(tzinfo=timezone.utc)
    return now - updated_at > max_age


# ---------------------------------------------------------------------------
# Bulk refresh
# ---------------------------------------------------------------------------


@dataclass
class RefreshOutcome:
    bookmark_id: uuid.UUID
    from_currency: str
    to_currency: str
    updated: bool
    rate: float | None = None
    trend: Trend | None = None
    source: str | None = None
    error: str | None = None


@dataclass
class RefreshSummary:
    outcomes: list[RefreshOutcome]

    @property
    def total_count(self) -> int:
        return len(self.outcomes)

    @property
    def updated_count(self) -> int:
        # Mock-fallback refreshes count as updates.
        return sum(1 for o in self.outcomes if o.updated)


async def refresh_bookmark(
    bookmark: BookmarkedPair, resolve_rate: RateResolver, now: datetime | None = None,
) -> RefreshOutcome:
    """Fetch a rate for one bookmark and apply it; errors propagate."""
    fresh = await resolve_rate(bookmark.from_currency, bookmark.to_currency)
    refresh_trend(bookmark, fresh.rate, now)
    return RefreshOutcome(
        bookmark_id=bookmark.id,
        from_currency=bookmark.from_currency,
        to_currency=bookmark.to_currency,
        updated=True,
        rate=bookmark.current_rate,
        trend=bookmark.trend,
        source=fresh.source,
    )


async def refresh_all(
    bookmarks: Iterable[BookmarkedPair],
    resolve_rate: RateResolver,
    now: datetime | None = None,
) -> RefreshSummary:
    """
    Refresh bookmarks one at a time, collecting each outcome independently.

    A failure on one bookmark is recorded in its outcome and the loop moves
    on; the bookmark keeps its previous rate and trend.
    """
    outcomes: list[RefreshOutcome] = []
    for bookmark in bookmarks:
        try:
            outcomes.append(await refresh_bookmark(bookmark, resolve_rate, now))
        except Exception as exc:
            logger.exception(
                "Error updating bookmark %s (%s-%s)",
                bookmark.id, bookmark.from_currency, bookmark.to_currency,
            )
            outcomes.append(RefreshOutcome(
                bookmark_id=bookmark.id,
                from_currency=bookmark.from_currency,
                to_currency=bookmark.to_currency,
                updated=False,
                rate=bookmark.current_rate,
                trend=bookmark.trend,
                error=str(exc),
            ))
    return RefreshSummary(outcomes=outcomes)
