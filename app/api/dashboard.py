"""
Dashboard endpoints — per-user summary and the forex news feed.

The summary refreshes bookmarks whose rate is older than
BOOKMARK_STALE_AFTER_SECONDS before returning them. A bookmark whose
refresh fails is returned with its stored values.
"""

import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.bookmarks import bookmark_read
from app.api.deps import get_current_user
from app.api.history import history_item
from app.config import settings
from app.database import get_db
from app.models.bookmark import BookmarkedPair
from app.models.conversion import ConversionHistory
from app.models.user import User
from app.schemas.dashboard import (
    DashboardResponse,
    DashboardTotals,
    DashboardUser,
    NewsItemRead,
)
from app.services import bookmark_service
from app.services.news_service import get_mock_forex_news
from app.services.rate_service import RateService, get_rate_service

logger = logging.getLogger(__name__)

router = APIRouter()

RECENT_HISTORY_LIMIT = 4


def _news(now: datetime) -> list[NewsItemRead]:
    return [
        NewsItemRead(id=item.id, title=item.title, date=item.date)
        for item in get_mock_forex_news(now)
    ]


@router.get("/stats", response_model=DashboardResponse)
async def dashboard_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    rates: RateService = Depends(get_rate_service),
):
    now = datetime.now(timezone.utc)
    owner_history = ConversionHistory.user_id == user.id

    recent = (await db.execute(
        select(ConversionHistory)
        .where(owner_history)
        .order_by(ConversionHistory.created_at.desc())
        .limit(RECENT_HISTORY_LIMIT)
    )).scalars().all()

    bookmarks = (await db.execute(
        select(BookmarkedPair)
        .where(BookmarkedPair.user_id == user.id)
        .order_by(BookmarkedPair.updated_at.desc())
    )).scalars().all()

    max_age = timedelta(seconds=settings.BOOKMARK_STALE_AFTER_SECONDS)
    stale = [b for b in bookmarks if bookmark_service.is_stale(b, now, max_age)]
    if stale:
        summary = await bookmark_service.refresh_all(stale, rates.get_live_rate, now)
        logger.info(
            "Dashboard refreshed %d of %d stale bookmarks for user %s",
            summary.updated_count, summary.total_count, user.id,
        )
        await db.flush()

    total_conversions = (await db.execute(
        select(func.count(ConversionHistory.id)).where(owner_history)
    )).scalar_one()
    total_amount = (await db.execute(
        select(func.coalesce(func.sum(ConversionHistory.amount), 0.0)).where(owner_history)
    )).scalar_one()

    return DashboardResponse(
        user=DashboardUser(username=user.username, email=user.email, avatar=user.avatar),
        stats=DashboardTotals(
            total_conversions=total_conversions,
            total_bookmarks=len(bookmarks),
            total_amount=f"{float(total_amount or 0):.2f}",
        ),
        recent_history=[history_item(e, now, with_fees=False) for e in recent],
        bookmarked_pairs=[bookmark_read(b) for b in bookmarks],
        news_items=_news(now),
    )


@router.get("/news", response_model=list[NewsItemRead])
async def forex_news():
    return _news(datetime.now(timezone.utc))
