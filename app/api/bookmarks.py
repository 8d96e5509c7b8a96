"""
Bookmarked currency pair endpoints.

  GET    /                    list (most recently updated first)
  POST   /                    bookmark a pair at its current rate
  DELETE /{id}                remove one of the caller's bookmarks
  PUT    /{id}/rate           refresh one bookmark's rate and trend
  PUT    /rates/update-all    refresh every bookmark, collecting per-item results
  GET    /check               whether a pair is already bookmarked
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.bookmark import BookmarkedPair, Trend
from app.models.user import User
from app.schemas.base import MessageResponse
from app.schemas.bookmark import (
    BookmarkCreate,
    BookmarkExistsResponse,
    BookmarkMutationResponse,
    BookmarkRead,
    BookmarkRefreshAllResponse,
    BookmarkRefreshResult,
)
from app.services import bookmark_service
from app.services.conversion_service import InvalidCurrencyPairError, normalize_pair
from app.services.rate_service import RateService, get_rate_service

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def bookmark_read(bookmark: BookmarkedPair) -> BookmarkRead:
    return BookmarkRead(
        id=bookmark.id,
        from_=bookmark.from_currency,
        to=bookmark.to_currency,
        rate=f"{bookmark.current_rate:.4f}",
        trend=Trend(bookmark.trend).value,
        created_at=bookmark.created_at,
        updated_at=bookmark.updated_at,
    )


async def _get_owned_bookmark(
    db: AsyncSession, bookmark_id: UUID, user: User,
) -> BookmarkedPair:
    result = await db.execute(
        select(BookmarkedPair).where(
            BookmarkedPair.id == bookmark_id,
            BookmarkedPair.user_id == user.id,
        )
    )
    bookmark = result.scalar_one_or_none()
    if bookmark is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Bookmark not found",
        )
    return bookmark


def _owner_bookmarks(user: User):
    return (
        select(BookmarkedPair)
        .where(BookmarkedPair.user_id == user.id)
        .order_by(BookmarkedPair.updated_at.desc())
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/", response_model=list[BookmarkRead])
async def list_bookmarks(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(_owner_bookmarks(user))
    return [bookmark_read(b) for b in result.scalars().all()]


@router.post("/", response_model=BookmarkMutationResponse, status_code=status.HTTP_201_CREATED)
async def add_bookmark(
    payload: BookmarkCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    rates: RateService = Depends(get_rate_service),
):
    """Bookmark a pair at its current rate (live, else mock) with a neutral trend."""
    try:
        src, tgt = normalize_pair(payload.from_currency, payload.to_currency, require_distinct=True)
    except InvalidCurrencyPairError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    existing = await db.execute(
        select(BookmarkedPair).where(
            BookmarkedPair.user_id == user.id,
            BookmarkedPair.from_currency == src,
            BookmarkedPair.to_currency == tgt,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Currency pair already bookmarked",
        )

    exchange_rate = await rates.get_live_rate(src, tgt)
    bookmark = BookmarkedPair(
        user_id=user.id,
        from_currency=src,
        to_currency=tgt,
        current_rate=exchange_rate.rate,
        trend=Trend.NEUTRAL,
    )
    db.add(bookmark)
    try:
        await db.flush()
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Currency pair already bookmarked",
        )

    logger.info("User %s bookmarked %s-%s (source=%s)", user.id, src, tgt, exchange_rate.source)
    return BookmarkMutationResponse(
        message="Currency pair bookmarked successfully",
        bookmark=bookmark_read(bookmark),
    )


@router.delete("/{bookmark_id}", response_model=MessageResponse)
async def remove_bookmark(
    bookmark_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    bookmark = await _get_owned_bookmark(db, bookmark_id, user)
    await db.delete(bookmark)
    await db.flush()
    logger.info("User %s removed bookmark %s", user.id, bookmark_id)
    return MessageResponse(message="Bookmark removed successfully")


@router.put("/rates/update-all", response_model=BookmarkRefreshAllResponse)
async def update_all_bookmark_rates(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    rates: RateService = Depends(get_rate_service),
):
    """
    Refresh every bookmark one at a time.

    A failure on one bookmark leaves it unchanged and is reported in its
    result; the rest still refresh. Mock-rate fallbacks count as updates.
    """
    result = await db.execute(_owner_bookmarks(user))
    bookmarks = list(result.scalars().all())

    if not bookmarks:
        return BookmarkRefreshAllResponse(
            message="No bookmarks to update", updated_count=0, total_count=0, results=[],
        )

    summary = await bookmark_service.refresh_all(bookmarks, rates.get_live_rate)
    await db.flush()

    return BookmarkRefreshAllResponse(
        message=f"Updated {summary.updated_count} out of {summary.total_count} bookmarks",
        updated_count=summary.updated_count,
        total_count=summary.total_count,
        results=[
            BookmarkRefreshResult(
                id=o.bookmark_id,
                from_=o.from_currency,
                to=o.to_currency,
                rate=f"{o.rate:.4f}" if o.rate is not None else None,
                trend=o.trend.value if o.trend is not None else None,
                source=o.source,
                updated=o.updated,
                error=o.error,
            )
            for o in summary.outcomes
        ],
    )


@router.put("/{bookmark_id}/rate", response_model=BookmarkMutationResponse)
async def update_bookmark_rate(
    bookmark_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    rates: RateService = Depends(get_rate_service),
):
    bookmark = await _get_owned_bookmark(db, bookmark_id, user)
    await bookmark_service.refresh_bookmark(bookmark, rates.get_live_rate)
    await db.flush()
    return BookmarkMutationResponse(
        message="Bookmark rate updated successfully",
        bookmark=bookmark_read(bookmark),
    )


@router.get("/check", response_model=BookmarkExistsResponse)
async def check_bookmark_exists(
    from_currency: str = Query(..., alias="fromCurrency"),
    to_currency: str = Query(..., alias="toCurrency"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(BookmarkedPair.id).where(
            BookmarkedPair.user_id == user.id,
            BookmarkedPair.from_currency == from_currency.strip().upper(),
            BookmarkedPair.to_currency == to_currency.strip().upper(),
        )
    )
    return BookmarkExistsResponse(exists=result.scalar_one_or_none() is not None)
