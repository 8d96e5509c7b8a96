"""
Conversion history endpoints.

  GET    /         paginated list with sorting
  POST   /         save a conversion computed elsewhere
  DELETE /{id}     delete one entry
  DELETE /         clear the caller's history
  GET    /stats    totals, top pairs, monthly volume
"""

import logging
import math
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.conversion import ConversionHistory
from app.models.user import User
from app.schemas.base import MessageResponse
from app.schemas.history import (
    HistoryClearedResponse,
    HistoryCreate,
    HistoryCreatedResponse,
    HistoryItem,
    HistoryListResponse,
    HistoryStatsResponse,
    MonthlyVolumeRead,
    Pagination,
    PairUsageRead,
)
from app.services.conversion_service import InvalidCurrencyPairError, normalize_pair
from app.services.history_service import format_relative_time, summarize_history

logger = logging.getLogger(__name__)

router = APIRouter()

SORT_COLUMNS = {
    "timestamp": ConversionHistory.created_at,
    "amount": ConversionHistory.amount,
    "rate": ConversionHistory.rate,
    "finalAmount": ConversionHistory.final_amount,
}


def history_item(entry: ConversionHistory, now: datetime | None = None, *, with_fees: bool = True) -> HistoryItem:
    return HistoryItem(
        id=entry.id,
        from_=entry.from_currency,
        to=entry.to_currency,
        amount=entry.amount,
        rate=f"{entry.rate:.4f}",
        result=f"{entry.final_amount:.2f}",
        timestamp=format_relative_time(entry.created_at, now),
        fee_type=entry.fee_type if with_fees else None,
        fee_amount=f"{entry.fee_amount:.2f}" if with_fees else None,
    )


@router.get("/", response_model=HistoryListResponse)
async def list_history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort_by: str = Query("timestamp", alias="sortBy", pattern="^(timestamp|amount|rate|finalAmount)$"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    owner_filter = ConversionHistory.user_id == user.id

    total = (await db.execute(
        select(func.count(ConversionHistory.id)).where(owner_filter)
    )).scalar_one()

    column = SORT_COLUMNS[sort_by]
    offset = (page - 1) * limit
    result = await db.execute(
        select(ConversionHistory)
        .where(owner_filter)
        .order_by(column.desc() if sort_order == "desc" else column.asc())
        .offset(offset)
        .limit(limit)
    )
    entries = list(result.scalars().all())

    now = datetime.now(timezone.utc)
    return HistoryListResponse(
        history=[history_item(e, now) for e in entries],
        pagination=Pagination(
            current_page=page,
            total_pages=math.ceil(total / limit),
            total_count=total,
            has_more=offset + len(entries) < total,
        ),
    )


@router.post("/", response_model=HistoryCreatedResponse, status_code=status.HTTP_201_CREATED)
async def add_to_history(
    payload: HistoryCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        src, tgt = normalize_pair(payload.from_currency, payload.to_currency)
    except InvalidCurrencyPairError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    converted = payload.converted_amount
    if converted is None:
        converted = payload.amount * payload.rate

    entry = ConversionHistory(
        user_id=user.id,
        from_currency=src,
        to_currency=tgt,
        amount=payload.amount,
        rate=payload.rate,
        converted_amount=converted,
        fee_type=payload.fee_type or "none",
        fee_amount=payload.fee_amount,
        final_amount=payload.final_amount,
    )
    db.add(entry)
    await db.flush()

    return HistoryCreatedResponse(message="Conversion added to history", history_id=entry.id)


@router.get("/stats", response_model=HistoryStatsResponse)
async def history_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Top 5 pairs by count and the 12 most recent months of volume."""
    result = await db.execute(
        select(ConversionHistory)
        .where(ConversionHistory.user_id == user.id)
        .order_by(ConversionHistory.created_at.asc(), ConversionHistory.id.asc())
    )
    summary = summarize_history(list(result.scalars().all()))

    return HistoryStatsResponse(
        total_conversions=summary.total_conversions,
        top_pairs=[
            PairUsageRead(
                from_=p.from_currency, to=p.to_currency,
                count=p.count, total_amount=f"{p.total_amount:.2f}",
            )
            for p in summary.top_pairs
        ],
        monthly_volume=[
            MonthlyVolumeRead(
                year=m.year, month=m.month,
                count=m.count, total_amount=f"{m.total_amount:.2f}",
            )
            for m in summary.monthly_volume
        ],
    )


@router.delete("/{entry_id}", response_model=MessageResponse)
async def delete_from_history(
    entry_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(ConversionHistory).where(
            ConversionHistory.id == entry_id,
            ConversionHistory.user_id == user.id,
        )
    )
    entry = result.scalar_one_or_none()
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="History entry not found",
        )

    await db.delete(entry)
    await db.flush()
    return MessageResponse(message="History entry deleted successfully")


@router.delete("/", response_model=HistoryClearedResponse)
async def clear_history(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        delete(ConversionHistory).where(ConversionHistory.user_id == user.id)
    )
    logger.info("User %s cleared %d history entries", user.id, result.rowcount)
    return HistoryClearedResponse(
        message="History cleared successfully", deleted_count=result.rowcount,
    )
