"""
Conversion and rate endpoints.

  POST /                  convert an amount (anonymous or authenticated)
  GET  /rates/live/{from}/{to}
  GET  /rates/historical  daily series for charts

Provider failures never fail these requests: the rate service substitutes
mock data and the response carries ``source="mock"``.
"""

import logging
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_optional_user
from app.config import settings
from app.database import get_db
from app.models.user import User
from app.schemas.conversion import ConvertRequest, ConvertResponse
from app.schemas.rate import (
    HistoricalPointRead,
    HistoricalRatesResponse,
    HistoricalStats,
    LiveRateResponse,
)
from app.services import conversion_service
from app.services.conversion_service import InvalidAmountError, InvalidCurrencyPairError
from app.services.history_service import build_history_entry
from app.services.rate_providers import SOURCE_MOCK
from app.services.rate_service import RateService, get_rate_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _bad_request(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _chart_label(day: date) -> str:
    return f"{day.strftime('%b')} {day.day}"


# ---------------------------------------------------------------------------
# POST /
# ---------------------------------------------------------------------------


@router.post("", response_model=ConvertResponse)
async def convert_currency(
    payload: ConvertRequest,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
    rates: RateService = Depends(get_rate_service),
):
    """
    Convert an amount at the current rate and apply the selected fee.

    Authenticated callers get the conversion saved to history unless
    ``saveHistory`` is false. A failed history save is logged and does
    not affect the response.
    """
    try:
        src, tgt = conversion_service.normalize_pair(payload.from_currency, payload.to_currency)
        if payload.amount <= 0:
            raise InvalidAmountError("Amount must be greater than 0")
    except (InvalidAmountError, InvalidCurrencyPairError) as exc:
        raise _bad_request(exc)

    exchange_rate = await rates.get_live_rate(src, tgt)
    result = conversion_service.convert(payload.amount, exchange_rate.rate, payload.fee_type)

    if user is not None and payload.save_history:
        try:
            async with db.begin_nested():
                db.add(build_history_entry(user.id, src, tgt, result))
        except Exception:
            logger.exception("Error saving conversion history for user %s", user.id)

    return ConvertResponse(
        from_currency=src,
        to_currency=tgt,
        amount=result.amount,
        rate=result.rate,
        source=exchange_rate.source,
        converted_amount=round(result.converted_amount, 2),
        fee_type=result.fee_type,
        fee_percentage=result.fee_percent,
        fee_amount=round(result.fee_amount, 2),
        final_amount=round(result.final_amount, 2),
        timestamp=datetime.now(timezone.utc),
        warning="Using mock exchange rate" if exchange_rate.source == SOURCE_MOCK else None,
    )


# ---------------------------------------------------------------------------
# GET /rates/live/{from}/{to}
# ---------------------------------------------------------------------------


@router.get("/rates/live/{from_currency}/{to_currency}", response_model=LiveRateResponse)
async def get_live_rate(
    from_currency: str,
    to_currency: str,
    rates: RateService = Depends(get_rate_service),
):
    """Current rate for a pair; mock rate when the provider is unavailable."""
    try:
        src, tgt = conversion_service.normalize_pair(from_currency, to_currency)
    except InvalidCurrencyPairError as exc:
        raise _bad_request(exc)

    exchange_rate = await rates.get_live_rate(src, tgt)
    return LiveRateResponse(
        from_currency=src,
        to_currency=tgt,
        rate=exchange_rate.rate,
        timestamp=exchange_rate.observed_at or datetime.now(timezone.utc),
        source=exchange_rate.source,
    )


# ---------------------------------------------------------------------------
# GET /rates/historical
# ---------------------------------------------------------------------------


@router.get("/rates/historical", response_model=HistoricalRatesResponse)
async def get_historical_rates(
    from_currency: str = Query(..., alias="fromCurrency", examples=["USD"]),
    to_currency: str = Query(..., alias="toCurrency", examples=["INR"]),
    start_date: date = Query(..., alias="startDate", description="YYYY-MM-DD"),
    end_date: date = Query(..., alias="endDate", description="YYYY-MM-DD"),
    rates: RateService = Depends(get_rate_service),
):
    """
    Daily rates between two dates (inclusive) with highest/lowest/average.

    The range may span at most HISTORICAL_MAX_RANGE_DAYS days.
    """
    try:
        src, tgt = conversion_service.normalize_pair(from_currency, to_currency)
    except InvalidCurrencyPairError as exc:
        raise _bad_request(exc)

    if start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Start date cannot be after end date",
        )
    if (end_date - start_date).days > settings.HISTORICAL_MAX_RANGE_DAYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Date range cannot exceed {settings.HISTORICAL_MAX_RANGE_DAYS} days",
        )

    series = await rates.get_historical_series(src, tgt, start_date, end_date)
    values = series.rates

    return HistoricalRatesResponse(
        from_currency=src,
        to_currency=tgt,
        start_date=start_date,
        end_date=end_date,
        labels=[_chart_label(p.date) for p in series.points],
        series=[HistoricalPointRead(date=p.date, rate=p.rate) for p in series.points],
        stats=HistoricalStats(
            highest=max(values),
            lowest=min(values),
            average=sum(values) / len(values),
            data_points=len(values),
        ),
        source=series.source,
        warning=series.warning,
    )
