"""
Conversion history — entry construction, aggregation and display helpers.

Aggregation works on any sequence of records exposing ``from_currency``,
``to_currency``, ``amount``, ``final_amount`` and ``created_at``:

  - top_pairs:       most frequent (from, to) pairs with summed ``amount``
  - monthly_volume:  per (year, month) count and summed ``final_amount``

Ties in pair counts keep the order in which pairs first appear in the
input, so callers that need a deterministic order must pass records in a
deterministic order.
"""

import uuid
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Sequence

from app.models.conversion import ConversionHistory
from app.services.conversion_service import ConversionResult

TOP_PAIRS_LIMIT = 5
MONTHLY_VOLUME_LIMIT = 12


@dataclass(frozen=True)
class PairUsage:
    from_currency: str
    to_currency: str
    count: int
    total_amount: float


@dataclass(frozen=True)
class MonthlyVolume:
    year: int
    month: int
    count: int
    total_amount: float


@dataclass(frozen=True)
class HistorySummary:
    total_conversions: int
    top_pairs: list[PairUsage]
    monthly_volume: list[MonthlyVolume]


def build_history_entry(
    user_id: uuid.UUID,
    from_currency: str,
    to_currency: str,
    result: ConversionResult,
) -> ConversionHistory:
    """ORM record for a computed conversion, values stored unrounded."""
    return ConversionHistory(
        user_id=user_id,
        from_currency=from_currency,
        to_currency=to_currency,
        amount=result.amount,
        rate=result.rate,
        converted_amount=result.converted_amount,
        fee_type=str(getattr(result.fee_type, "value", result.fee_type) or "none"),
        fee_amount=result.fee_amount,
        final_amount=result.final_amount,
    )


def top_pairs(records: Iterable, limit: int = TOP_PAIRS_LIMIT) -> list[PairUsage]:
    counts: Counter = Counter()
    totals: dict[tuple[str, str], float] = defaultdict(float)
    for record in records:
        key = (record.from_currency, record.to_currency)
        counts[key] += 1
        totals[key] += record.amount

    return [
        PairUsage(from_currency=src, to_currency=tgt, count=count, total_amount=totals[(src, tgt)])
        for (src, tgt), count in counts.most_common(limit)
    ]


def monthly_volume(records: Iterable, limit: int = MONTHLY_VOLUME_LIMIT) -> list[MonthlyVolume]:
    counts: Counter = Counter()
    totals: dict[tuple[int, int], float] = defaultdict(float)
    for record in records:
        ts = record.created_at
        key = (ts.year, ts.month)
        counts[key] += 1
        totals[key] += record.final_amount

    months = sorted(counts, reverse=True)[:limit]
    return [
        MonthlyVolume(year=year, month=month, count=counts[(year, month)], total_amount=totals[(year, month)])
        for year, month in months
    ]


def summarize_history(records: Sequence) -> HistorySummary:
    return HistorySummary(
        total_conversions=len(records),
        top_pairs=top_pairs(records),
        monthly_volume=monthly_volume(records),
    )


def format_relative_time(timestamp: datetime, now: datetime | None = None) -> str:
    """'3 days ago' / '1 hour ago' / '5 minutes ago'."""
    now = now or datetime.now(timezone.utc)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    seconds = max((now - timestamp).total_seconds(), 0)
    hours = int(seconds // 3600)
    days = hours // 24

    if days > 0:
        return f"{days} day{'s' if days > 1 else ''} ago"
    if hours > 0:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    minutes = int(seconds // 60)
    return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
