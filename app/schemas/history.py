"""
Pydantic schemas for conversion history, pagination, and history stats.
"""

from uuid import UUID

from pydantic import Field

from app.schemas.base import CamelModel


class HistoryCreate(CamelModel):
    """Manually saved conversion; values are stored exactly as sent."""
    from_currency: str = Field(..., examples=["USD"])
    to_currency: str = Field(..., examples=["EUR"])
    amount: float = Field(..., gt=0)
    rate: float = Field(..., gt=0)
    converted_amount: float | None = Field(None, ge=0)
    fee_type: str = "none"
    fee_amount: float = Field(0.0, ge=0)
    final_amount: float = Field(..., ge=0)


class HistoryItem(CamelModel):
    id: UUID
    from_: str = Field(..., alias="from")
    to: str
    amount: float
    rate: str
    result: str
    timestamp: str
    fee_type: str | None = None
    fee_amount: str | None = None


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_count: int
    has_more: bool


class HistoryListResponse(CamelModel):
    history: list[HistoryItem]
    pagination: Pagination


class HistoryCreatedResponse(CamelModel):
    message: str
    history_id: UUID


class HistoryClearedResponse(CamelModel):
    message: str
    deleted_count: int


class PairUsageRead(CamelModel):
    from_: str = Field(..., alias="from")
    to: str
    count: int
    total_amount: str


class MonthlyVolumeRead(CamelModel):
    year: int
    month: int
    count: int
    total_amount: str


class HistoryStatsResponse(CamelModel):
    total_conversions: int
    top_pairs: list[PairUsageRead]
    monthly_volume: list[MonthlyVolumeRead]
