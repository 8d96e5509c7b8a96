"""
Pydantic schemas for live and historical exchange-rate responses.
"""

from datetime import date, datetime

from app.schemas.base import CamelModel


class LiveRateResponse(CamelModel):
    """Current rate for one pair with provenance."""
    from_currency: str
    to_currency: str
    rate: float
    timestamp: datetime
    source: str


class HistoricalPointRead(CamelModel):
    date: date
    rate: float


class HistoricalStats(CamelModel):
    highest: float
    lowest: float
    average: float
    data_points: int


class HistoricalRatesResponse(CamelModel):
    """Daily series for charting, plus summary statistics."""
    from_currency: str
    to_currency: str
    start_date: date
    end_date: date
    labels: list[str]
    series: list[HistoricalPointRead]
    stats: HistoricalStats
    source: str
    warning: str | None = None
