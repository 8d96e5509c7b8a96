"""
Mock FX rates for offline development and provider fallback.

The baseline table covers seven ordered pairs; their reverses are derived
as reciprocals. Any other pair gets a random rate in [0.1, 10.1), so only
the listed pairs and their reverses are deterministic.

Historical series are synthetic: every day gets an independent ±5%
jitter around the pair's base rate, with no smoothing between days.
"""

from __future__ import annotations

import random
from datetime import date, timedelta
from typing import Mapping, Protocol

from app.services.rate_providers import ExchangeRate, HistoricalPoint, SOURCE_MOCK

BASE_MOCK_RATES: Mapping[str, float] = {
    "USD-INR": 83.25,
    "USD-EUR": 0.92,
    "USD-GBP": 0.79,
    "USD-JPY": 149.50,
    "EUR-USD": 1.08,
    "GBP-USD": 1.27,
    "JPY-USD": 0.0067,
}

RANDOM_RATE_MIN = 0.1
RANDOM_RATE_SPAN = 10.0
DAILY_JITTER = 0.1  # total width, i.e. ±5%


class RandomSource(Protocol):
    def random(self) -> float: ...


class MockRateGenerator:
    """Rate table plus random source, both injectable."""

    def __init__(
        self,
        table: Mapping[str, float] | None = None,
        rng: RandomSource | None = None,
    ):
        self.table = dict(BASE_MOCK_RATES if table is None else table)
        self.rng = rng if rng is not None else random.Random()

    def mock_rate(self, from_currency: str, to_currency: str) -> float:
        """Table rate, else reciprocal of the reverse entry, else random."""
        key = f"{from_currency.upper()}-{to_currency.upper()}"
        reverse_key = f"{to_currency.upper()}-{from_currency.upper()}"

        if key in self.table:
            return self.table[key]
        if reverse_key in self.table:
            return 1 / self.table[reverse_key]
        return self.rng.random() * RANDOM_RATE_SPAN + RANDOM_RATE_MIN

    def mock_exchange_rate(self, from_currency: str, to_currency: str) -> ExchangeRate:
        return ExchangeRate(
            rate=self.mock_rate(from_currency, to_currency),
            source=SOURCE_MOCK,
            observed_at=None,
        )

    def mock_series(
        self,
        from_currency: str,
        to_currency: str,
        start_date: date,
        end_date: date,
    ) -> list[HistoricalPoint]:
        """One jittered point per calendar day in [start_date, end_date]."""
        base = self.mock_rate(from_currency, to_currency)
        points: list[HistoricalPoint] = []
        current = start_date
        while current <= end_date:
            variation = (self.rng.random() - 0.5) * DAILY_JITTER
            points.append(HistoricalPoint(date=current, rate=base * (1 + variation)))
            current += timedelta(days=1)
        return points


class MockRateProvider:
    """Provider backed entirely by a ``MockRateGenerator`` (FX_RATE_MOCK mode)."""

    def __init__(self, generator: MockRateGenerator | None = None):
        self.generator = generator or MockRateGenerator()

    async def get_live_rate(self, from_currency: str, to_currency: str) -> ExchangeRate:
        return self.generator.mock_exchange_rate(from_currency, to_currency)

    async def get_historical_series(
        self, from_currency: str, to_currency: str, start_date: date, end_date: date,
    ) -> list[HistoricalPoint]:
        return self.generator.mock_series(from_currency, to_currency, start_date, end_date)
