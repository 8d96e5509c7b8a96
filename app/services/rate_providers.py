"""
External FX rate providers — live spot rates and historical series.

Architecture:
  - ExchangeRateAPIProvider   live rate table keyed by base currency
  - FrankfurterProvider       historical range queries (start..end)
  - ExchangeRateProvider      one object delegating to a live and a historical provider
  - RateLookup                explicit ok/failed result with ``or_else``

Providers raise ``RateNotFoundError`` when the response lacks the quote
currency and ``ProviderUnavailableError`` on network errors, timeouts,
non-2xx responses and bodies of an unexpected shape. They never fall back
on their own: each call site goes through ``fetch_live`` or
``fetch_historical`` and decides what to substitute via
``RateLookup.or_else``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable, Generic, Protocol, TypeVar

import httpx

logger = logging.getLogger(__name__)

SOURCE_LIVE = "live-provider"
SOURCE_HISTORICAL = "historical-provider"
SOURCE_MOCK = "mock"

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "SmartCurrencyConverter/1.0",
}

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExchangeRate:
    """A positive rate with its provenance."""
    rate: float
    source: str
    observed_at: datetime | None = None


@dataclass(frozen=True)
class HistoricalPoint:
    date: date
    rate: float


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class RateProviderError(Exception):
    """Base class for provider failures that callers may replace with mock data."""


class RateNotFoundError(RateProviderError):
    """The provider answered but has no rate for the requested quote currency."""


class ProviderUnavailableError(RateProviderError):
    """Network error, timeout, non-2xx response or malformed body from a provider."""


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RateLookup(Generic[T]):
    """Outcome of a provider call: a value or the provider error."""
    value: T | None = None
    error: RateProviderError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def or_else(self, fallback: Callable[[], T]) -> T:
        """Return the value, or the fallback's result when the call failed."""
        if self.error is None:
            return self.value
        return fallback()


async def capture_rate_errors(call: Awaitable[T]) -> RateLookup[T]:
    """Await a provider call and turn provider errors into a failed lookup."""
    try:
        return RateLookup(value=await call)
    except RateProviderError as exc:
        return RateLookup(error=exc)


# ---------------------------------------------------------------------------
# Provider protocols
# ---------------------------------------------------------------------------


class LiveRateProvider(Protocol):
    async def get_live_rate(self, from_currency: str, to_currency: str) -> ExchangeRate: ...


class HistoricalRateProvider(Protocol):
    async def get_historical_series(
        self, from_currency: str, to_currency: str, start_date: date, end_date: date,
    ) -> list[HistoricalPoint]: ...


class ExchangeRateProvider:
    """Live and historical lookups behind one object."""

    def __init__(self, live: LiveRateProvider, historical: HistoricalRateProvider):
        self.live = live
        self.historical = historical

    async def get_live_rate(self, from_currency: str, to_currency: str) -> ExchangeRate:
        return await self.live.get_live_rate(from_currency, to_currency)

    async def get_historical_series(
        self, from_currency: str, to_currency: str, start_date: date, end_date: date,
    ) -> list[HistoricalPoint]:
        return await self.historical.get_historical_series(
            from_currency, to_currency, start_date, end_date,
        )


async def fetch_live(
    provider: LiveRateProvider, from_currency: str, to_currency: str,
) -> RateLookup[ExchangeRate]:
    return await capture_rate_errors(provider.get_live_rate(from_currency, to_currency))


async def fetch_historical(
    provider: HistoricalRateProvider,
    from_currency: str,
    to_currency: str,
    start_date: date,
    end_date: date,
) -> RateLookup[list[HistoricalPoint]]:
    return await capture_rate_errors(
        provider.get_historical_series(from_currency, to_currency, start_date, end_date)
    )


# ---------------------------------------------------------------------------
# HTTP helper
# ---------------------------------------------------------------------------


async def _get_json(
    url: str,
    *,
    params: dict | None,
    timeout: float,
    transport: httpx.AsyncBaseTransport | None,
) -> dict[str, Any]:
    try:
        async with httpx.AsyncClient(
            timeout=timeout, headers=DEFAULT_HEADERS, transport=transport,
        ) as client:
            resp = await client.get(url, params=params)
            resp.raise_for_status()
            data = resp.json()
    except httpx.HTTPStatusError as exc:
        raise ProviderUnavailableError(
            f"{url} returned HTTP {exc.response.status_code}"
        ) from exc
    except httpx.HTTPError as exc:
        raise ProviderUnavailableError(f"{url} request failed: {exc!r}") from exc
    except ValueError as exc:
        raise ProviderUnavailableError(f"{url} returned invalid JSON") from exc

    if not isinstance(data, dict):
        raise ProviderUnavailableError(f"{url} returned an unexpected payload")
    return data


def _positive_rate(value: Any) -> float | None:
    try:
        rate = float(value)
    except (TypeError, ValueError):
        return None
    return rate if rate > 0 else None


def _rate_table(data: dict[str, Any]) -> dict[str, Any]:
    rates = data.get("rates")
    if rates is None:
        return {}
    if not isinstance(rates, dict):
        raise ProviderUnavailableError(f"Unexpected rates payload: {type(rates).__name__}")
    return rates


# ---------------------------------------------------------------------------
# Live provider (exchangerate-api.com)
# ---------------------------------------------------------------------------


class ExchangeRateAPIProvider:
    """Fetch the full rate table for a base currency and pick the quote."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 3.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def get_live_rate(self, from_currency: str, to_currency: str) -> ExchangeRate:
        base = from_currency.upper()
        quote = to_currency.upper()
        data = await _get_json(
            f"{self._base_url}/{base}",
            params=None,
            timeout=self._timeout,
            transport=self._transport,
        )

        rate = _positive_rate(_rate_table(data).get(quote))
        if rate is None:
            raise RateNotFoundError(f"Exchange rate not found for {base} to {quote}")

        observed_at = None
        if data.get("date"):
            try:
                observed_at = datetime.combine(
                    date.fromisoformat(data["date"]), datetime.min.time(), tzinfo=timezone.utc,
                )
            except (TypeError, ValueError):
                logger.debug("Unparseable observation date %r from live provider", data["date"])

        return ExchangeRate(rate=rate, source=SOURCE_LIVE, observed_at=observed_at)


# ---------------------------------------------------------------------------
# Historical provider (frankfurter.dev)
# ---------------------------------------------------------------------------


class FrankfurterProvider:
    """Fetch a date-range series filtered to one base/quote pair."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 3.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def get_historical_series(
        self,
        from_currency: str,
        to_currency: str,
        start_date: date,
        end_date: date,
    ) -> list[HistoricalPoint]:
        """
        Return points sorted ascending by date, clipped to [start_date, end_date].

        The provider publishes business days only, so weekends and holidays
        are absent. A listed day without the quote currency fails the whole
        call with ``RateNotFoundError``.
        """
        base = from_currency.upper()
        quote = to_currency.upper()
        data = await _get_json(
            f"{self._base_url}/{start_date.isoformat()}..{end_date.isoformat()}",
            params={"base": base, "symbols": quote},
            timeout=self._timeout,
            transport=self._transport,
        )

        points: list[HistoricalPoint] = []
        for day, rates in _rate_table(data).items():
            try:
                point_date = date.fromisoformat(day)
            except ValueError as exc:
                raise ProviderUnavailableError(f"Unexpected date key {day!r}") from exc
            if not start_date <= point_date <= end_date:
                continue
            if not isinstance(rates, dict):
                raise ProviderUnavailableError(f"Unexpected rate entry for {day}: {rates!r}")
            rate = _positive_rate(rates.get(quote))
            if rate is None:
                raise RateNotFoundError(f"No {base}/{quote} rate for {day}")
            points.append(HistoricalPoint(date=point_date, rate=rate))

        if not points:
            raise RateNotFoundError(
                f"No {base}/{quote} rates between {start_date} and {end_date}"
            )
        points.sort(key=lambda p: p.date)
        return points
