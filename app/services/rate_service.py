"""
FX rate resolution — live and historical rates with mock fallback.

Every request goes to the provider; there is no rate cache and no
de-duplication of concurrent identical lookups. When a provider call
fails, the failure is logged and replaced with mock data tagged
``source="mock"``, so provider outages never surface as request errors.
"""

import logging
from dataclasses import dataclass
from datetime import date

from app.config import settings
from app.services.mock_rates import MockRateGenerator, MockRateProvider
from app.services.rate_providers import (
    SOURCE_HISTORICAL,
    SOURCE_MOCK,
    ExchangeRate,
    ExchangeRateAPIProvider,
    ExchangeRateProvider,
    FrankfurterProvider,
    HistoricalPoint,
    HistoricalRateProvider,
    LiveRateProvider,
    fetch_historical,
    fetch_live,
)

logger = logging.getLogger(__name__)

MOCK_DATA_WARNING = "Using mock data due to API unavailability"


@dataclass(frozen=True)
class HistoricalSeries:
    """Ordered daily rates for a pair, with provenance."""
    from_currency: str
    to_currency: str
    points: list[HistoricalPoint]
    source: str
    warning: str | None = None

    @property
    def rates(self) -> list[float]:
        return [p.rate for p in self.points]


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------

_rate_provider: ExchangeRateProvider | None = None


def _build_rate_provider() -> ExchangeRateProvider:
    if settings.FX_RATE_MOCK:
        mock = MockRateProvider()
        return ExchangeRateProvider(live=mock, historical=mock)
    timeout = settings.FX_PROVIDER_TIMEOUT_SECONDS
    return ExchangeRateProvider(
        live=ExchangeRateAPIProvider(settings.LIVE_RATE_API_URL, timeout=timeout),
        historical=FrankfurterProvider(settings.HISTORICAL_RATE_API_URL, timeout=timeout),
    )


def get_rate_provider() -> ExchangeRateProvider:
    """Return the provider set with ``set_rate_provider``, or the configured one."""
    global _rate_provider
    if _rate_provider is None:
        _rate_provider = _build_rate_provider()
    return _rate_provider


def set_rate_provider(provider: ExchangeRateProvider | None) -> None:
    """Replace the process-wide provider. ``None`` restores the configured one."""
    global _rate_provider
    _rate_provider = provider


# ---------------------------------------------------------------------------
# RateService
# ---------------------------------------------------------------------------


class RateService:
    """Resolves rates from the configured providers, falling back to mocks."""

    def __init__(
        self,
        live_provider: LiveRateProvider | None = None,
        historical_provider: HistoricalRateProvider | None = None,
        mock: MockRateGenerator | None = None,
    ):
        if live_provider is None or historical_provider is None:
            provider = get_rate_provider()
            live_provider = live_provider or provider.live
            historical_provider = historical_provider or provider.historical
        self.live_provider = live_provider
        self.historical_provider = historical_provider
        self.mock = mock or MockRateGenerator()

    async def get_live_rate(self, from_currency: str, to_currency: str) -> ExchangeRate:
        """Live rate for the pair, or a mock rate if the provider fails."""
        lookup = await fetch_live(self.live_provider, from_currency, to_currency)
        if not lookup.ok:
            logger.warning(
                "Using mock exchange rate for %s-%s: %s",
                from_currency, to_currency, lookup.error,
            )
        return lookup.or_else(
            lambda: self.mock.mock_exchange_rate(from_currency, to_currency)
        )

    async def get_historical_series(
        self,
        from_currency: str,
        to_currency: str,
        start_date: date,
        end_date: date,
    ) -> HistoricalSeries:
        """Historical series for the pair, or a synthetic one if the provider fails."""
        source = (
            SOURCE_MOCK if isinstance(self.historical_provider, MockRateProvider)
            else SOURCE_HISTORICAL
        )
        lookup = await fetch_historical(
            self.historical_provider, from_currency, to_currency, start_date, end_date,
        )
        if lookup.ok:
            return HistoricalSeries(
                from_currency=from_currency,
                to_currency=to_currency,
                points=lookup.value,
                source=source,
            )

        logger.warning(
            "Using mock historical data for %s-%s (%s..%s): %s",
            from_currency, to_currency, start_date, end_date, lookup.error,
        )
        return HistoricalSeries(
            from_currency=from_currency,
            to_currency=to_currency,
            points=self.mock.mock_series(from_currency, to_currency, start_date, end_date),
            source=SOURCE_MOCK,
            warning=MOCK_DATA_WARNING,
        )


def get_rate_service() -> RateService:
    """FastAPI dependency returning a RateService on the configured providers."""
    return RateService()
