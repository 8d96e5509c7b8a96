"""
Shared test fixtures for the Smart Currency Converter API.

Provides async test client, database session mocks, Redis mocks,
a network-free rate service, and RSA key fixtures for JWT testing.
"""

import random
from datetime import date, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient

from app.database import get_db
from app.models.user import User
from app.redis_client import get_redis
from app.services import auth_service
from app.services.mock_rates import MockRateGenerator
from app.services.rate_providers import (
    SOURCE_LIVE,
    ExchangeRate,
    HistoricalPoint,
    ProviderUnavailableError,
    RateNotFoundError,
)
from app.services.rate_service import RateService, get_rate_service


# --- RSA Key Fixtures ---


@pytest.fixture(scope="session")
def test_rsa_keys():
    """Generate a temporary RSA keypair for test JWT signing."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )

    return {"private_key": private_pem, "public_key": public_pem}


@pytest.fixture(autouse=True)
def auth_service_with_keys(test_rsa_keys):
    """Configure auth_service to use test RSA keys for every test."""
    auth_service.configure_keys(
        private_key=test_rsa_keys["private_key"],
        public_key=test_rsa_keys["public_key"],
        algorithm="RS256",
    )


# --- Mock Redis ---


@pytest.fixture
def mock_redis():
    """AsyncMock Redis client with common methods."""
    redis = AsyncMock()
    redis.setex = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.delete = AsyncMock()
    redis.incr = AsyncMock(return_value=1)
    redis.expire = AsyncMock()
    return redis


# --- Users ---


def _make_user(**overrides) -> User:
    """Create a User instance with test defaults via the normal constructor."""
    defaults = {
        "username": "jane_doe",
        "email": "jane@example.com",
    }
    password = overrides.pop("password", None)
    defaults.update(overrides)
    user = User(**defaults)
    if password is not None:
        user.set_password(password)
    return user


@pytest.fixture
def make_user():
    """Factory fixture for creating User instances."""
    return _make_user


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def auth_headers(user):
    """JWT Authorization header for the test user."""
    token = auth_service.create_access_token(str(user.id), user.email)
    return {"Authorization": f"Bearer {token}"}


# --- Mock Database Session ---


def _make_result(*, one=None, many=None, scalar=None, rowcount=0):
    """A stand-in for the Result returned by ``session.execute``."""
    result = MagicMock()
    result.scalar_one_or_none = MagicMock(return_value=one)
    result.scalar_one = MagicMock(return_value=scalar if scalar is not None else one)
    result.scalars = MagicMock(
        return_value=MagicMock(all=MagicMock(return_value=list(many or [])))
    )
    result.all = MagicMock(return_value=list(many or []))
    result.rowcount = rowcount
    return result


@pytest.fixture
def make_result():
    """Factory fixture for execute() results."""
    return _make_result


@pytest.fixture
def mock_db():
    """AsyncMock database session."""
    db = AsyncMock()

    db.execute = AsyncMock(return_value=_make_result())
    db.flush = AsyncMock()
    db.add = MagicMock()
    db.delete = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()

    # Savepoint used when saving conversion history
    nested = MagicMock()
    nested.__aenter__ = AsyncMock(return_value=None)
    nested.__aexit__ = AsyncMock(return_value=False)
    db.begin_nested = MagicMock(return_value=nested)

    return db


@pytest.fixture
def db_returning(mock_db):
    """Queue execute() results in call order: db_returning(r1, r2, ...)."""
    def _queue(*results):
        mock_db.execute = AsyncMock(side_effect=list(results))
        return mock_db
    return _queue


# --- Rate Providers ---


class StubRateProvider:
    """In-memory live and historical provider that can be switched off."""

    def __init__(self, rates: dict[str, float] | None = None, fail: bool = False):
        self.rates = dict(rates or {"USD-INR": 83.0, "USD-EUR": 0.9, "EUR-USD": 1.1})
        self.fail = fail
        self.calls: list[tuple[str, str]] = []

    def _rate(self, from_currency: str, to_currency: str) -> float:
        self.calls.append((from_currency, to_currency))
        if self.fail:
            raise ProviderUnavailableError("stub provider is down")
        key = f"{from_currency}-{to_currency}"
        if key not in self.rates:
            raise RateNotFoundError(f"Exchange rate not found for {from_currency} to {to_currency}")
        return self.rates[key]

    async def get_live_rate(self, from_currency: str, to_currency: str) -> ExchangeRate:
        return ExchangeRate(rate=self._rate(from_currency, to_currency), source=SOURCE_LIVE)

    async def get_historical_series(
        self, from_currency: str, to_currency: str, start_date: date, end_date: date,
    ) -> list[HistoricalPoint]:
        rate = self._rate(from_currency, to_currency)
        days = (end_date - start_date).days + 1
        return [
            HistoricalPoint(date=start_date + timedelta(days=i), rate=rate + i * 0.5)
            for i in range(days)
        ]


@pytest.fixture
def make_rate_provider():
    """Factory fixture for StubRateProvider instances."""
    return StubRateProvider


@pytest.fixture
def rate_provider():
    return StubRateProvider()


@pytest.fixture
def rate_service(rate_provider):
    """RateService over the stub provider with a seeded mock generator."""
    return RateService(
        live_provider=rate_provider,
        historical_provider=rate_provider,
        mock=MockRateGenerator(rng=random.Random(7)),
    )


# --- Dependency Override Helpers ---


@pytest_asyncio.fixture
async def client(mock_db, mock_redis, rate_service):
    """
    Async HTTP test client with get_db, get_redis and get_rate_service
    overridden to use test doubles.
    """
    from app.main import app

    async def override_get_db():
        yield mock_db

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_rate_service] = lambda: rate_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
