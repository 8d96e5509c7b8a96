"""Tests for bookmark trend tracking, bulk refresh and the /bookmarks endpoints."""

import logging
import random
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from app.models.bookmark import BookmarkedPair, Trend
from app.services import bookmark_service
from app.services.mock_rates import MockRateGenerator
from app.services.rate_providers import (
    SOURCE_LIVE,
    SOURCE_MOCK,
    ExchangeRate,
    ProviderUnavailableError,
)
from app.services.rate_service import RateService

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _bookmark(from_currency="USD", to_currency="EUR", rate=0.92, **kwargs) -> BookmarkedPair:
    kwargs.setdefault("user_id", uuid.uuid4())
    return BookmarkedPair(
        from_currency=from_currency, to_currency=to_currency, current_rate=rate, **kwargs,
    )


class FlakyProvider:
    """Live provider whose Nth call fails."""

    def __init__(self, rates: dict[str, float], fail_on_call: int):
        self.rates = rates
        self.fail_on_call = fail_on_call
        self.call_count = 0

    async def get_live_rate(self, from_currency: str, to_currency: str) -> ExchangeRate:
        self.call_count += 1
        if self.call_count == self.fail_on_call:
            raise ProviderUnavailableError("connection reset")
        return ExchangeRate(rate=self.rates[f"{from_currency}-{to_currency}"], source=SOURCE_LIVE)


# ---------------------------------------------------------------------------
# Trend transitions
# ---------------------------------------------------------------------------


class TestTrend:

    @pytest.mark.parametrize("old, new, expected", [
        (0.92, 0.95, Trend.UP),
        (0.92, 0.90, Trend.DOWN),
        (0.92, 0.92, Trend.NEUTRAL),
    ])
    def test_classify(self, old, new, expected):
        assert bookmark_service.classify_trend(old, new) == expected

    def test_apply_rate_change_stores_new_rate(self):
        assert bookmark_service.apply_rate_change(83.0, 83.5) == (83.5, Trend.UP)

    def test_refresh_trend_updates_in_place(self):
        bookmark = _bookmark(rate=0.92)
        bookmark_service.refresh_trend(bookmark, 0.95, NOW)

        assert bookmark.current_rate == 0.95
        assert bookmark.trend == Trend.UP
        assert bookmark.updated_at == NOW

    def test_unchanged_rate_resets_trend_to_neutral(self):
        bookmark = _bookmark(rate=0.92, trend=Trend.UP)
        bookmark_service.refresh_trend(bookmark, 0.92, NOW)
        assert bookmark.trend == Trend.NEUTRAL


class TestStaleness:

    def test_fresh_bookmark(self):
        bookmark = _bookmark(updated_at=NOW - timedelta(minutes=30))
        assert not bookmark_service.is_stale(bookmark, NOW, timedelta(hours=1))

    def test_old_bookmark(self):
        bookmark = _bookmark(updated_at=NOW - timedelta(hours=2))
        assert bookmark_service.is_stale(bookmark, NOW, timedelta(hours=1))

    def test_naive_timestamp_treated_as_utc(self):
        bookmark = _bookmark(updated_at=datetime(2024, 6, 1, 10, 0))
        assert bookmark_service.is_stale(bookmark, NOW, timedelta(hours=1))


# ---------------------------------------------------------------------------
# refresh_all
# ---------------------------------------------------------------------------


class TestRefreshAll:

    @pytest.mark.asyncio
    async def test_provider_failure_falls_back_and_counts_as_update(self):
        """The second lookup fails, gets a mock rate, and still counts."""
        bookmarks = [
            _bookmark("USD", "EUR", 0.92),
            _bookmark("USD", "INR", 80.0),
            _bookmark("GBP", "USD", 1.30),
        ]
        provider = FlakyProvider(
            {"USD-EUR": 0.92, "USD-INR": 83.0, "GBP-USD": 1.25}, fail_on_call=2,
        )
        service = RateService(
            live_provider=provider,
            historical_provider=provider,
            mock=MockRateGenerator(rng=random.Random(0)),
        )

        summary = await bookmark_service.refresh_all(bookmarks, service.get_live_rate, NOW)

        assert summary.total_count == 3
        assert summary.updated_count == 3
        assert [o.source for o in summary.outcomes] == [SOURCE_LIVE, SOURCE_MOCK, SOURCE_LIVE]
        assert [o.trend for o in summary.outcomes] == [Trend.NEUTRAL, Trend.UP, Trend.DOWN]
        assert bookmarks[1].current_rate == 83.25

    @pytest.mark.asyncio
    async def test_failure_on_one_bookmark_does_not_stop_the_rest(self, caplog):
        bookmarks = [_bookmark("USD", "EUR", 0.92), _bookmark("USD", "INR", 80.0)]
        original = (bookmarks[0].current_rate, bookmarks[0].trend, bookmarks[0].updated_at)

        async def resolve(from_currency, to_currency):
            if to_currency == "EUR":
                raise RuntimeError("unexpected payload")
            return ExchangeRate(rate=83.0, source=SOURCE_LIVE)

        with caplog.at_level(logging.ERROR, logger="app.services.bookmark_service"):
            summary = await bookmark_service.refresh_all(bookmarks, resolve, NOW)

        first, second = summary.outcomes
        assert not first.updated
        assert first.error == "unexpected payload"
        assert (bookmarks[0].current_rate, bookmarks[0].trend, bookmarks[0].updated_at) == original
        assert second.updated
        assert bookmarks[1].current_rate == 83.0
        assert summary.updated_count == 1
        assert "Error updating bookmark" in caplog.text
        record = next(r for r in caplog.records if r.name == "app.services.bookmark_service")
        assert record.levelno == logging.ERROR
        assert record.exc_info is not None
        assert record.exc_info[0] is RuntimeError

    @pytest.mark.asyncio
    async def test_empty(self):
        summary = await bookmark_service.refresh_all([], None)
        assert summary.total_count == 0
        assert summary.updated_count == 0


# ---------------------------------------------------------------------------
# /api/v1/bookmarks endpoints
# ---------------------------------------------------------------------------


class TestBookmarkEndpoints:

    @pytest.mark.asyncio
    async def test_requires_auth(self, client):
        response = await client.get("/api/v1/bookmarks/")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_list(self, client, db_returning, make_result, user, auth_headers):
        bookmarks = [
            _bookmark("USD", "EUR", 0.92, user_id=user.id),
            _bookmark("USD", "INR", 83.123456, user_id=user.id, trend=Trend.UP),
        ]
        db_returning(make_result(one=user), make_result(many=bookmarks))

        response = await client.get("/api/v1/bookmarks/", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert [(b["from"], b["to"]) for b in data] == [("USD", "EUR"), ("USD", "INR")]
        assert data[1]["rate"] == "83.1235"
        assert data[1]["trend"] == "up"

    @pytest.mark.asyncio
    async def test_add(self, client, mock_db, db_returning, make_result, user, auth_headers):
        db_returning(make_result(one=user), make_result(one=None))

        response = await client.post(
            "/api/v1/bookmarks/",
            json={"fromCurrency": "usd", "toCurrency": "eur"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        bookmark = response.json()["bookmark"]
        assert (bookmark["from"], bookmark["to"]) == ("USD", "EUR")
        assert bookmark["rate"] == "0.9000"
        assert bookmark["trend"] == "neutral"
        added = mock_db.add.call_args[0][0]
        assert added.user_id == user.id
        assert added.current_rate == 0.9

    @pytest.mark.asyncio
    async def test_add_same_currency_is_400(self, client, mock_db, make_result, user, auth_headers):
        mock_db.execute.return_value = make_result(one=user)

        response = await client.post(
            "/api/v1/bookmarks/",
            json={"fromCurrency": "USD", "toCurrency": "usd"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert "cannot be the same" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_add_duplicate_is_409(self, client, db_returning, make_result, user, auth_headers):
        db_returning(make_result(one=user), make_result(one=_bookmark(user_id=user.id)))

        response = await client.post(
            "/api/v1/bookmarks/",
            json={"fromCurrency": "USD", "toCurrency": "EUR"},
            headers=auth_headers,
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_add_concurrent_duplicate_is_409(
        self, client, mock_db, db_returning, make_result, user, auth_headers,
    ):
        """The unique constraint catches a duplicate inserted after the check."""
        db_returning(make_result(one=user), make_result(one=None))
        mock_db.flush.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

        response = await client.post(
            "/api/v1/bookmarks/",
            json={"fromCurrency": "USD", "toCurrency": "EUR"},
            headers=auth_headers,
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_remove(self, client, mock_db, db_returning, make_result, user, auth_headers):
        bookmark = _bookmark(user_id=user.id)
        db_returning(make_result(one=user), make_result(one=bookmark))

        response = await client.delete(f"/api/v1/bookmarks/{bookmark.id}", headers=auth_headers)

        assert response.status_code == 200
        mock_db.delete.assert_awaited_once_with(bookmark)

    @pytest.mark.asyncio
    async def test_remove_missing_is_404(self, client, db_returning, make_result, user, auth_headers):
        db_returning(make_result(one=user), make_result(one=None))
        response = await client.delete(f"/api/v1/bookmarks/{uuid.uuid4()}", headers=auth_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_one(self, client, db_returning, make_result, user, auth_headers):
        bookmark = _bookmark("USD", "INR", 82.0, user_id=user.id)
        db_returning(make_result(one=user), make_result(one=bookmark))

        response = await client.put(
            f"/api/v1/bookmarks/{bookmark.id}/rate", headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["bookmark"]["rate"] == "83.0000"
        assert response.json()["bookmark"]["trend"] == "up"

    @pytest.mark.asyncio
    async def test_update_all(self, client, db_returning, make_result, user, auth_headers):
        bookmarks = [
            _bookmark("USD", "EUR", 0.95, user_id=user.id),
            _bookmark("GBP", "USD", 1.27, user_id=user.id),
            _bookmark("USD", "INR", 80.0, user_id=user.id),
        ]
        db_returning(make_result(one=user), make_result(many=bookmarks))

        response = await client.put("/api/v1/bookmarks/rates/update-all", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Updated 3 out of 3 bookmarks"
        assert data["updatedCount"] == 3
        assert data["totalCount"] == 3
        assert [r["trend"] for r in data["results"]] == ["down", "neutral", "up"]
        assert [r["source"] for r in data["results"]] == ["live-provider", "mock", "live-provider"]

    @pytest.mark.asyncio
    async def test_update_all_without_bookmarks(
        self, client, db_returning, make_result, user, auth_headers,
    ):
        db_returning(make_result(one=user), make_result(many=[]))

        response = await client.put("/api/v1/bookmarks/rates/update-all", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "No bookmarks to update"
        assert response.json()["totalCount"] == 0

    @pytest.mark.asyncio
    async def test_check(self, client, db_returning, make_result, user, auth_headers):
        db_returning(make_result(one=user), make_result(one=uuid.uuid4()))

        response = await client.get(
            "/api/v1/bookmarks/check",
            params={"fromCurrency": "usd", "toCurrency": "eur"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"exists": True}
