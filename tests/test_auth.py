"""Tests for authentication — signup, login throttling, logout revocation, tokens."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import jwt
import pytest
from sqlalchemy.exc import IntegrityError

from app.config import settings
from app.models.user import User
from app.services import auth_service


# ---------------------------------------------------------------------------
# Health Check
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_health_check(client):
    """Health check endpoint returns 200 with service info."""
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "Smart Currency Converter"


# ---------------------------------------------------------------------------
# POST /signup
# ---------------------------------------------------------------------------


@pytest.fixture
def signup_payload():
    return {"username": "jane_doe", "email": "Jane@Example.com", "password": "secret123"}


@pytest.mark.asyncio
async def test_signup_success(client, mock_db, signup_payload):
    """New email creates an account and returns a usable token."""
    response = await client.post("/api/v1/auth/signup", json=signup_payload)

    assert response.status_code == 201
    data = response.json()
    assert data["user"]["email"] == "jane@example.com"
    assert data["user"]["username"] == "jane_doe"
    assert data["tokenType"] == "bearer"

    created = mock_db.add.call_args[0][0]
    assert isinstance(created, User)
    assert created.password_hash != signup_payload["password"]
    assert created.check_password(signup_payload["password"])

    claims = auth_service.decode_token(data["accessToken"])
    assert claims["sub"] == str(created.id)
    assert claims["type"] == "access"
    assert claims["jti"]


@pytest.mark.asyncio
async def test_signup_duplicate_email(client, mock_db, make_result, make_user, signup_payload):
    mock_db.execute.return_value = make_result(one=make_user(email="jane@example.com"))

    response = await client.post("/api/v1/auth/signup", json=signup_payload)

    assert response.status_code == 409
    mock_db.add.assert_not_called()


@pytest.mark.asyncio
async def test_signup_concurrent_duplicate_is_conflict(client, mock_db, signup_payload):
    """The unique index rejects an email inserted between the check and the flush."""
    mock_db.flush.side_effect = IntegrityError("INSERT INTO users", {}, Exception("duplicate key"))

    response = await client.post("/api/v1/auth/signup", json=signup_payload)

    assert response.status_code == 409
    assert response.json()["detail"] == "Email already in use"


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides", [
    {"email": "not-an-email"},
    {"password": "12345"},
    {"username": "jd"},
])
async def test_signup_validation(client, signup_payload, overrides):
    response = await client.post("/api/v1/auth/signup", json={**signup_payload, **overrides})
    assert response.status_code == 422


# ---------------------------------------------------------------------------
# POST /login
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_login_success_clears_failures(client, mock_db, mock_redis, make_result, make_user):
    user = make_user(password="secret123")
    mock_db.execute.return_value = make_result(one=user)

    response = await client.post(
        "/api/v1/auth/login", json={"email": "JANE@example.com", "password": "secret123"},
    )

    assert response.status_code == 200
    assert response.json()["user"]["id"] == str(user.id)
    mock_redis.delete.assert_any_await("login_attempts:jane@example.com")
    mock_redis.delete.assert_any_await("login_lock:jane@example.com")


@pytest.mark.asyncio
async def test_login_wrong_password(client, mock_db, mock_redis, make_result, make_user):
    mock_db.execute.return_value = make_result(one=make_user(password="secret123"))

    response = await client.post(
        "/api/v1/auth/login", json={"email": "jane@example.com", "password": "wrong-one"},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid email or password"
    mock_redis.incr.assert_awaited_once_with("login_attempts:jane@example.com")


@pytest.mark.asyncio
async def test_login_unknown_email(client, mock_redis):
    response = await client.post(
        "/api/v1/auth/login", json={"email": "nobody@example.com", "password": "whatever"},
    )
    assert response.status_code == 400
    mock_redis.incr.assert_awaited_once()


@pytest.mark.asyncio
async def test_login_locked(client, mock_db, mock_redis):
    mock_redis.get = AsyncMock(return_value="1")

    response = await client.post(
        "/api/v1/auth/login", json={"email": "jane@example.com", "password": "secret123"},
    )

    assert response.status_code == 429
    mock_db.execute.assert_not_called()


class TestLoginThrottling:

    @pytest.mark.asyncio
    async def test_first_failure_starts_window(self, mock_redis):
        count = await auth_service.record_failed_login("Jane@Example.com", mock_redis)

        assert count == 1
        mock_redis.expire.assert_awaited_once_with(
            "login_attempts:jane@example.com", settings.LOGIN_LOCKOUT_SECONDS,
        )
        mock_redis.setex.assert_not_called()

    @pytest.mark.asyncio
    async def test_max_failures_locks_email(self, mock_redis):
        mock_redis.incr = AsyncMock(return_value=settings.LOGIN_MAX_ATTEMPTS)

        await auth_service.record_failed_login("jane@example.com", mock_redis)

        mock_redis.setex.assert_awaited_once_with(
            "login_lock:jane@example.com", settings.LOGIN_LOCKOUT_SECONDS, "1",
        )


# ---------------------------------------------------------------------------
# Tokens, /user and /logout
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_current_user(client, mock_db, make_result, user, auth_headers):
    mock_db.execute.return_value = make_result(one=user)

    response = await client.get("/api/v1/auth/user", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["email"] == user.email
    assert "passwordHash" not in response.json()


@pytest.mark.asyncio
async def test_current_user_requires_token(client):
    response = await client.get("/api/v1/auth/user")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_malformed_authorization_header(client):
    response = await client.get("/api/v1/auth/user", headers={"Authorization": "Token abc"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_invalid_token(client):
    response = await client.get(
        "/api/v1/auth/user", headers={"Authorization": "Bearer invalid.token.here"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_expired_token(client, test_rsa_keys, user):
    now = datetime.now(timezone.utc)
    expired = jwt.encode(
        {
            "sub": str(user.id), "type": "access", "jti": "abc",
            "iat": now - timedelta(days=2), "exp": now - timedelta(days=1),
        },
        test_rsa_keys["private_key"],
        algorithm="RS256",
    )

    response = await client.get(
        "/api/v1/auth/user", headers={"Authorization": f"Bearer {expired}"},
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Token has expired"


@pytest.mark.asyncio
async def test_deleted_user_token(client, auth_headers):
    """A valid token for a user that no longer exists is rejected."""
    response = await client.get("/api/v1/auth/user", headers=auth_headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_logout_revokes_token(client, mock_redis, auth_headers):
    response = await client.post("/api/v1/auth/logout", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["message"] == "Logout successful"

    key, ttl, _ = mock_redis.setex.await_args[0]
    assert key.startswith("revoked_token:")
    assert 0 < ttl <= settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60


@pytest.mark.asyncio
async def test_revoked_token_is_rejected(client, mock_redis, auth_headers):
    mock_redis.get = AsyncMock(return_value="1")

    response = await client.get("/api/v1/auth/user", headers=auth_headers)

    assert response.status_code == 401
    assert response.json()["detail"] == "Token has been revoked"
