"""
Authentication service — login throttling and access-token revocation.

JWT creation/verification is delegated to ``app.core.security`` and
re-exported here. Redis holds:

  - ``login_attempts:{email}``  failed-login counter
  - ``login_lock:{email}``      lockout flag after too many failures
  - ``revoked_token:{jti}``     logged-out tokens, kept until they expire
"""

import logging
from datetime import datetime, timezone

from app.config import settings

# Re-export JWT functions from core.security so callers have one import point
from app.core.security import (  # noqa: F401
    configure_keys,
    create_access_token,
    decode_token,
    verify_token,
)

logger = logging.getLogger(__name__)


def _attempts_key(email: str) -> str:
    return f"login_attempts:{email.lower()}"


def _lock_key(email: str) -> str:
    return f"login_lock:{email.lower()}"


# ---------------------------------------------------------------------------
# Login throttling
# ---------------------------------------------------------------------------


async def check_login_locked(email: str, redis) -> bool:
    """Return True if the email is locked out after too many failed logins."""
    return await redis.get(_lock_key(email)) is not None


async def record_failed_login(email: str, redis) -> int:
    """
    Increment the failed-login counter.

    On reaching LOGIN_MAX_ATTEMPTS, lock the email for LOGIN_LOCKOUT_SECONDS.
    Returns the current attempt count.
    """
    count = await redis.incr(_attempts_key(email))
    if count == 1:
        await redis.expire(_attempts_key(email), settings.LOGIN_LOCKOUT_SECONDS)
    if count >= settings.LOGIN_MAX_ATTEMPTS:
        await redis.setex(_lock_key(email), settings.LOGIN_LOCKOUT_SECONDS, "1")
        logger.warning("Login locked for %s after %d failed attempts", email, count)
    return count


async def clear_failed_logins(email: str, redis) -> None:
    await redis.delete(_attempts_key(email))
    await redis.delete(_lock_key(email))


# ---------------------------------------------------------------------------
# Token revocation
# ---------------------------------------------------------------------------


async def revoke_token(payload: dict, redis) -> None:
    """Mark a decoded token as revoked until its own expiry."""
    jti = payload.get("jti")
    if not jti:
        return
    exp = payload.get("exp")
    now = datetime.now(timezone.utc).timestamp()
    ttl = int(exp - now) if exp else settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    if ttl <= 0:
        return
    await redis.setex(f"revoked_token:{jti}", ttl, "1")


async def is_token_revoked(payload: dict, redis) -> bool:
    jti = payload.get("jti")
    if not jti:
        return False
    return await redis.get(f"revoked_token:{jti}") is not None
