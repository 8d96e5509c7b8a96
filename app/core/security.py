"""
Core security module — JWT access tokens and password hashing.

Access tokens replace server-side sessions: each carries a ``jti`` so a
logout can revoke it in Redis until it expires. Supports RS256 with an
HS256 fallback when RSA key files are missing.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

import bcrypt as _bcrypt
import jwt
from fastapi import HTTPException, status

from app.config import settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Key loading
# ---------------------------------------------------------------------------

_private_key: str | bytes | None = None
_public_key: str | bytes | None = None
_algorithm: str = settings.JWT_ALGORITHM


def _load_keys() -> None:
    """Load RSA keys from disk. Falls back to HS256 with SECRET_KEY."""
    global _private_key, _public_key, _algorithm

    private_path = Path(settings.JWT_PRIVATE_KEY_PATH)
    public_path = Path(settings.JWT_PUBLIC_KEY_PATH)

    if private_path.exists() and public_path.exists():
        _private_key = private_path.read_bytes()
        _public_key = public_path.read_bytes()
        _algorithm = "RS256"
        logger.info("Loaded RSA keys for JWT signing (RS256).")
    else:
        _private_key = settings.SECRET_KEY
        _public_key = settings.SECRET_KEY
        _algorithm = "HS256"
        logger.warning(
            "RSA key files not found. Falling back to HS256. "
            "Run 'python scripts/generate_keys.py' to generate keys.",
        )


_load_keys()


def configure_keys(
    *, private_key: str | bytes, public_key: str | bytes, algorithm: str = "RS256"
) -> None:
    """Override keys at runtime (used in tests)."""
    global _private_key, _public_key, _algorithm
    _private_key = private_key
    _public_key = public_key
    _algorithm = algorithm


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


def create_access_token(user_id: str, email: str) -> str:
    """Create an access JWT valid for ACCESS_TOKEN_EXPIRE_MINUTES."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "type": "access",
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, _private_key, algorithm=_algorithm)


def decode_token(token: str) -> dict:
    """
    Decode and return the JWT payload.

    Raises HTTP 401 on expiry or any other invalid-token error.
    """
    try:
        return jwt.decode(token, _public_key, algorithms=[_algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )


def verify_token(token: str, expected_type: str = "access") -> dict:
    """Decode a JWT and validate its ``type`` claim."""
    payload = decode_token(token)
    if payload.get("type") != expected_type:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Expected {expected_type} token",
        )
    return payload


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------


def hash_password(plain_password: str) -> str:
    """Hash a password using bcrypt with 12 rounds."""
    hashed = _bcrypt.hashpw(plain_password.encode(), _bcrypt.gensalt(rounds=12))
    return hashed.decode()


def verify_password(plain_password: str, password_hash: str) -> bool:
    return _bcrypt.checkpw(plain_password.encode(), password_hash.encode())
