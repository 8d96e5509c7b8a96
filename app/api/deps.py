"""
Reusable FastAPI dependencies for authentication.

Dependencies:
  - get_current_user   — extracts the user from a bearer token (401 if invalid)
  - get_optional_user  — same, but returns None when no valid token is sent
  - get_token_payload  — decoded, non-revoked token claims (used by logout)
"""

import uuid

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import verify_token
from app.database import get_db
from app.models.user import User
from app.redis_client import get_redis
from app.services import auth_service


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


async def get_token_payload(
    authorization: str | None = Header(None, description="Bearer <access_token>"),
    redis=Depends(get_redis),
) -> dict:
    """
    Parse ``Authorization: Bearer <token>``, verify the JWT and reject
    revoked tokens.
    """
    if not authorization:
        raise _unauthorized("Please log in to access this resource")
    if not authorization.startswith("Bearer "):
        raise _unauthorized("Invalid authorization header")

    payload = verify_token(authorization[len("Bearer "):], expected_type="access")
    if await auth_service.is_token_revoked(payload, redis):
        raise _unauthorized("Token has been revoked")
    return payload


async def get_current_user(
    payload: dict = Depends(get_token_payload),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Look up the token's subject; 401 if it no longer exists."""
    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise _unauthorized("Invalid token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise _unauthorized("User not found")
    return user


async def get_optional_user(
    authorization: str | None = Header(None, description="Bearer <access_token>"),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
) -> User | None:
    """Return the authenticated user, or None for anonymous callers."""
    if not authorization:
        return None
    try:
        payload = await get_token_payload(authorization, redis)
        return await get_current_user(payload, db)
    except HTTPException:
        return None

