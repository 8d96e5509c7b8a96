"""
Authentication endpoints — signup, login, logout, and current user.

  1. POST /signup  — create an email/password account, return a token
  2. POST /login   — verify credentials (throttled per email), return a token
  3. POST /logout  — revoke the presented token
  4. GET  /user    — the authenticated user
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_token_payload
from app.database import get_db
from app.models.user import User
from app.redis_client import get_redis
from app.schemas.auth import AuthResponse, LoginRequest, SignupRequest, UserRead
from app.schemas.base import MessageResponse
from app.services import auth_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        user=UserRead.model_validate(user),
        access_token=auth_service.create_access_token(str(user.id), user.email),
    )


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    db: AsyncSession = Depends(get_db),
):
    """Register a new account and log it in."""
    result = await db.execute(select(User).where(User.email == payload.email))
    if result.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already in use",
        )

    user = User(username=payload.username, email=payload.email)
    user.set_password(payload.password)
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already in use",
        )

    logger.info("User %s registered", user.email)
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    """
    Verify email + password.

    Failed attempts are counted per email; after LOGIN_MAX_ATTEMPTS the
    email is locked for LOGIN_LOCKOUT_SECONDS.
    """
    if await auth_service.check_login_locked(payload.email, redis):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many failed login attempts. Try again later.",
        )

    result = await db.execute(select(User).where(User.email == payload.email))
    user = result.scalar_one_or_none()

    if user is None or not user.check_password(payload.password):
        await auth_service.record_failed_login(payload.email, redis)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid email or password",
        )

    await auth_service.clear_failed_logins(payload.email, redis)
    return _auth_response(user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    token_payload: dict = Depends(get_token_payload),
    redis=Depends(get_redis),
):
    """Revoke the current access token."""
    await auth_service.revoke_token(token_payload, redis)
    return MessageResponse(message="Logout successful")


@router.get("/user", response_model=UserRead)
async def current_user(user: User = Depends(get_current_user)):
    return UserRead.model_validate(user)
