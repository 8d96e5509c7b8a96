"""
Pydantic schemas for signup, login, and the current-user payload.
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from app.schemas.base import CamelModel

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class SignupRequest(CamelModel):
    username: str = Field(..., min_length=3, max_length=50, examples=["jane_doe"])
    email: str = Field(..., max_length=254, pattern=_EMAIL_PATTERN, examples=["jane@example.com"])
    # bcrypt only reads the first 72 bytes
    password: str = Field(..., min_length=6, max_length=72)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class LoginRequest(CamelModel):
    email: str = Field(..., max_length=254)
    password: str = Field(..., min_length=1, max_length=72)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserRead(CamelModel):
    id: UUID
    username: str
    email: str
    avatar: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(CamelModel):
    user: UserRead
    access_token: str
    token_type: str = "bearer"
