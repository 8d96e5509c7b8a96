"""
Pydantic schemas for bookmarked currency pairs and rate refreshes.

Rates are rendered as 4-decimal strings; ``from``/``to`` keep the short
keys the frontend consumes.
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from app.schemas.base import CamelModel


class BookmarkCreate(CamelModel):
    from_currency: str = Field(..., examples=["USD"])
    to_currency: str = Field(..., examples=["EUR"])


class BookmarkRead(CamelModel):
    id: UUID
    from_: str = Field(..., alias="from")
    to: str
    rate: str
    trend: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class BookmarkMutationResponse(CamelModel):
    message: str
    bookmark: BookmarkRead


class BookmarkRefreshResult(CamelModel):
    id: UUID
    from_: str = Field(..., alias="from")
    to: str
    rate: str | None = None
    trend: str | None = None
    source: str | None = None
    updated: bool
    error: str | None = None


class BookmarkRefreshAllResponse(CamelModel):
    message: str
    updated_count: int
    total_count: int
    results: list[BookmarkRefreshResult]


class BookmarkExistsResponse(CamelModel):
    exists: bool
