"""Review request/response schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from lune.schema.base import ORMModel
from lune.schema.user import PublicUserRead


class ReviewCreate(BaseModel):
    """Payload for reviewing a media item."""
    rating: int = Field(ge=1, le=5)
    text: str = Field(max_length=5000)
    is_public: bool = True


class ReviewRead(ORMModel):
    """Review with its author's public profile."""
    id: UUID
    media_id: str
    rating: int
    text: str
    is_public: bool
    created_at: datetime
    user: PublicUserRead


class UserProfileRead(BaseModel):
    """Public profile page: the user and their public reviews."""
    user: PublicUserRead
    reviews: list[ReviewRead]
    followers: int = 0
    following: int = 0
