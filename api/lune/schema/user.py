"""User request/response schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from lune.schema.base import ORMModel


class UserCreate(BaseModel):
    """Payload for registering a new user."""
    email: EmailStr
    password: str = Field(min_length=8)
    display_name: str | None = None


class UserLogin(BaseModel):
    """Payload for user login requests."""
    email: EmailStr
    password: str


class UserRead(ORMModel):
    """User profile fields exposed to the account owner."""
    id: UUID
    email: EmailStr
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    is_public: bool = True
    created_at: datetime


class UserProfileUpdate(BaseModel):
    """Payload for editing the current user's profile."""
    display_name: str | None = Field(default=None, max_length=255)
    bio: str | None = Field(default=None, max_length=2000)
    is_public: bool | None = None


class PublicUserRead(ORMModel):
    """Profile fields visible to other users."""
    id: UUID
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None


class FollowState(BaseModel):
    """Result of toggling a follow edge."""
    following: bool
