from __future__ import annotations

import uuid

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lune.core.security import get_password_hash, verify_password
from lune.models.user import User
from lune.schema.review import ReviewRead, UserProfileRead
from lune.schema.user import PublicUserRead, UserProfileUpdate
from lune.services import follow_service, review_service


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def get_user_by_id(session: AsyncSession, user_id: str | uuid.UUID) -> User | None:
    try:
        user_uuid = uuid.UUID(str(user_id))
    except ValueError:
        return None
    result = await session.execute(select(User).where(User.id == user_uuid))
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, email: str, password: str, display_name: str | None = None) -> User:
    existing = await get_user_by_email(session, email)
    if existing:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    user = User(email=email.lower(), hashed_password=get_password_hash(password), display_name=display_name)
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def authenticate_user(session: AsyncSession, email: str, password: str) -> User:
    user = await get_user_by_email(session, email)
    if not user or not verify_password(password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return user


async def update_profile(session: AsyncSession, user: User, payload: UserProfileUpdate) -> User:
    """Apply the supplied profile fields; blank names and bios are cleared."""
    if "display_name" in payload.model_fields_set:
        user.display_name = (payload.display_name or "").strip() or None
    if "bio" in payload.model_fields_set:
        user.bio = (payload.bio or "").strip() or None
    if payload.is_public is not None:
        user.is_public = payload.is_public
    await session.commit()
    await session.refresh(user)
    return user


async def get_public_profile(
    session: AsyncSession, user_id: uuid.UUID, viewer_id: uuid.UUID | None = None
) -> UserProfileRead:
    """Profile page data; private profiles are only visible to their owner."""
    user = await get_user_by_id(session, user_id)
    if not user or (not user.is_public and user.id != viewer_id):
        raise ValueError("User not found")
    reviews = await review_service.list_user_reviews(session, user.id)
    followers, following = await follow_service.follow_counts(session, user.id)
    return UserProfileRead(
        user=PublicUserRead.model_validate(user),
        reviews=[ReviewRead.model_validate(review) for review in reviews],
        followers=followers,
        following=following,
    )
