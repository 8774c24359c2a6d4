"""Review services."""

from __future__ import annotations

import uuid

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lune.models.media import MediaItem
from lune.models.review import Review


async def create_review(
    session: AsyncSession,
    user_id: uuid.UUID,
    media_id: str,
    rating: int,
    text: str,
    is_public: bool = True,
) -> Review:
    """Create a review on a catalog entry."""
    if rating < 1 or rating > 5:
        raise ValueError("Rating must be between 1 and 5")
    body = (text or "").strip()
    if not body:
        raise ValueError("Review text cannot be blank")
    if not await session.get(MediaItem, media_id):
        raise ValueError("Media item not found")
    review = Review(user_id=user_id, media_id=media_id, rating=rating, text=body, is_public=is_public)
    session.add(review)
    await session.commit()
    result = await session.execute(select(Review).options(selectinload(Review.user)).where(Review.id == review.id))
    return result.scalar_one()


async def list_media_reviews(
    session: AsyncSession, media_id: str, viewer_id: uuid.UUID | None = None
) -> list[Review]:
    """Public reviews of a media item, plus the viewer's own private ones."""
    visible = Review.is_public.is_(True)
    if viewer_id is not None:
        visible = or_(visible, Review.user_id == viewer_id)
    result = await session.execute(
        select(Review)
        .options(selectinload(Review.user))
        .where(Review.media_id == media_id, visible)
        .order_by(Review.created_at.desc())
    )
    return list(result.scalars().all())


async def list_user_reviews(session: AsyncSession, user_id: uuid.UUID) -> list[Review]:
    result = await session.execute(
        select(Review)
        .options(selectinload(Review.user))
        .where(Review.user_id == user_id, Review.is_public.is_(True))
        .order_by(Review.created_at.desc())
    )
    return list(result.scalars().all())
