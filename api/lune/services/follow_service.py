"""Follow-graph services."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lune.models.user import User, UserFollow

logger = logging.getLogger("lune.services.follows")


async def _get_edge(session: AsyncSession, follower_id: uuid.UUID, following_id: uuid.UUID) -> UserFollow | None:
    result = await session.execute(
        select(UserFollow).where(UserFollow.follower_id == follower_id, UserFollow.following_id == following_id)
    )
    return result.scalar_one_or_none()


async def is_following(session: AsyncSession, follower_id: uuid.UUID, following_id: uuid.UUID) -> bool:
    return await _get_edge(session, follower_id, following_id) is not None


async def toggle_follow(session: AsyncSession, follower_id: uuid.UUID, target_id: uuid.UUID) -> bool:
    """Follow or unfollow ``target_id``; returns whether the follower now follows them."""
    if follower_id == target_id:
        raise ValueError("You cannot follow yourself")
    if not await session.get(User, target_id):
        raise ValueError("User not found")
    edge = await _get_edge(session, follower_id, target_id)
    if edge:
        await session.delete(edge)
        await session.commit()
        logger.info("User %s unfollowed %s", follower_id, target_id)
        return False
    session.add(UserFollow(follower_id=follower_id, following_id=target_id))
    await session.commit()
    logger.info("User %s followed %s", follower_id, target_id)
    return True


async def list_followers(session: AsyncSession, user_id: uuid.UUID) -> list[User]:
    result = await session.execute(
        select(User)
        .join(UserFollow, UserFollow.follower_id == User.id)
        .where(UserFollow.following_id == user_id)
        .order_by(UserFollow.created_at.desc())
    )
    return list(result.scalars().all())


async def list_following(session: AsyncSession, user_id: uuid.UUID) -> list[User]:
    result = await session.execute(
        select(User)
        .join(UserFollow, UserFollow.following_id == User.id)
        .where(UserFollow.follower_id == user_id)
        .order_by(UserFollow.created_at.desc())
    )
    return list(result.scalars().all())


async def follow_counts(session: AsyncSession, user_id: uuid.UUID) -> tuple[int, int]:
    """Return ``(followers, following)`` for a user."""
    count = select(func.count()).select_from(UserFollow)
    followers = await session.scalar(count.where(UserFollow.following_id == user_id))
    following = await session.scalar(count.where(UserFollow.follower_id == user_id))
    return followers or 0, following or 0
