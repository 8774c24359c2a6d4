"""Library reconciliation: merge partial tracking updates into a user's library.

Invariants:
- The catalog entry is written before the library record and is never rolled
  back when the library write fails.
- A record is only created by an update that carries a status or a favourite flag.
- Ratings attach only when a status exists, either incoming or on record.
- ``completed_at`` is written once, on the first transition to ``completed``.
- Progress fields are gated by media type (episodes for tv, pages for books).
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lune.core.exceptions import (
    AuthenticationError,
    CatalogWriteError,
    LuneError,
    StorageError,
    ValidationError,
)
from lune.models.media import (
    EPISODIC_TYPES,
    PAGINATED_TYPES,
    MediaItem,
    MediaStatus,
    MediaType,
    UserMedia,
)
from lune.schema.media import ActionResult, LibraryUpdate
from lune.utils.datetime import utc_now

logger = logging.getLogger("lune.services.library")


async def manage_library(
    session: AsyncSession, user_id: uuid.UUID | None, payload: LibraryUpdate
) -> ActionResult:
    """Apply one partial library update and report the outcome without raising."""
    try:
        await reconcile(session, user_id, payload)
    except LuneError as exc:
        return ActionResult.failed(exc.message)
    return ActionResult.ok()


async def reconcile(session: AsyncSession, user_id: uuid.UUID | None, payload: LibraryUpdate) -> UserMedia | None:
    """Upsert the catalog entry, then insert or patch the library record.

    Returns the persisted record, or ``None`` when the update was a no-op.
    Raises a ``LuneError`` subclass on failure.
    """
    if user_id is None:
        raise AuthenticationError()
    media_id = (payload.media_id or "").strip()
    if not media_id:
        raise ValidationError("Media ID is required.")

    await upsert_catalog_entry(session, media_id, payload)
    existing = await _get_record(session, user_id, media_id)
    updates = build_update_set(payload, existing)
    logger.debug("Library update for user=%s media=%s: %s", user_id, media_id, sorted(updates))

    if existing is not None:
        if not updates:
            return existing
        return await _apply_update(session, existing, updates)

    # An explicit un-favourite on an untracked item has nothing to record.
    if "status" in updates or updates.get("is_favourite"):
        return await _insert_record(session, user_id, media_id, updates)

    logger.info("Dropping untracked update for user=%s media=%s", user_id, media_id)
    return None


def catalog_fields(payload: LibraryUpdate) -> dict[str, Any]:
    """Map payload metadata onto catalog columns, nulling fields other types don't use."""
    media_type = payload.media_type
    fields: dict[str, Any] = {
        "type": media_type,
        "title": payload.title,
        "cover_image": payload.cover_image,
        "author_or_director": payload.author_or_director,
        "year": payload.year,
        "genres": list(payload.genres or []),
        "runtime": None,
        "episode_runtime": None,
        "number_of_episodes": None,
        "number_of_seasons": None,
        "episodes_per_season": None,
        "total_pages": None,
    }
    if media_type == MediaType.MOVIE:
        fields["runtime"] = payload.episode_runtime
    elif media_type == MediaType.TV:
        fields["episode_runtime"] = payload.episode_runtime
        fields["number_of_episodes"] = payload.total_episodes
        fields["number_of_seasons"] = payload.number_of_seasons
        if payload.episodes_per_season:
            fields["episodes_per_season"] = {str(k): v for k, v in payload.episodes_per_season.items()}
    elif media_type == MediaType.BOOK:
        fields["total_pages"] = payload.total_pages
    return fields


async def upsert_catalog_entry(session: AsyncSession, media_id: str, payload: LibraryUpdate) -> MediaItem:
    """Insert or overwrite the shared catalog entry for ``media_id``."""
    try:
        item = await session.merge(MediaItem(id=media_id, **catalog_fields(payload)))
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Catalog upsert failed for media=%s: %s", media_id, exc)
        raise CatalogWriteError() from exc
    logger.debug("Catalog entry %s saved", media_id)
    return item


def build_update_set(payload: LibraryUpdate, existing: UserMedia | None) -> dict[str, Any]:
    """Decide which library fields this payload writes, given the stored record."""
    updates: dict[str, Any] = {}
    status_now = payload.status if payload.provided("status") else None

    if status_now is not None:
        updates["status"] = status_now

    has_status = status_now is not None or (existing is not None and existing.status is not None)
    if payload.provided("rating") and payload.rating > 0 and has_status:
        updates["rating"] = payload.rating

    if payload.provided("is_favourite"):
        updates["is_favourite"] = payload.is_favourite

    if payload.media_type in EPISODIC_TYPES:
        if payload.provided("current_episode"):
            updates["current_episode"] = payload.current_episode
        if payload.provided("current_season"):
            updates["current_season"] = payload.current_season

    if payload.media_type in PAGINATED_TYPES and payload.provided("current_page"):
        updates["current_page"] = payload.current_page

    if status_now == MediaStatus.COMPLETED and (existing is None or existing.completed_at is None):
        updates["completed_at"] = utc_now()

    return updates


async def _get_record(session: AsyncSession, user_id: uuid.UUID, media_id: str) -> UserMedia | None:
    try:
        result = await session.execute(
            select(UserMedia).where(UserMedia.user_id == user_id, UserMedia.media_id == media_id)
        )
        return result.scalar_one_or_none()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Library lookup failed for user=%s media=%s: %s", user_id, media_id, exc)
        raise StorageError() from exc


async def _apply_update(session: AsyncSession, record: UserMedia, updates: dict[str, Any]) -> UserMedia:
    try:
        for key, value in updates.items():
            setattr(record, key, value)
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Library update failed for record=%s: %s", record.id, exc)
        raise StorageError("Failed to update your library.") from exc
    logger.info("Updated library record %s (%s)", record.id, ", ".join(sorted(updates)))
    return record


async def _insert_record(
    session: AsyncSession, user_id: uuid.UUID, media_id: str, updates: dict[str, Any]
) -> UserMedia:
    record = UserMedia(user_id=user_id, media_id=media_id, **updates)
    try:
        session.add(record)
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Library insert failed for user=%s media=%s: %s", user_id, media_id, exc)
        raise StorageError("Failed to add to your library.") from exc
    logger.info("Added media=%s to library of user=%s", media_id, user_id)
    return record


async def list_library(
    session: AsyncSession,
    user_id: uuid.UUID,
    status: MediaStatus | None = None,
    favourites_only: bool = False,
) -> list[UserMedia]:
    """Return library records with their catalog entries, most recently touched first."""
    stmt = (
        select(UserMedia)
        .options(selectinload(UserMedia.media_item))
        .where(UserMedia.user_id == user_id)
        .order_by(UserMedia.updated_at.desc())
    )
    if status is not None:
        stmt = stmt.where(UserMedia.status == status)
    if favourites_only:
        stmt = stmt.where(UserMedia.is_favourite.is_(True))
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_library_entry(session: AsyncSession, user_id: uuid.UUID, media_id: str) -> UserMedia | None:
    result = await session.execute(
        select(UserMedia)
        .options(selectinload(UserMedia.media_item))
        .where(UserMedia.user_id == user_id, UserMedia.media_id == media_id)
    )
    return result.scalar_one_or_none()


async def favourite_map(session: AsyncSession, user_id: uuid.UUID, media_ids: Iterable[str]) -> dict[str, bool]:
    """Map each tracked media id in ``media_ids`` to the user's favourite flag."""
    ids = list(dict.fromkeys(media_ids))
    if not ids:
        return {}
    result = await session.execute(
        select(UserMedia.media_id, UserMedia.is_favourite).where(
            UserMedia.user_id == user_id, UserMedia.media_id.in_(ids)
        )
    )
    return {media_id: bool(is_favourite) for media_id, is_favourite in result.all()}
