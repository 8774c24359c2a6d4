"""Custom list CRUD and membership services."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lune.models.collection import CustomList, CustomListItem
from lune.models.media import MediaItem
from lune.schema.collection import CustomListDetail, CustomListRead, ListItemRead
from lune.services.library_service import favourite_map

logger = logging.getLogger("lune.services.collections")

DUPLICATE_NAME = "A list with this name already exists."


def _clean_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValueError("List name cannot be empty.")
    return cleaned


async def _get_owned_list(session: AsyncSession, user_id: uuid.UUID, list_id: uuid.UUID) -> CustomList:
    custom_list = await session.get(CustomList, list_id)
    if not custom_list or custom_list.user_id != user_id:
        raise ValueError("List not found")
    return custom_list


async def _name_taken(
    session: AsyncSession, user_id: uuid.UUID, name: str, exclude_id: uuid.UUID | None = None
) -> bool:
    stmt = select(CustomList.id).where(CustomList.user_id == user_id, CustomList.name == name)
    if exclude_id is not None:
        stmt = stmt.where(CustomList.id != exclude_id)
    result = await session.execute(stmt)
    return result.first() is not None


async def _find_link(
    session: AsyncSession, user_id: uuid.UUID, media_id: str, list_id: uuid.UUID
) -> CustomListItem | None:
    result = await session.execute(
        select(CustomListItem).where(
            CustomListItem.user_id == user_id,
            CustomListItem.media_id == media_id,
            CustomListItem.custom_list_id == list_id,
        )
    )
    return result.scalar_one_or_none()


async def list_lists(session: AsyncSession, user_id: uuid.UUID) -> list[CustomList]:
    """Return the user's lists, oldest first."""
    result = await session.execute(
        select(CustomList).where(CustomList.user_id == user_id).order_by(CustomList.created_at.asc())
    )
    return list(result.scalars().all())


async def create_list(session: AsyncSession, user_id: uuid.UUID, name: str) -> CustomList:
    """Create a list; names are trimmed and unique per user."""
    cleaned = _clean_name(name)
    if await _name_taken(session, user_id, cleaned):
        raise ValueError(DUPLICATE_NAME)
    custom_list = CustomList(user_id=user_id, name=cleaned)
    session.add(custom_list)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ValueError(DUPLICATE_NAME) from exc
    await session.refresh(custom_list)
    logger.info("Created list %s for user=%s", custom_list.id, user_id)
    return custom_list


async def update_list(
    session: AsyncSession,
    user_id: uuid.UUID,
    list_id: uuid.UUID,
    name: str,
    description: str | None = None,
) -> CustomList:
    """Rename a list and replace its description."""
    custom_list = await _get_owned_list(session, user_id, list_id)
    cleaned = _clean_name(name)
    if await _name_taken(session, user_id, cleaned, exclude_id=list_id):
        raise ValueError(DUPLICATE_NAME)
    custom_list.name = cleaned
    custom_list.description = description.strip() if description and description.strip() else None
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ValueError(DUPLICATE_NAME) from exc
    await session.refresh(custom_list)
    return custom_list


async def delete_list(session: AsyncSession, user_id: uuid.UUID, list_id: uuid.UUID) -> None:
    """Delete a list along with its membership rows."""
    custom_list = await _get_owned_list(session, user_id, list_id)
    await session.execute(delete(CustomListItem).where(CustomListItem.custom_list_id == list_id))
    await session.delete(custom_list)
    await session.commit()
    logger.info("Deleted list %s for user=%s", list_id, user_id)


async def add_media_to_list(
    session: AsyncSession, user_id: uuid.UUID, media_id: str, list_id: uuid.UUID
) -> CustomListItem:
    """Add a catalog entry to a list; adding an existing member is a no-op."""
    await _get_owned_list(session, user_id, list_id)
    media = await session.get(MediaItem, media_id)
    if not media:
        raise ValueError("Media item not found")

    existing = await _find_link(session, user_id, media_id, list_id)
    if existing:
        return existing

    link = CustomListItem(user_id=user_id, media_id=media_id, custom_list_id=list_id)
    session.add(link)
    try:
        await session.commit()
    except IntegrityError:
        # A concurrent add of the same pair won the insert.
        await session.rollback()
        existing = await _find_link(session, user_id, media_id, list_id)
        if existing is None:
            raise
        return existing
    await session.refresh(link)
    return link


async def remove_media_from_list(
    session: AsyncSession, user_id: uuid.UUID, media_id: str, list_id: uuid.UUID
) -> None:
    await _get_owned_list(session, user_id, list_id)
    await session.execute(
        delete(CustomListItem).where(
            CustomListItem.user_id == user_id,
            CustomListItem.media_id == media_id,
            CustomListItem.custom_list_id == list_id,
        )
    )
    await session.commit()


async def get_list_items(session: AsyncSession, user_id: uuid.UUID, list_id: uuid.UUID) -> CustomListDetail:
    """Return a list with its catalog entries, newest additions first."""
    custom_list = await _get_owned_list(session, user_id, list_id)
    result = await session.execute(
        select(MediaItem)
        .join(CustomListItem, CustomListItem.media_id == MediaItem.id)
        .where(CustomListItem.custom_list_id == list_id, CustomListItem.user_id == user_id)
        .order_by(CustomListItem.created_at.desc())
    )
    media_items = list(result.scalars().all())
    favourites = await favourite_map(session, user_id, [item.id for item in media_items])
    items = [
        ListItemRead.model_validate(item).model_copy(update={"is_favourite": favourites.get(item.id, False)})
        for item in media_items
    ]
    return CustomListDetail(custom_list=CustomListRead.model_validate(custom_list), items=items)


async def get_media_lists(session: AsyncSession, user_id: uuid.UUID, media_id: str) -> list[uuid.UUID]:
    """Return ids of the user's lists that contain ``media_id``."""
    result = await session.execute(
        select(CustomListItem.custom_list_id).where(
            CustomListItem.user_id == user_id, CustomListItem.media_id == media_id
        )
    )
    return [row[0] for row in result.all()]
