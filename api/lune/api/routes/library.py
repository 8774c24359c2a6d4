"""Library endpoints: the reconciling write plus read views."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from lune.api.deps import get_current_user, get_db, get_optional_user_id
from lune.models.media import MediaStatus
from lune.models.user import User
from lune.schema.media import ActionResult, LibraryEntryRead, LibraryUpdate
from lune.services import library_service

router = APIRouter()


@router.post("", response_model=ActionResult)
async def manage_library(
    payload: LibraryUpdate,
    user_id: uuid.UUID | None = Depends(get_optional_user_id),
    session: AsyncSession = Depends(get_db),
) -> ActionResult:
    """Merge a partial update into the caller's library.

    Always answers 200; failures are reported in ``error``.
    """
    return await library_service.manage_library(session, user_id, payload)


@router.get("", response_model=list[LibraryEntryRead])
async def list_library(
    status_filter: MediaStatus | None = Query(default=None, alias="status"),
    favourites: bool = Query(default=False),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    return await library_service.list_library(
        session, current_user.id, status=status_filter, favourites_only=favourites
    )


@router.get("/{media_id}", response_model=LibraryEntryRead)
async def read_library_entry(
    media_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    entry = await library_service.get_library_entry(session, current_user.id, media_id)
    if not entry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not in library")
    return entry
