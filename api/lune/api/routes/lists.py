from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from lune.api.deps import get_current_user, get_db
from lune.models.user import User
from lune.schema.collection import CustomListCreate, CustomListDetail, CustomListRead, CustomListUpdate
from lune.services import collection_service

router = APIRouter()


def _http_error(exc: ValueError) -> HTTPException:
    message = str(exc)
    if message.endswith("not found"):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)
    if message == collection_service.DUPLICATE_NAME:
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


@router.get("/lists", response_model=list[CustomListRead])
async def list_lists(
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await collection_service.list_lists(session, current_user.id)


@router.post("/lists", response_model=CustomListRead, status_code=status.HTTP_201_CREATED)
async def create_list_endpoint(
    payload: CustomListCreate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return await collection_service.create_list(session, current_user.id, payload.name)
    except ValueError as exc:
        raise _http_error(exc) from exc


@router.patch("/lists/{list_id}", response_model=CustomListRead)
async def update_list_endpoint(
    list_id: uuid.UUID,
    payload: CustomListUpdate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return await collection_service.update_list(
            session, current_user.id, list_id, payload.name, payload.description
        )
    except ValueError as exc:
        raise _http_error(exc) from exc


@router.delete(
    "/lists/{list_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    response_model=None,
)
async def delete_list_endpoint(
    list_id: uuid.UUID,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> None:
    try:
        await collection_service.delete_list(session, current_user.id, list_id)
    except ValueError as exc:
        raise _http_error(exc) from exc


@router.get("/lists/{list_id}/items", response_model=CustomListDetail)
async def list_items_endpoint(
    list_id: uuid.UUID,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CustomListDetail:
    try:
        return await collection_service.get_list_items(session, current_user.id, list_id)
    except ValueError as exc:
        raise _http_error(exc) from exc


@router.put(
    "/lists/{list_id}/items/{media_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    response_model=None,
)
async def add_item_endpoint(
    list_id: uuid.UUID,
    media_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> None:
    try:
        await collection_service.add_media_to_list(session, current_user.id, media_id, list_id)
    except ValueError as exc:
        raise _http_error(exc) from exc


@router.delete(
    "/lists/{list_id}/items/{media_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    response_model=None,
)
async def remove_item_endpoint(
    list_id: uuid.UUID,
    media_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> None:
    try:
        await collection_service.remove_media_from_list(session, current_user.id, media_id, list_id)
    except ValueError as exc:
        raise _http_error(exc) from exc


@router.get("/media/{media_id}/lists", response_model=list[uuid.UUID])
async def media_lists_endpoint(
    media_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[uuid.UUID]:
    """Ids of the caller's lists containing the media item."""
    return await collection_service.get_media_lists(session, current_user.id, media_id)
