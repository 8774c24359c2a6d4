"""User endpoints for profiles and the follow graph."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from lune.api.deps import get_current_user, get_db, get_optional_user_id
from lune.models.user import User
from lune.schema.review import UserProfileRead
from lune.schema.user import FollowState, PublicUserRead, UserProfileUpdate, UserRead
from lune.services import follow_service, user_service

router = APIRouter()


@router.get("/me", response_model=UserRead)
async def read_current_user(current_user: User = Depends(get_current_user)) -> User:
    """Return the current authenticated user."""
    return current_user


@router.patch("/me", response_model=UserRead)
async def update_current_user(
    payload: UserProfileUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> User:
    """Edit display name, bio, or profile visibility."""
    return await user_service.update_profile(session, current_user, payload)


@router.get("/users/{user_id}", response_model=UserProfileRead)
async def read_user_profile(
    user_id: uuid.UUID,
    viewer_id: uuid.UUID | None = Depends(get_optional_user_id),
    session: AsyncSession = Depends(get_db),
) -> UserProfileRead:
    """Return a public profile with the user's public reviews."""
    try:
        return await user_service.get_public_profile(session, user_id, viewer_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post("/users/{user_id}/follow", response_model=FollowState)
async def toggle_follow(
    user_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> FollowState:
    """Follow the user, or unfollow if already following."""
    try:
        following = await follow_service.toggle_follow(session, current_user.id, user_id)
    except ValueError as exc:
        code = status.HTTP_404_NOT_FOUND if str(exc) == "User not found" else status.HTTP_400_BAD_REQUEST
        raise HTTPException(status_code=code, detail=str(exc)) from exc
    return FollowState(following=following)


@router.get("/users/{user_id}/followers", response_model=list[PublicUserRead])
async def list_followers(user_id: uuid.UUID, session: AsyncSession = Depends(get_db)) -> list[User]:
    return await follow_service.list_followers(session, user_id)


@router.get("/users/{user_id}/following", response_model=list[PublicUserRead])
async def list_following(user_id: uuid.UUID, session: AsyncSession = Depends(get_db)) -> list[User]:
    return await follow_service.list_following(session, user_id)
