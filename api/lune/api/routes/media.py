"""Media browsing endpoints backed by upstream sources, plus reviews."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from lune.api.deps import get_current_user, get_db, get_optional_user_id
from lune.models.media import MediaItem, MediaType
from lune.models.user import User
from lune.schema.media import AvailabilityRead, MediaSummaryRead
from lune.schema.review import ReviewCreate, ReviewRead
from lune.services import media_service, review_service

router = APIRouter()


@router.get("/search", response_model=list[MediaSummaryRead])
async def search(
    q: str = Query(..., min_length=1, description="Search query"),
    media_type: MediaType | None = Query(default=None, alias="type"),
    page: int = Query(default=1, ge=1),
    viewer_id: uuid.UUID | None = Depends(get_optional_user_id),
    session: AsyncSession = Depends(get_db),
) -> list[MediaSummaryRead]:
    """Search movies, shows, and books; omit ``type`` to search all three."""
    results = await media_service.search_media(q, media_type or media_service.ALL_TYPES, page)
    return await media_service.enrich_with_favourites(session, viewer_id, results)


@router.get("/search/public-domain", response_model=list[MediaSummaryRead])
async def search_public_domain(
    q: str = Query(..., min_length=1),
    page: int = Query(default=1, ge=1),
    viewer_id: uuid.UUID | None = Depends(get_optional_user_id),
    session: AsyncSession = Depends(get_db),
) -> list[MediaSummaryRead]:
    results = await media_service.search_public_domain_books(q, page)
    return await media_service.enrich_with_favourites(session, viewer_id, results)


@router.get("/trending/{media_type}", response_model=list[MediaSummaryRead])
async def trending(
    media_type: MediaType,
    viewer_id: uuid.UUID | None = Depends(get_optional_user_id),
    session: AsyncSession = Depends(get_db),
) -> list[MediaSummaryRead]:
    results = await media_service.get_trending(media_type)
    return await media_service.enrich_with_favourites(session, viewer_id, results)


@router.get("/discover", response_model=list[MediaSummaryRead])
async def discover(
    genres: list[str] = Query(default=[], alias="genre"),
    media_type: MediaType | None = Query(default=None, alias="type"),
    page: int = Query(default=1, ge=1),
    viewer_id: uuid.UUID | None = Depends(get_optional_user_id),
    session: AsyncSession = Depends(get_db),
) -> list[MediaSummaryRead]:
    """Discover movies and shows by genre; omit ``type`` to interleave both."""
    if media_type == MediaType.BOOK:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Use /media/discover/books for books")
    results = await media_service.discover_by_genre(genres, media_type or media_service.ALL_TYPES, page)
    return await media_service.enrich_with_favourites(session, viewer_id, results)


@router.get("/discover/books", response_model=list[MediaSummaryRead])
async def discover_books(
    genres: list[str] = Query(default=[], alias="genre"),
    page: int = Query(default=1, ge=1),
    year_range: str = Query(default="any", alias="years"),
    viewer_id: uuid.UUID | None = Depends(get_optional_user_id),
    session: AsyncSession = Depends(get_db),
) -> list[MediaSummaryRead]:
    results = await media_service.discover_books_by_subject(genres, page, year_range)
    return await media_service.enrich_with_favourites(session, viewer_id, results)


@router.get("/{media_id}", response_model=MediaSummaryRead)
async def media_details(
    media_id: str,
    viewer_id: uuid.UUID | None = Depends(get_optional_user_id),
    session: AsyncSession = Depends(get_db),
) -> MediaSummaryRead:
    """Full details for ``{type}-{externalId}`` ids."""
    kind, _ = media_service.split_media_id(media_id)
    try:
        media_type = MediaType(kind)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Media not found") from exc
    result = await media_service.get_media_details(media_id, media_type)
    if not result:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Media not found")
    enriched = await media_service.enrich_with_favourites(session, viewer_id, [result])
    return enriched[0]


@router.get("/{media_id}/availability", response_model=list[AvailabilityRead])
async def availability(
    media_id: str,
    title: str | None = Query(default=None),
    session: AsyncSession = Depends(get_db),
) -> list[AvailabilityRead]:
    """Where to watch or buy; book lookups search by title."""
    kind, _ = media_service.split_media_id(media_id)
    try:
        media_type = MediaType(kind)
    except ValueError:
        return []
    if media_type == MediaType.BOOK and not title:
        cached = await session.get(MediaItem, media_id)
        title = cached.title if cached else None
        if not title:
            return []
    return await media_service.get_availability(media_id, media_type, title)


@router.get("/{media_id}/reviews", response_model=list[ReviewRead])
async def list_reviews(
    media_id: str,
    viewer_id: uuid.UUID | None = Depends(get_optional_user_id),
    session: AsyncSession = Depends(get_db),
):
    return await review_service.list_media_reviews(session, media_id, viewer_id)


@router.post("/{media_id}/reviews", response_model=ReviewRead, status_code=status.HTTP_201_CREATED)
async def create_review(
    media_id: str,
    payload: ReviewCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    try:
        return await review_service.create_review(
            session, current_user.id, media_id, payload.rating, payload.text, payload.is_public
        )
    except ValueError as exc:
        code = status.HTTP_404_NOT_FOUND if str(exc) == "Media item not found" else status.HTTP_400_BAD_REQUEST
        raise HTTPException(status_code=code, detail=str(exc)) from exc
