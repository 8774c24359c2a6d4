"""Upstream media lookups: search, trending, discovery, details, and availability.

Invariants:
- Upstream failures never raise; every lookup degrades to an empty result.
- Results are returned in the upstream's order; "all" searches interleave
  movie, tv, and book results.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import uuid
from typing import Iterable
from urllib.parse import quote_plus

from sqlalchemy.ext.asyncio import AsyncSession

from lune.ingestion import get_connector
from lune.ingestion.base import ConnectorResult
from lune.ingestion.openlibrary import OpenLibraryConnector
from lune.ingestion.tmdb import TMDBConnector
from lune.models.media import MediaType
from lune.schema.media import AvailabilityRead, MediaSummaryRead
from lune.services.library_service import favourite_map

logger = logging.getLogger("lune.services.media")

ALL_TYPES = "all"


def split_media_id(media_id: str) -> tuple[str, str]:
    """Split ``movie-603`` into ``("movie", "603")``; only the first dash separates."""
    kind, _, external_id = media_id.partition("-")
    return kind, external_id


def interleave(*groups: Iterable[ConnectorResult]) -> list[ConnectorResult]:
    """Round-robin across result groups, skipping exhausted ones."""
    merged: list[ConnectorResult] = []
    for row in itertools.zip_longest(*groups):
        merged.extend(item for item in row if item is not None)
    return merged


def _tmdb() -> TMDBConnector:
    return get_connector("tmdb")  # type: ignore[return-value]


def _openlibrary() -> OpenLibraryConnector:
    return get_connector("openlibrary")  # type: ignore[return-value]


async def search_media(query: str, media_type: MediaType | str = ALL_TYPES, page: int = 1) -> list[ConnectorResult]:
    """Search one source, or all three concurrently with interleaved results."""
    query = query.strip()
    if not query:
        return []
    if media_type in (MediaType.MOVIE, MediaType.TV):
        return await _tmdb().search(MediaType(media_type).value, query, page)
    if media_type == MediaType.BOOK:
        return await _openlibrary().search(query, page)
    movies, shows, books = await asyncio.gather(
        _tmdb().search("movie", query, page),
        _tmdb().search("tv", query, page),
        _openlibrary().search(query, page),
    )
    return interleave(movies, shows, books)


async def search_public_domain_books(query: str, page: int = 1) -> list[ConnectorResult]:
    if not query.strip():
        return []
    return await get_connector("gutendex").search(query.strip(), page)


async def get_media_details(media_id: str, media_type: MediaType) -> ConnectorResult | None:
    """Fetch full details; ids whose prefix disagrees with ``media_type`` resolve to nothing."""
    kind, external_id = split_media_id(media_id)
    if kind != media_type.value or not external_id:
        logger.info("Rejected details lookup for %s as %s", media_id, media_type.value)
        return None
    if media_type == MediaType.BOOK:
        return await _openlibrary().details(external_id)
    return await _tmdb().details(kind, external_id)


async def get_trending(media_type: MediaType) -> list[ConnectorResult]:
    if media_type == MediaType.BOOK:
        return await _openlibrary().trending()
    return await _tmdb().trending(media_type.value)


async def discover_by_genre(genres: list[str], media_type: MediaType | str = ALL_TYPES, page: int = 1) -> list[ConnectorResult]:
    """Discover movies and/or shows by genre names; "all" interleaves both."""
    if not genres:
        return []
    if media_type in (MediaType.MOVIE, MediaType.TV):
        return await _tmdb().discover(MediaType(media_type).value, genres, page)
    movies, shows = await asyncio.gather(
        _tmdb().discover("movie", genres, page),
        _tmdb().discover("tv", genres, page),
    )
    return interleave(movies, shows)


async def discover_books_by_subject(genres: list[str], page: int = 1, year_range: str = "any") -> list[ConnectorResult]:
    return await _openlibrary().discover(genres, page, year_range)


def book_availability(title: str) -> list[AvailabilityRead]:
    encoded = quote_plus(title)
    return [
        AvailabilityRead(platform="Amazon", url=f"https://www.amazon.com/s?k={encoded}&i=stripbooks"),
        AvailabilityRead(platform="Gutendex", url=f"https://gutendex.com/books?search={encoded}"),
        AvailabilityRead(platform="Google Books", url=f"https://books.google.com/books?q={encoded}"),
    ]


async def get_availability(media_id: str, media_type: MediaType, title: str | None = None) -> list[AvailabilityRead]:
    """Where to watch or buy: TMDB providers for screen media, store searches for books."""
    if media_type == MediaType.BOOK:
        return book_availability(title or "")
    kind, external_id = split_media_id(media_id)
    if kind != media_type.value or not external_id.isdigit():
        return []
    providers = await _tmdb().watch_providers(kind, int(external_id))
    return [AvailabilityRead(**provider) for provider in providers]


async def enrich_with_favourites(
    session: AsyncSession, user_id: uuid.UUID | None, results: list[ConnectorResult]
) -> list[MediaSummaryRead]:
    """Convert results for the API, flagging the viewer's favourites."""
    favourites = await favourite_map(session, user_id, [r.id for r in results]) if user_id else {}
    return [
        MediaSummaryRead.model_validate(result).model_copy(update={"is_favourite": favourites.get(result.id, False)})
        for result in results
    ]
