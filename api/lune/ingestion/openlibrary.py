"""OpenLibrary connector for book search, trending, subjects, and work details."""

from __future__ import annotations

import logging
import re
from typing import Any

from lune.core.config import settings
from lune.ingestion.base import BaseConnector, ConnectorResult
from lune.models.media import MediaType
from lune.utils.datetime import parse_year

logger = logging.getLogger("lune.ingestion.openlibrary")

API_BASE = "https://openlibrary.org"
COVERS_BASE = "https://covers.openlibrary.org"
SEARCH_PAGE_SIZE = 25
SEARCH_FIELDS = "key,title,author_name,first_publish_year,cover_i,subject,ratings_average"
POPULAR_TIMEOUT_SECONDS = 10.0
DEFAULT_COVER = "https://images.unsplash.com/photo-1543002588-bfa74002ed7e?w=400&h=600&fit=crop"

# Genre names accepted by discover, mapped to OpenLibrary subject slugs.
GENRE_TO_SUBJECT: dict[str, str] = {
    "romance": "romance",
    "comedy": "humor",
    "drama": "drama",
    "adventure": "adventure",
    "fantasy": "fantasy",
    "science fiction": "science_fiction",
    "horror": "horror",
    "mystery": "mystery",
    "thriller": "thriller",
    "crime": "crime",
    "historical": "historical_fiction",
    "family": "family",
    "fiction": "fiction",
    "non-fiction": "nonfiction",
    "young adult": "young_adult",
    "children": "juvenile_fiction",
    "self-help": "self-help",
    "biography": "biography",
    "history": "history",
    "poetry": "poetry",
    "classics": "classics",
}

_SUBJECT_SKIP_PREFIXES = ("serie:", "time:", "place:", "people:")
_SUBJECT_PREFIX = re.compile(r"^[a-z]+:\s*", re.IGNORECASE)
_SUBJECT_CUT = re.compile(r"[=\-\d]")
_GENERIC_SUBJECT = re.compile(
    r"^(hardcover|paperback|e.?book|american|fiction|by author|children|juvenile)$", re.IGNORECASE
)


def work_id_from_key(key: str) -> str:
    """Strip ``/works/`` from an OpenLibrary key."""
    return key.rstrip("/").split("/")[-1]


def clean_subjects(subjects: list[str], limit: int = 5) -> list[str]:
    """Reduce raw OpenLibrary subjects to a short list of readable genres."""
    found: list[str] = []
    for subject in subjects:
        lowered = subject.lower()
        if (
            lowered.startswith(_SUBJECT_SKIP_PREFIXES)
            or "bestseller" in lowered
            or "award" in lowered
            or subject[:1].isdigit()
        ):
            continue
        genre = _SUBJECT_CUT.split(_SUBJECT_PREFIX.sub("", subject))[0].strip()
        if len(genre) < 2 or len(genre) > 50 or _GENERIC_SUBJECT.match(genre):
            continue
        if genre not in found:
            found.append(genre)
        if len(found) >= limit:
            break
    return found


def parse_year_range(year_range: str) -> tuple[int, int] | None:
    """Parse ``"1990-1999"`` into bounds; ``"any"`` or garbage means no filter."""
    if not year_range or year_range == "any":
        return None
    start, _, end = year_range.partition("-")
    if not (start.strip().isdigit() and end.strip().isdigit()):
        return None
    return int(start), int(end)


def _cover_for(doc: dict[str, Any], work_id: str) -> str:
    if doc.get("cover_i"):
        return f"{COVERS_BASE}/b/id/{doc['cover_i']}-L.jpg"
    if doc.get("cover_id"):
        return f"{COVERS_BASE}/b/id/{doc['cover_id']}-M.jpg"
    if doc.get("cover_edition_key"):
        return f"{COVERS_BASE}/b/olid/{doc['cover_edition_key']}-M.jpg"
    if doc.get("edition_key"):
        return f"{COVERS_BASE}/b/olid/{doc['edition_key'][0]}-M.jpg"
    if work_id.startswith("OL"):
        return f"{COVERS_BASE}/w/id/{work_id}-M.jpg"
    return DEFAULT_COVER


def _authors(doc: dict[str, Any], limit: int | None = None) -> str:
    names = doc.get("author_name") or [a.get("name") if isinstance(a, dict) else a for a in doc.get("authors") or []]
    names = [name for name in names if name]
    if limit is not None:
        names = names[:limit]
    return ", ".join(names) if names else "Unknown Author"


class OpenLibraryConnector(BaseConnector):
    """OpenLibrary API connector; no credentials required."""
    source_name = "openlibrary"

    async def search(self, query: str, page: int = 1) -> list[ConnectorResult]:
        """Search works; results without a cover are dropped."""
        payload = await self._get_json(
            f"{API_BASE}/search.json",
            params={
                "q": query,
                "limit": SEARCH_PAGE_SIZE,
                "offset": (max(page, 1) - 1) * SEARCH_PAGE_SIZE,
                "fields": SEARCH_FIELDS,
            },
            operation="search",
        )
        if not payload:
            return []
        results: list[ConnectorResult] = []
        for doc in payload.get("docs") or []:
            if not doc.get("key") or not doc.get("title") or not doc.get("cover_i"):
                continue
            results.append(
                ConnectorResult(
                    id=f"book-{work_id_from_key(doc['key'])}",
                    title=doc["title"],
                    type=MediaType.BOOK,
                    cover_image=f"{COVERS_BASE}/b/id/{doc['cover_i']}-L.jpg",
                    author_or_director=_authors(doc, limit=3),
                    genres=list(doc.get("subject") or [])[:5],
                    year=doc.get("first_publish_year") or 0,
                    rating=doc.get("ratings_average") or None,
                )
            )
        return results

    async def trending(self) -> list[ConnectorResult]:
        """Weekly trending works, falling back to top-rated full-text works."""
        payload = await self._get_json(
            f"{API_BASE}/trending/weekly.json",
            params={"limit": 50},
            timeout=settings.trending_books_timeout_seconds,
            operation="trending",
        )
        works = (payload or {}).get("works") or []
        if not works:
            payload = await self._get_json(
                f"{API_BASE}/search.json",
                params={"sort": "rating", "has_fulltext": "true", "limit": 50},
                timeout=POPULAR_TIMEOUT_SECONDS,
                operation="popular",
            )
            works = (payload or {}).get("docs") or []
        return [result for result in (self.from_listing(work) for work in works[:50]) if result]

    async def discover(self, genres: list[str], page: int = 1, year_range: str = "any") -> list[ConnectorResult]:
        """Browse the subject mapped from the first genre, optionally filtered by first-publish year."""
        if not genres:
            return []
        genre = genres[0].strip()
        subject = GENRE_TO_SUBJECT.get(genre.lower())
        if not subject:
            logger.info("No OpenLibrary subject mapping for %r", genre)
            return []
        bounds = parse_year_range(year_range)
        # Over-fetch when filtering by year so a page still has enough works.
        limit = 100 if bounds else 25
        payload = await self._get_json(
            f"{API_BASE}/subjects/{subject}.json",
            params={"limit": limit, "offset": (max(page, 1) - 1) * limit},
            operation="subjects",
        )
        works = (payload or {}).get("works") or []
        if bounds:
            start, end = bounds
            works = [w for w in works if w.get("first_publish_year") and start <= w["first_publish_year"] <= end][:25]
        results: list[ConnectorResult] = []
        for work in works:
            result = self.from_listing(work)
            if result:
                result.genres = [genre]
                results.append(result)
        return results

    async def details(self, work_id: str) -> ConnectorResult | None:
        """Fetch a work plus its authors and editions for cover, page count, and year."""
        work = await self._get_json(f"{API_BASE}/works/{work_id}.json", operation="work")
        if not work:
            return None

        author_names: list[str] = []
        for entry in (work.get("authors") or [])[:3]:
            author_key = (entry.get("author") or {}).get("key") or entry.get("key")
            if not author_key:
                continue
            author = await self._get_json(f"{API_BASE}{author_key}.json", operation="author")
            if author and author.get("name"):
                author_names.append(author["name"])

        cover = f"{COVERS_BASE}/b/id/{work['covers'][0]}-L.jpg" if work.get("covers") else None
        total_pages = 0
        edition_year = 0
        editions = await self._get_json(f"{API_BASE}/works/{work_id}/editions.json", operation="editions")
        for edition in ((editions or {}).get("entries") or [])[:10]:
            if not cover and edition.get("covers"):
                cover = f"{COVERS_BASE}/b/id/{edition['covers'][0]}-L.jpg"
            if not total_pages and edition.get("number_of_pages"):
                total_pages = edition["number_of_pages"]
            if not edition_year and edition.get("publish_date"):
                edition_year = parse_year(edition["publish_date"])
            if cover and total_pages and edition_year:
                break

        description = work.get("description") or ""
        if isinstance(description, dict):
            description = description.get("value") or ""

        year = (
            parse_year(work.get("first_published_date"))
            or work.get("first_publish_year")
            or parse_year(work.get("publish_date"))
            or edition_year
        )
        return ConnectorResult(
            id=f"book-{work_id}",
            title=work.get("title") or "Unknown",
            type=MediaType.BOOK,
            cover_image=cover or f"{COVERS_BASE}/w/id/{work_id}-L.jpg",
            author_or_director=", ".join(author_names) or "Unknown Author",
            description=description,
            genres=clean_subjects(work.get("subjects") or []),
            year=year or 0,
            total_pages=total_pages or None,
        )

    def from_listing(self, doc: dict[str, Any]) -> ConnectorResult | None:
        """Map a trending/subject/search row; rows without key or title are skipped."""
        if not doc.get("key") or not doc.get("title"):
            return None
        work_id = work_id_from_key(doc["key"])
        subjects = doc.get("subject") or [s if isinstance(s, str) else s.get("name") for s in doc.get("subjects") or []]
        return ConnectorResult(
            id=f"book-{work_id}",
            title=doc["title"],
            type=MediaType.BOOK,
            cover_image=_cover_for(doc, work_id),
            author_or_director=_authors(doc, limit=3),
            genres=[s for s in subjects if s][:5],
            year=doc.get("first_publish_year") or 0,
            rating=doc.get("ratings_average") or None,
        )
