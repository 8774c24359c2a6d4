"""Gutendex (Project Gutenberg) connector for public-domain book search."""

from __future__ import annotations

from typing import Any

from lune.core.config import settings
from lune.ingestion.base import BaseConnector, ConnectorResult
from lune.models.media import MediaType

API_BASE = "https://gutendex.com"


class GutendexConnector(BaseConnector):
    source_name = "gutendex"

    async def search(self, query: str, page: int = 1) -> list[ConnectorResult]:
        payload = await self._get_json(
            f"{API_BASE}/books",
            params={"search": query, "page": max(page, 1)},
            timeout=settings.trending_books_timeout_seconds,
            operation="search",
        )
        if not payload:
            return []
        return [self.from_book(book) for book in payload.get("results") or [] if book.get("id")]

    def from_book(self, book: dict[str, Any]) -> ConnectorResult:
        authors = ", ".join(a.get("name") for a in book.get("authors") or [] if a.get("name"))
        formats = book.get("formats") or {}
        return ConnectorResult(
            id=f"book-{book['id']}",
            title=book.get("title") or "Unknown",
            type=MediaType.BOOK,
            cover_image=formats.get("image/jpeg") or f"https://picsum.photos/seed/book-{book['id']}/400/600",
            author_or_director=authors or "Unknown Author",
            genres=list(book.get("bookshelves") or [])[:5],
            year=0,
        )
