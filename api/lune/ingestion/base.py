"""Base connector primitives for upstream media sources."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import httpx

from lune.ingestion.http import ExternalAPIError, fetch_json
from lune.models.media import MediaType

logger = logging.getLogger("lune.ingestion")


@dataclass(slots=True)
class ConnectorResult:
    """Normalized media summary returned by every upstream source."""
    id: str
    title: str
    type: MediaType
    cover_image: str | None = None
    author_or_director: str = ""
    description: str = ""
    genres: list[str] = field(default_factory=list)
    year: int = 0
    rating: float | None = None
    release_date: date | None = None
    is_coming_soon: bool = False
    episode_runtime: int | None = None
    total_episodes: int | None = None
    number_of_seasons: int | None = None
    episodes_per_season: dict[int, int] | None = None
    total_pages: int | None = None
    trailer_url: str | None = None
    is_favourite: bool = False


class BaseConnector:
    """Shared request handling for upstream sources.

    Upstream failures never propagate: ``_get_json`` logs and returns ``None``
    so callers can fall back to empty results.
    """
    source_name: str

    async def _get_json(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
        operation: str = "fetch",
    ) -> dict[str, Any] | None:
        try:
            payload = await fetch_json(url, headers=headers, params=params, timeout=timeout)
        except (httpx.HTTPError, ExternalAPIError, ValueError) as exc:
            logger.warning("%s %s failed: %s", self.source_name, operation, exc)
            return None
        if not isinstance(payload, dict):
            logger.warning("%s %s returned an unexpected payload", self.source_name, operation)
            return None
        return payload
