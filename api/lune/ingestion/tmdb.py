"""TMDB connector for movie and TV metadata."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from lune.core.config import settings
from lune.ingestion.base import BaseConnector, ConnectorResult
from lune.ingestion.http import ExternalAPIError
from lune.models.media import MediaType
from lune.utils.datetime import parse_date

logger = logging.getLogger("lune.ingestion.tmdb")

API_BASE = "https://api.themoviedb.org/3"
IMAGE_BASE = "https://image.tmdb.org/t/p/w500"
TRENDING_TIMEOUT_SECONDS = 15.0

MOVIE_GENRES: dict[int, str] = {
    28: "Action",
    12: "Adventure",
    16: "Animation",
    35: "Comedy",
    80: "Crime",
    99: "Documentary",
    18: "Drama",
    10751: "Family",
    14: "Fantasy",
    36: "History",
    27: "Horror",
    10402: "Music",
    9648: "Mystery",
    10749: "Romance",
    878: "Science Fiction",
    10770: "TV Movie",
    53: "Thriller",
    10752: "War",
    37: "Western",
}

TV_GENRES: dict[int, str] = {
    10759: "Action & Adventure",
    16: "Animation",
    35: "Comedy",
    80: "Crime",
    99: "Documentary",
    18: "Drama",
    10751: "Family",
    10762: "Kids",
    9648: "Mystery",
    10763: "News",
    10764: "Reality",
    10765: "Sci-Fi & Fantasy",
    10766: "Soap",
    10767: "Talk",
    10768: "War & Politics",
    37: "Western",
}

# Lowercase genre names accepted by discover, mapped to TMDB genre ids.
MOVIE_GENRE_IDS: dict[str, int] = {
    "action": 28,
    "adventure": 12,
    "animation": 16,
    "comedy": 35,
    "crime": 80,
    "documentary": 99,
    "drama": 18,
    "family": 10751,
    "fantasy": 14,
    "history": 36,
    "historical": 36,
    "horror": 27,
    "music": 10402,
    "mystery": 9648,
    "romance": 10749,
    "science fiction": 878,
    "thriller": 53,
    "war": 10752,
    "western": 37,
}

TV_GENRE_IDS: dict[str, int] = {
    "action": 10759,
    "adventure": 10759,
    "animation": 16,
    "comedy": 35,
    "crime": 80,
    "documentary": 99,
    "drama": 18,
    "family": 10751,
    "fantasy": 10765,
    "science fiction": 10765,
    "mystery": 9648,
    "war": 10768,
    "western": 37,
}


def genre_ids_for(kind: str, genres: list[str]) -> list[int]:
    """Translate genre names into TMDB ids for the given kind, dropping unknowns."""
    mapping = TV_GENRE_IDS if kind == "tv" else MOVIE_GENRE_IDS
    ids: list[int] = []
    for genre in genres:
        genre_id = mapping.get(genre.strip().lower())
        if genre_id and genre_id not in ids:
            ids.append(genre_id)
    return ids


def extract_trailer_url(videos: list[dict[str, Any]]) -> str | None:
    """Pick an official YouTube trailer, then any trailer, then any YouTube video."""
    youtube = [video for video in videos or [] if video.get("site") == "YouTube" and video.get("key")]
    trailers = [video for video in youtube if video.get("type") in {"Trailer", "Teaser"}]
    official = [video for video in trailers if video.get("official") is True]
    for candidates in (official, trailers, youtube):
        if candidates:
            return f"https://www.youtube.com/embed/{candidates[0]['key']}"
    return None


def _rounded_vote(value: Any) -> float | None:
    if not value:
        return None
    return round(float(value), 1)


def _coming_soon(release: date | None) -> bool:
    return bool(release and release > date.today())


def _cover(poster_path: str | None, kind: str) -> str:
    if poster_path:
        return f"{IMAGE_BASE}{poster_path}"
    return f"https://picsum.photos/seed/placeholder-{kind}/400/600"


class TMDBConnector(BaseConnector):
    source_name = "tmdb"

    def __init__(self, api_key: str | None = None, auth_token: str | None = None) -> None:
        self.api_key = api_key or settings.tmdb_api_key
        self.auth_token = auth_token or settings.tmdb_api_auth_header

    def _auth(self) -> tuple[dict[str, str], dict[str, str]]:
        headers: dict[str, str] = {"accept": "application/json"}
        params: dict[str, str] = {}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        elif self.api_key:
            params["api_key"] = self.api_key
        else:
            raise ExternalAPIError("TMDB API credentials missing; set TMDB_API_AUTH_HEADER or TMDB_API_KEY")
        return headers, params

    async def _request(
        self, path: str, *, params: dict[str, Any] | None = None, timeout: float | None = None, operation: str
    ) -> dict[str, Any] | None:
        try:
            headers, auth_params = self._auth()
        except ExternalAPIError as exc:
            logger.warning("Skipping TMDB %s: %s", operation, exc)
            return None
        return await self._get_json(
            f"{API_BASE}{path}",
            headers=headers,
            params={**auth_params, **(params or {})},
            timeout=timeout,
            operation=operation,
        )

    async def search(self, kind: str, query: str, page: int = 1) -> list[ConnectorResult]:
        """Search movies, shows, or both (``multi``); results without posters are dropped."""
        payload = await self._request(
            f"/search/{kind}",
            params={"query": query, "page": page, "include_adult": "true"},
            operation=f"search/{kind}",
        )
        if not payload:
            return []
        results: list[ConnectorResult] = []
        for item in payload.get("results", []) or []:
            item_kind = item.get("media_type") or kind
            if item_kind not in {"movie", "tv"} or not item.get("poster_path"):
                continue
            results.append(self.from_listing(item, item_kind))
        return results

    async def trending(self, kind: str) -> list[ConnectorResult]:
        payload = await self._request(
            f"/trending/{kind}/week", timeout=TRENDING_TIMEOUT_SECONDS, operation=f"trending/{kind}"
        )
        if not payload:
            return []
        return [self.from_listing(item, kind) for item in payload.get("results", []) or [] if item.get("id")]

    async def discover(self, kind: str, genres: list[str], page: int = 1) -> list[ConnectorResult]:
        ids = genre_ids_for(kind, genres)
        if not ids:
            return []
        payload = await self._request(
            f"/discover/{kind}",
            params={"with_genres": ",".join(str(i) for i in ids), "sort_by": "popularity.desc", "page": page},
            operation=f"discover/{kind}",
        )
        if not payload:
            return []
        return [self.from_listing(item, kind) for item in payload.get("results", []) or [] if item.get("id")]

    async def details(self, kind: str, tmdb_id: str) -> ConnectorResult | None:
        payload = await self._request(
            f"/{kind}/{tmdb_id}",
            params={"append_to_response": "credits,videos"},
            operation=f"{kind} details",
        )
        if not payload:
            return None
        result = self.from_tv(payload) if kind == "tv" else self.from_movie(payload)
        result.trailer_url = extract_trailer_url((payload.get("videos") or {}).get("results", []))
        if kind == "tv":
            result.episodes_per_season = await self.season_episode_counts(tmdb_id, result.number_of_seasons or 0)
        return result

    async def season_episode_counts(self, tmdb_id: str, number_of_seasons: int) -> dict[int, int] | None:
        """Fetch each season and count its episodes; missing seasons are skipped."""
        counts: dict[int, int] = {}
        for season in range(1, number_of_seasons + 1):
            payload = await self._request(f"/tv/{tmdb_id}/season/{season}", operation=f"tv season {season}")
            if payload is None:
                continue
            counts[season] = len(payload.get("episodes") or [])
        return counts or None

    async def watch_providers(self, kind: str, tmdb_id: int) -> list[dict[str, str]]:
        """Return unique streaming/rent/buy providers for the configured region."""
        payload = await self._request(f"/{kind}/{tmdb_id}/watch/providers", operation="watch providers")
        if not payload:
            return []
        region = settings.tmdb_region
        regional = (payload.get("results") or {}).get(region)
        if not regional:
            return []
        link = regional.get("link") or f"https://www.themoviedb.org/{kind}/{tmdb_id}/watch?locale={region}"
        providers: list[dict[str, str]] = []
        seen: set[str] = set()
        for offer in ("flatrate", "rent", "buy"):
            for provider in regional.get(offer) or []:
                name = provider.get("provider_name")
                if not name or name in seen:
                    continue
                seen.add(name)
                providers.append({"platform": name, "url": link})
        return providers

    def from_listing(self, item: dict[str, Any], kind: str) -> ConnectorResult:
        """Map a search/trending/discover row, resolving genre ids to names."""
        is_movie = kind == "movie"
        release = parse_date(item.get("release_date") if is_movie else item.get("first_air_date"))
        genre_names = MOVIE_GENRES if is_movie else TV_GENRES
        return ConnectorResult(
            id=f"{kind}-{item.get('id')}",
            title=(item.get("title") if is_movie else item.get("name")) or "Unknown",
            type=MediaType.MOVIE if is_movie else MediaType.TV,
            cover_image=_cover(item.get("poster_path"), kind),
            description=item.get("overview") or "",
            genres=[genre_names[g] for g in item.get("genre_ids") or [] if g in genre_names],
            year=release.year if release else 0,
            rating=_rounded_vote(item.get("vote_average")),
            release_date=release,
            is_coming_soon=_coming_soon(release),
        )

    def from_movie(self, payload: dict[str, Any]) -> ConnectorResult:
        release = parse_date(payload.get("release_date"))
        crew = (payload.get("credits") or {}).get("crew", [])
        director = next((member.get("name") for member in crew if member.get("job") == "Director"), None)
        return ConnectorResult(
            id=f"movie-{payload.get('id')}",
            title=payload.get("title") or "Unknown",
            type=MediaType.MOVIE,
            cover_image=_cover(payload.get("poster_path"), "movie"),
            author_or_director=director or "N/A",
            description=payload.get("overview") or "",
            genres=[g.get("name") for g in payload.get("genres", []) if g.get("name")],
            year=release.year if release else 0,
            rating=_rounded_vote(payload.get("vote_average")),
            release_date=release,
            is_coming_soon=_coming_soon(release),
            episode_runtime=payload.get("runtime"),
        )

    def from_tv(self, payload: dict[str, Any]) -> ConnectorResult:
        release = parse_date(payload.get("first_air_date"))
        creators = ", ".join(c.get("name") for c in payload.get("created_by", []) if c.get("name"))
        runtimes = payload.get("episode_run_time") or [None]
        return ConnectorResult(
            id=f"tv-{payload.get('id')}",
            title=payload.get("name") or "Unknown",
            type=MediaType.TV,
            cover_image=_cover(payload.get("poster_path"), "tv"),
            author_or_director=creators or "N/A",
            description=payload.get("overview") or "",
            genres=[g.get("name") for g in payload.get("genres", []) if g.get("name")],
            year=release.year if release else 0,
            rating=_rounded_vote(payload.get("vote_average")),
            release_date=release,
            is_coming_soon=_coming_soon(release),
            episode_runtime=runtimes[0],
            total_episodes=payload.get("number_of_episodes"),
            number_of_seasons=payload.get("number_of_seasons"),
        )
