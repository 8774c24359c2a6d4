from __future__ import annotations

import pytest

from lune.ingestion.base import ConnectorResult
from lune.models.media import MediaItem, MediaType
from lune.schema.media import LibraryUpdate
from lune.services import library_service, media_service


def _movie(n: int) -> ConnectorResult:
    return ConnectorResult(id=f"movie-{n}", title=f"Movie {n}", type=MediaType.MOVIE)


def _show(n: int) -> ConnectorResult:
    return ConnectorResult(id=f"tv-{n}", title=f"Show {n}", type=MediaType.TV)


def _book(key: str) -> ConnectorResult:
    return ConnectorResult(id=f"book-{key}", title=f"Book {key}", type=MediaType.BOOK)


class FakeTMDB:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def search(self, kind, query, page=1):
        self.calls.append(("search", kind, query, page))
        return [_movie(1), _movie(2)] if kind == "movie" else [_show(1)]

    async def discover(self, kind, genres, page=1):
        self.calls.append(("discover", kind, tuple(genres), page))
        return [_movie(3)] if kind == "movie" else [_show(4), _show(5)]

    async def trending(self, kind):
        return [_movie(9)]

    async def details(self, kind, external_id):
        self.calls.append(("details", kind, external_id))
        return _movie(int(external_id))

    async def watch_providers(self, kind, tmdb_id):
        self.calls.append(("providers", kind, tmdb_id))
        return [{"platform": "Netflix", "url": "https://tmdb.example/watch"}]


class FakeOpenLibrary:
    async def search(self, query, page=1):
        return [_book("OL1W"), _book("OL2W"), _book("OL3W")]

    async def trending(self):
        return [_book("OL7W")]

    async def details(self, work_id):
        return _book(work_id)


@pytest.fixture()
def fake_sources(monkeypatch: pytest.MonkeyPatch) -> FakeTMDB:
    tmdb = FakeTMDB()
    library = FakeOpenLibrary()
    monkeypatch.setattr(media_service, "_tmdb", lambda: tmdb)
    monkeypatch.setattr(media_service, "_openlibrary", lambda: library)
    return tmdb


def test_split_media_id_uses_first_dash() -> None:
    assert media_service.split_media_id("movie-603") == ("movie", "603")
    assert media_service.split_media_id("book-OL-1W") == ("book", "OL-1W")
    assert media_service.split_media_id("orphan") == ("orphan", "")


def test_interleave_round_robins_uneven_groups() -> None:
    merged = media_service.interleave([_movie(1), _movie(2), _movie(3)], [], [_book("A")])

    assert [r.id for r in merged] == ["movie-1", "book-A", "movie-2", "movie-3"]


@pytest.mark.asyncio
async def test_search_all_interleaves_sources(fake_sources) -> None:
    results = await media_service.search_media("dune")

    assert [r.id for r in results] == [
        "movie-1",
        "tv-1",
        "book-OL1W",
        "movie-2",
        "book-OL2W",
        "book-OL3W",
    ]


@pytest.mark.asyncio
async def test_search_single_type_and_blank_query(fake_sources) -> None:
    shows = await media_service.search_media("  dune ", MediaType.TV, page=2)

    assert [r.id for r in shows] == ["tv-1"]
    assert fake_sources.calls == [("search", "tv", "dune", 2)]
    assert await media_service.search_media("   ") == []


@pytest.mark.asyncio
async def test_details_reject_prefix_mismatch(fake_sources) -> None:
    assert await media_service.get_media_details("movie-603", MediaType.TV) is None
    assert await media_service.get_media_details("movie-", MediaType.MOVIE) is None
    assert fake_sources.calls == []

    found = await media_service.get_media_details("movie-603", MediaType.MOVIE)
    book = await media_service.get_media_details("book-OL9W", MediaType.BOOK)

    assert found.id == "movie-603"
    assert book.id == "book-OL9W"


@pytest.mark.asyncio
async def test_discover_all_interleaves_movies_and_shows(fake_sources) -> None:
    results = await media_service.discover_by_genre(["Drama"])

    assert [r.id for r in results] == ["movie-3", "tv-4", "tv-5"]
    assert await media_service.discover_by_genre([]) == []


@pytest.mark.asyncio
async def test_trending_routes_books_to_openlibrary(fake_sources) -> None:
    assert [r.id for r in await media_service.get_trending(MediaType.BOOK)] == ["book-OL7W"]
    assert [r.id for r in await media_service.get_trending(MediaType.MOVIE)] == ["movie-9"]


def test_book_availability_encodes_title() -> None:
    links = media_service.book_availability("Dune & Sons")

    assert [link.platform for link in links] == ["Amazon", "Gutendex", "Google Books"]
    assert links[0].url == "https://www.amazon.com/s?k=Dune+%26+Sons&i=stripbooks"
    assert links[2].url == "https://books.google.com/books?q=Dune+%26+Sons"


@pytest.mark.asyncio
async def test_availability_needs_numeric_tmdb_id(fake_sources) -> None:
    assert await media_service.get_availability("movie-abc", MediaType.MOVIE) == []

    providers = await media_service.get_availability("movie-603", MediaType.MOVIE)

    assert [p.platform for p in providers] == ["Netflix"]
    assert fake_sources.calls == [("providers", "movie", 603)]


@pytest.mark.asyncio
async def test_enrich_marks_viewer_favourites(session, user) -> None:
    outcome = await library_service.manage_library(
        session,
        user.id,
        LibraryUpdate(media_id="movie-2", media_type=MediaType.MOVIE, title="Movie 2", is_favourite=True),
    )
    assert outcome.success

    enriched = await media_service.enrich_with_favourites(session, user.id, [_movie(1), _movie(2)])
    anonymous = await media_service.enrich_with_favourites(session, None, [_movie(2)])

    assert [(r.id, r.is_favourite) for r in enriched] == [("movie-1", False), ("movie-2", True)]
    assert anonymous[0].is_favourite is False


@pytest.mark.asyncio
async def test_search_route_returns_summaries(client, fake_sources) -> None:
    res = await client.get("/api/media/search", params={"q": "dune", "type": "movie"})

    assert res.status_code == 200
    assert [item["id"] for item in res.json()] == ["movie-1", "movie-2"]
    assert all(item["is_favourite"] is False for item in res.json())


@pytest.mark.asyncio
async def test_discover_route_rejects_books(client, fake_sources) -> None:
    res = await client.get("/api/media/discover", params={"genre": "Drama", "type": "book"})

    assert res.status_code == 400


@pytest.mark.asyncio
async def test_details_route_unknown_prefix_is_404(client, fake_sources) -> None:
    assert (await client.get("/api/media/game-42")).status_code == 404

    res = await client.get("/api/media/movie-42")
    assert res.status_code == 200
    assert res.json()["id"] == "movie-42"


@pytest.mark.asyncio
async def test_book_availability_route_uses_cached_title(client, session) -> None:
    session.add(MediaItem(id="book-OL81631W", type=MediaType.BOOK, title="Dune"))
    await session.commit()

    cached = await client.get("/api/media/book-OL81631W/availability")
    explicit = await client.get("/api/media/book-OL1W/availability", params={"title": "Emma"})
    unknown = await client.get("/api/media/book-OL404W/availability")

    assert cached.json()[0]["url"] == "https://www.amazon.com/s?k=Dune&i=stripbooks"
    assert explicit.json()[1]["url"] == "https://gutendex.com/books?search=Emma"
    assert unknown.json() == []
