"""Library reconciliation tests: record creation, merge rules, and error reporting."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from lune.models.media import MediaItem, MediaStatus, MediaType, UserMedia
from lune.schema.media import LibraryUpdate
from lune.services import library_service
from lune.utils.datetime import ensure_timezone


def _payload(**fields) -> LibraryUpdate:
    return LibraryUpdate.model_validate(fields)


async def _record(session, user, media_id: str) -> UserMedia | None:
    result = await session.execute(
        select(UserMedia)
        .where(UserMedia.user_id == user.id, UserMedia.media_id == media_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _record_count(session) -> int:
    return await session.scalar(select(func.count()).select_from(UserMedia))


@pytest.mark.asyncio
async def test_missing_identity_is_reported_before_any_write(session):
    result = await library_service.manage_library(
        session, None, _payload(mediaId="movie-603", mediaType="movie", status="watching")
    )

    assert result.success is False
    assert result.error == "You must be logged in."
    assert await session.get(MediaItem, "movie-603") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("media_id", [None, "", "   "])
async def test_blank_media_id_is_rejected(session, user, media_id):
    result = await library_service.manage_library(
        session, user.id, _payload(mediaId=media_id, mediaType="book", status="watching")
    )

    assert result.success is False
    assert result.error == "Media ID is required."
    assert await _record_count(session) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("status", list(MediaStatus))
@pytest.mark.parametrize("rating", [0.5, 3, 5])
async def test_status_and_rating_together_create_record(session, user, status, rating):
    result = await library_service.manage_library(
        session, user.id, _payload(mediaId="movie-11", mediaType="movie", status=status.value, rating=rating)
    )

    assert result.success is True
    record = await _record(session, user, "movie-11")
    assert record.status == status
    assert record.rating == rating
    assert (record.completed_at is not None) is (status == MediaStatus.COMPLETED)


@pytest.mark.asyncio
async def test_rating_alone_never_creates_record(session, user):
    result = await library_service.manage_library(
        session, user.id, _payload(mediaId="movie-12", mediaType="movie", rating=4)
    )

    assert result.success is True
    assert await _record(session, user, "movie-12") is None
    # The catalog is still refreshed.
    assert await session.get(MediaItem, "movie-12") is not None


@pytest.mark.asyncio
async def test_rating_attaches_to_existing_status(session, user):
    await library_service.manage_library(
        session, user.id, _payload(mediaId="tv-9", mediaType="tv", status="watching")
    )

    result = await library_service.manage_library(session, user.id, _payload(mediaId="tv-9", mediaType="tv", rating=3.5))

    assert result.success is True
    record = await _record(session, user, "tv-9")
    assert record.status == MediaStatus.WATCHING
    assert record.rating == 3.5


@pytest.mark.asyncio
async def test_rating_ignored_on_favourite_only_record(session, user):
    await library_service.manage_library(
        session, user.id, _payload(mediaId="movie-13", mediaType="movie", isFavourite=True)
    )

    await library_service.manage_library(session, user.id, _payload(mediaId="movie-13", mediaType="movie", rating=4))

    record = await _record(session, user, "movie-13")
    assert record.status is None
    assert record.rating is None


@pytest.mark.asyncio
async def test_zero_rating_leaves_existing_rating(session, user):
    await library_service.manage_library(
        session, user.id, _payload(mediaId="movie-14", mediaType="movie", status="completed", rating=4)
    )

    await library_service.manage_library(
        session, user.id, _payload(mediaId="movie-14", mediaType="movie", status="completed", rating=0)
    )

    record = await _record(session, user, "movie-14")
    assert record.rating == 4


@pytest.mark.asyncio
async def test_unfavouriting_untracked_item_creates_nothing(session, user):
    result = await library_service.manage_library(
        session, user.id, _payload(mediaId="movie-77", mediaType="movie", isFavourite=False)
    )

    assert result.success is True
    assert await _record_count(session) == 0
    assert await library_service.list_library(session, user.id) == []


@pytest.mark.asyncio
async def test_favourite_only_creates_record_without_status(session, user):
    result = await library_service.manage_library(
        session, user.id, _payload(mediaId="book-7", mediaType="book", isFavourite=True)
    )

    assert result.success is True
    record = await _record(session, user, "book-7")
    assert record.is_favourite is True
    assert record.status is None
    assert record.completed_at is None


@pytest.mark.asyncio
async def test_explicit_false_favourite_is_written_and_absent_flag_is_kept(session, user):
    await library_service.manage_library(
        session, user.id, _payload(mediaId="book-8", mediaType="book", status="watching", isFavourite=True)
    )

    await library_service.manage_library(session, user.id, _payload(mediaId="book-8", mediaType="book", currentPage=50))
    record = await _record(session, user, "book-8")
    assert record.is_favourite is True
    assert record.current_page == 50

    await library_service.manage_library(session, user.id, _payload(mediaId="book-8", mediaType="book", isFavourite=False))
    record = await _record(session, user, "book-8")
    assert record.is_favourite is False
    assert record.status == MediaStatus.WATCHING


@pytest.mark.asyncio
async def test_progress_fields_are_gated_by_media_type(session, user):
    await library_service.manage_library(
        session,
        user.id,
        _payload(
            mediaId="movie-15",
            mediaType="movie",
            status="watching",
            currentPage=120,
            currentEpisode=2,
            currentSeason=1,
        ),
    )
    movie = await _record(session, user, "movie-15")
    assert movie.current_page is None
    assert movie.current_episode is None
    assert movie.current_season is None

    await library_service.manage_library(
        session,
        user.id,
        _payload(mediaId="tv-15", mediaType="tv", status="watching", currentPage=120, currentEpisode=4, currentSeason=2),
    )
    show = await _record(session, user, "tv-15")
    assert show.current_page is None
    assert (show.current_season, show.current_episode) == (2, 4)

    await library_service.manage_library(
        session,
        user.id,
        _payload(mediaId="book-15", mediaType="book", status="watching", currentPage=120, currentEpisode=4),
    )
    book = await _record(session, user, "book-15")
    assert book.current_page == 120
    assert book.current_episode is None


@pytest.mark.asyncio
async def test_progress_only_update_on_untracked_show_is_dropped(session, user):
    result = await library_service.manage_library(
        session, user.id, _payload(mediaId="tv-7", mediaType="tv", currentEpisode=3)
    )

    assert result.success is True
    assert result.error is None
    assert await _record(session, user, "tv-7") is None


@pytest.mark.asyncio
async def test_book_lifecycle_keeps_first_completion_time(session, user):
    first = await library_service.manage_library(
        session, user.id, _payload(mediaId="book-42", mediaType="book", status="plan_to_watch")
    )
    assert first.success is True
    record = await _record(session, user, "book-42")
    assert record.status == MediaStatus.PLAN_TO_WATCH
    assert record.rating is None
    assert record.completed_at is None

    await library_service.manage_library(
        session, user.id, _payload(mediaId="book-42", mediaType="book", status="completed", rating=4)
    )
    record = await _record(session, user, "book-42")
    assert record.status == MediaStatus.COMPLETED
    assert record.rating == 4
    completed_at = ensure_timezone(record.completed_at)
    assert completed_at is not None

    await library_service.manage_library(
        session, user.id, _payload(mediaId="book-42", mediaType="book", status="completed", rating=5)
    )
    record = await _record(session, user, "book-42")
    assert record.rating == 5
    assert ensure_timezone(record.completed_at) == completed_at
    assert await _record_count(session) == 1


@pytest.mark.asyncio
async def test_catalog_upsert_nulls_fields_for_other_types(session, user):
    await library_service.manage_library(
        session,
        user.id,
        _payload(
            mediaId="movie-603",
            mediaType="movie",
            title="The Matrix",
            genres=["Action", "Science Fiction"],
            episodeRuntime=136,
            totalEpisodes=10,
            totalPages=400,
            isFavourite=True,
        ),
    )
    movie = await session.get(MediaItem, "movie-603")
    assert movie.type == MediaType.MOVIE
    assert movie.runtime == 136
    assert movie.episode_runtime is None
    assert movie.number_of_episodes is None
    assert movie.total_pages is None
    assert movie.genres == ["Action", "Science Fiction"]

    await library_service.manage_library(
        session,
        user.id,
        _payload(
            mediaId="tv-1399",
            mediaType="tv",
            title="Game of Thrones",
            episodeRuntime=60,
            totalEpisodes=73,
            numberOfSeasons=8,
            episodesPerSeason={"1": 10, "2": 10},
            totalPages=10,
        ),
    )
    show = await session.get(MediaItem, "tv-1399")
    assert show.runtime is None
    assert show.episode_runtime == 60
    assert show.number_of_episodes == 73
    assert show.number_of_seasons == 8
    assert show.episodes_per_season == {"1": 10, "2": 10}
    assert show.total_pages is None


@pytest.mark.asyncio
async def test_catalog_is_refreshed_on_every_call(session, user):
    await library_service.manage_library(
        session, user.id, _payload(mediaId="book-1", mediaType="book", title="Old title", totalPages=100)
    )
    await library_service.manage_library(
        session, user.id, _payload(mediaId="book-1", mediaType="book", title="New title", totalPages=320)
    )

    book = await session.get(MediaItem, "book-1")
    await session.refresh(book)
    assert book.title == "New title"
    assert book.total_pages == 320


@pytest.mark.asyncio
async def test_catalog_failure_aborts_before_library_write(session, user, monkeypatch):
    async def _broken_merge(*args, **kwargs):
        raise SQLAlchemyError("catalog offline")

    monkeypatch.setattr(session, "merge", _broken_merge)

    result = await library_service.manage_library(
        session, user.id, _payload(mediaId="movie-1", mediaType="movie", status="watching")
    )

    assert result.success is False
    assert result.error == "Failed to save media details."
    monkeypatch.undo()
    assert await _record_count(session) == 0


@pytest.mark.asyncio
async def test_library_read_failure_is_reported(session, user, monkeypatch):
    async def _broken_execute(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection reset"))

    monkeypatch.setattr(session, "execute", _broken_execute)

    result = await library_service.manage_library(
        session, user.id, _payload(mediaId="movie-2", mediaType="movie", status="watching")
    )

    assert result.success is False
    assert result.error == "Database error."


def _fail_on_commit(session, monkeypatch, failing_call: int) -> None:
    real_commit = session.commit
    calls = {"count": 0}

    async def _commit():
        calls["count"] += 1
        if calls["count"] == failing_call:
            raise SQLAlchemyError("write rejected")
        await real_commit()

    monkeypatch.setattr(session, "commit", _commit)


@pytest.mark.asyncio
async def test_insert_failure_keeps_catalog_entry(session, user, monkeypatch):
    _fail_on_commit(session, monkeypatch, failing_call=2)

    result = await library_service.manage_library(
        session, user.id, _payload(mediaId="movie-3", mediaType="movie", title="Heat", status="completed")
    )

    assert result.success is False
    assert result.error == "Failed to add to your library."
    monkeypatch.undo()
    assert await session.get(MediaItem, "movie-3") is not None
    assert await _record(session, user, "movie-3") is None


@pytest.mark.asyncio
async def test_update_failure_is_reported(session, user, monkeypatch):
    await library_service.manage_library(
        session, user.id, _payload(mediaId="movie-4", mediaType="movie", status="watching")
    )
    _fail_on_commit(session, monkeypatch, failing_call=2)

    result = await library_service.manage_library(
        session, user.id, _payload(mediaId="movie-4", mediaType="movie", status="dropped")
    )

    assert result.success is False
    assert result.error == "Failed to update your library."
    monkeypatch.undo()
    record = await _record(session, user, "movie-4")
    assert record.status == MediaStatus.WATCHING


def test_update_set_rules_without_database():
    payload = _payload(mediaId="tv-1", mediaType="tv", status="completed", rating=2, currentPage=3, currentEpisode=5)
    existing = UserMedia(status=MediaStatus.WATCHING, completed_at=None)

    updates = library_service.build_update_set(payload, existing)

    assert set(updates) == {"status", "rating", "current_episode", "completed_at"}
    assert "is_favourite" not in updates


@pytest.mark.asyncio
async def test_list_library_filters_and_favourite_map(session, user):
    await library_service.manage_library(
        session, user.id, _payload(mediaId="movie-21", mediaType="movie", status="completed", isFavourite=True)
    )
    await library_service.manage_library(
        session, user.id, _payload(mediaId="movie-22", mediaType="movie", status="watching")
    )

    completed = await library_service.list_library(session, user.id, status=MediaStatus.COMPLETED)
    assert [entry.media_id for entry in completed] == ["movie-21"]
    assert completed[0].media_item.id == "movie-21"

    favourites = await library_service.list_library(session, user.id, favourites_only=True)
    assert [entry.media_id for entry in favourites] == ["movie-21"]

    mapping = await library_service.favourite_map(session, user.id, ["movie-21", "movie-22", "movie-99"])
    assert mapping == {"movie-21": True, "movie-22": False}

    entry = await library_service.get_library_entry(session, user.id, "movie-22")
    assert entry.status == MediaStatus.WATCHING
    assert await library_service.get_library_entry(session, user.id, "movie-99") is None


@pytest.mark.parametrize("rating", [3.7, 4.25, -0.5, 5.5])
def test_rating_must_be_a_half_step_within_range(rating):
    with pytest.raises(PydanticValidationError):
        _payload(mediaId="movie-1", mediaType="movie", status="completed", rating=rating)


def test_half_step_ratings_are_accepted():
    assert _payload(mediaId="movie-1", mediaType="movie", rating=3.5).rating == 3.5
    assert _payload(mediaId="movie-1", mediaType="movie", rating=0).rating == 0
