"""Aggregated statistics tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from lune.models.media import MediaItem, MediaStatus, MediaType, UserMedia
from lune.services import stats_service

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def _at(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, 9, 30, tzinfo=timezone.utc)


async def _track(session, user, media: MediaItem, **fields) -> UserMedia:
    session.add(media)
    entry = UserMedia(user_id=user.id, media_id=media.id, **fields)
    session.add(entry)
    await session.commit()
    return entry


@pytest.fixture()
def library_rows():
    return [
        (
            MediaItem(id="movie-1", type=MediaType.MOVIE, title="A", genres=["Action", "Sci-Fi"]),
            dict(status=MediaStatus.COMPLETED, rating=4, completed_at=_at(2026, 3, 2), created_at=_at(2026, 1, 1)),
        ),
        (
            MediaItem(id="movie-2", type=MediaType.MOVIE, title="B", genres=["Action"], runtime=90),
            dict(status=MediaStatus.COMPLETED, rating=5, completed_at=_at(2025, 12, 10), created_at=_at(2025, 12, 1)),
        ),
        (
            MediaItem(
                id="tv-1", type=MediaType.TV, title="C", genres=["Drama"], episode_runtime=30, number_of_episodes=10
            ),
            dict(status=MediaStatus.COMPLETED, completed_at=_at(2026, 2, 1), created_at=_at(2026, 1, 5)),
        ),
        (
            MediaItem(
                id="tv-2", type=MediaType.TV, title="D", genres=["Drama", "Action"], episodes_per_season={"1": 8}
            ),
            dict(status=MediaStatus.WATCHING, current_season=3, current_episode=2, created_at=_at(2026, 1, 20)),
        ),
        (
            MediaItem(id="book-1", type=MediaType.BOOK, title="E", genres=["Fantasy"]),
            dict(status=MediaStatus.COMPLETED, rating=3, completed_at=_at(2025, 3, 1), created_at=_at(2025, 2, 1)),
        ),
        (
            MediaItem(id="book-2", type=MediaType.BOOK, title="F"),
            dict(status=MediaStatus.WATCHING, current_page=50, created_at=_at(2025, 4, 10)),
        ),
        (
            MediaItem(id="movie-3", type=MediaType.MOVIE, title="G", genres=["Horror"]),
            dict(is_favourite=True, created_at=_at(2026, 3, 5)),
        ),
    ]


@pytest.mark.asyncio
async def test_anonymous_callers_get_empty_stats(session):
    stats = await stats_service.get_user_stats(session, None, now=NOW)

    assert stats.total_completed == 0
    assert stats.average_rating == 0
    assert len(stats.completed_over_time) == 12
    assert stats.completed_over_time[-1].name == "Mar"
    assert stats.completed_over_time[0].name == "Apr"


@pytest.mark.asyncio
async def test_empty_library_does_not_divide_by_zero(session, user):
    stats = await stats_service.get_user_stats(session, user.id, now=NOW)

    assert stats.average_rating == 0
    assert stats.movie_stats.avg_rating == 0
    assert stats.total_watch_hours == 0
    assert [bucket.hours for bucket in stats.watch_hours_by_month] == [0] * 12


@pytest.mark.asyncio
async def test_stats_totals_and_type_defaults(session, user, library_rows):
    for media, fields in library_rows:
        await _track(session, user, media, **fields)

    stats = await stats_service.get_user_stats(session, user.id, now=NOW)

    assert stats.total_completed == 4
    assert stats.average_rating == 4.0
    # 120 (default movie) + 90 + 30 * 10 + watching tv: (8 + 10 default + 2) * 45
    assert (stats.total_watch_hours, stats.total_watch_minutes) == (23, 30)

    assert stats.movie_stats.completed == 2
    assert stats.movie_stats.watch_hours == 3
    assert stats.movie_stats.avg_rating == 4.5

    assert stats.tv_stats.completed == 1
    assert stats.tv_stats.episodes_watched == 30
    assert stats.tv_stats.watch_hours == 20
    assert stats.tv_stats.avg_rating == 0

    assert stats.book_stats.completed == 1
    assert stats.book_stats.pages_read == 350
    assert stats.book_stats.avg_rating == 3.0

    genres = {entry.name: entry.value for entry in stats.genre_distribution}
    assert genres == {"Action": 3, "Drama": 2, "Sci-Fi": 1, "Fantasy": 1}


@pytest.mark.asyncio
async def test_activity_is_bucketed_by_year_and_month(session, user, library_rows):
    for media, fields in library_rows:
        await _track(session, user, media, **fields)

    stats = await stats_service.get_user_stats(session, user.id, now=NOW)
    buckets = {bucket.name: bucket for bucket in stats.completed_over_time}

    # book-1 finished in March of the previous year and falls outside the window.
    assert buckets["Mar"].total == 2
    assert buckets["Mar"].completed == 1
    assert buckets["Feb"].completed == 1
    assert buckets["Jan"].watching == 1
    assert buckets["Dec"].completed == 1
    assert buckets["Apr"].watching == 1
    assert sum(bucket.total for bucket in stats.completed_over_time) == 6

    hours = {bucket.month: bucket.hours for bucket in stats.watch_hours_by_month}
    assert hours["Mar"] == 2
    assert hours["Feb"] == 5
    assert hours["Dec"] == 2


def test_month_window_crosses_year_boundary():
    window = stats_service.month_window(datetime(2026, 2, 1, tzinfo=timezone.utc))

    assert window[0] == (2025, 3)
    assert window[-1] == (2026, 2)
    assert len(set(window)) == 12


@pytest.mark.asyncio
async def test_stats_route_for_anonymous_caller(client):
    res = await client.get("/api/me/stats")

    assert res.status_code == 200
    body = res.json()
    assert body["total_completed"] == 0
    assert len(body["completed_over_time"]) == 12
