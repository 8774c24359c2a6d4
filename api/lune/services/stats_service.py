"""Aggregated consumption statistics over a user's library."""

from __future__ import annotations

import calendar
import logging
import uuid
from collections import Counter
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lune.models.media import MediaItem, MediaStatus, MediaType, UserMedia
from lune.schema.stats import (
    BookStats,
    MonthActivity,
    MonthHours,
    MovieStats,
    NamedValue,
    TvStats,
    UserStats,
)
from lune.utils.datetime import ensure_timezone, utc_now

logger = logging.getLogger("lune.services.stats")

DEFAULT_MOVIE_MINUTES = 120
DEFAULT_EPISODE_MINUTES = 45
DEFAULT_EPISODES_PER_SEASON = 10
DEFAULT_BOOK_PAGES = 300
WINDOW_MONTHS = 12
TOP_GENRES = 5

MonthKey = tuple[int, int]


def month_window(now: datetime, months: int = WINDOW_MONTHS) -> list[MonthKey]:
    """Return ``(year, month)`` keys for the trailing window ending at ``now``'s month."""
    keys: list[MonthKey] = []
    year, month = now.year, now.month
    for _ in range(months):
        keys.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


def _month_key(value: datetime) -> MonthKey:
    return value.year, value.month


def _average(values: list[float]) -> float:
    return round(sum(values) / len(values), 1) if values else 0


def _rated(entries: list[UserMedia]) -> list[float]:
    return [entry.rating for entry in entries if entry.rating]


def _season_episodes(media: MediaItem, season: int) -> int:
    counts = media.episodes_per_season or {}
    return counts.get(str(season)) or counts.get(season) or DEFAULT_EPISODES_PER_SEASON


def completed_minutes(media: MediaItem) -> int:
    """Minutes spent on a completed movie or show; books contribute pages, not minutes."""
    if media.type == MediaType.MOVIE:
        return media.runtime or DEFAULT_MOVIE_MINUTES
    if media.type == MediaType.TV:
        return (media.episode_runtime or DEFAULT_EPISODE_MINUTES) * (media.number_of_episodes or 0)
    return 0


def watching_progress(entry: UserMedia, media: MediaItem) -> tuple[int, int]:
    """Return ``(minutes, episodes)`` watched so far on an in-progress movie or show."""
    if media.type == MediaType.MOVIE:
        return media.runtime or DEFAULT_MOVIE_MINUTES, 0
    if media.type != MediaType.TV:
        return 0, 0
    runtime = media.episode_runtime or DEFAULT_EPISODE_MINUTES
    current_season = entry.current_season or 1
    episodes = sum(_season_episodes(media, season) for season in range(1, current_season))
    episodes += entry.current_episode or 1
    return episodes * runtime, episodes


def empty_stats(now: datetime | None = None) -> UserStats:
    now = now or utc_now()
    return UserStats(
        completed_over_time=[
            MonthActivity(name=calendar.month_abbr[month]) for _, month in month_window(now)
        ],
    )


async def get_user_stats(
    session: AsyncSession, user_id: uuid.UUID | None, now: datetime | None = None
) -> UserStats:
    """Reduce the user's library into totals, genre counts, and monthly activity."""
    now = ensure_timezone(now) or utc_now()
    if user_id is None:
        return empty_stats(now)
    try:
        result = await session.execute(
            select(UserMedia).options(selectinload(UserMedia.media_item)).where(UserMedia.user_id == user_id)
        )
        entries = list(result.scalars().all())
    except SQLAlchemyError as exc:
        logger.error("Failed to load library for stats user=%s: %s", user_id, exc)
        return empty_stats(now)

    completed = [e for e in entries if e.status == MediaStatus.COMPLETED]
    watching = [e for e in entries if e.status == MediaStatus.WATCHING]
    logger.debug(
        "Stats for user=%s: %d entries, %d completed, %d watching", user_id, len(entries), len(completed), len(watching)
    )

    genre_counts: Counter[str] = Counter()
    for entry in completed + watching:
        genre_counts.update(entry.media_item.genres or [])
    # Counter.most_common keeps first-seen order for ties.
    genre_distribution = [NamedValue(name=name, value=value) for name, value in genre_counts.most_common(TOP_GENRES)]

    window = month_window(now)
    activity = {key: MonthActivity(name=calendar.month_abbr[key[1]]) for key in window}
    hours_by_month: dict[MonthKey, float] = {key: 0.0 for key in window}

    total_minutes = 0
    movie_minutes = tv_minutes = 0
    episodes_watched = pages_read = 0
    by_type: dict[MediaType, list[UserMedia]] = {kind: [] for kind in MediaType}

    for entry in completed:
        media = entry.media_item
        by_type[media.type].append(entry)
        minutes = completed_minutes(media)
        if media.type == MediaType.MOVIE:
            movie_minutes += minutes
        elif media.type == MediaType.TV:
            tv_minutes += minutes
            episodes_watched += media.number_of_episodes or 0
        elif media.type == MediaType.BOOK:
            pages_read += media.total_pages or entry.current_page or DEFAULT_BOOK_PAGES
        total_minutes += minutes
        completed_at = ensure_timezone(entry.completed_at)
        if completed_at and _month_key(completed_at) in hours_by_month:
            hours_by_month[_month_key(completed_at)] += minutes / 60

    for entry in watching:
        media = entry.media_item
        if media.type == MediaType.BOOK:
            pages_read += entry.current_page or 0
            continue
        minutes, episodes = watching_progress(entry, media)
        if media.type == MediaType.MOVIE:
            movie_minutes += minutes
        else:
            tv_minutes += minutes
            episodes_watched += episodes
        total_minutes += minutes

    for entry in entries:
        if entry.status == MediaStatus.COMPLETED and entry.completed_at:
            stamp = ensure_timezone(entry.completed_at)
        else:
            stamp = ensure_timezone(entry.created_at) or now
        bucket = activity.get(_month_key(stamp))
        if bucket is None:
            continue
        bucket.total += 1
        if entry.status is not None:
            setattr(bucket, entry.status.value, getattr(bucket, entry.status.value) + 1)

    return UserStats(
        total_completed=len(completed),
        average_rating=_average(_rated(completed)),
        genre_distribution=genre_distribution,
        completed_over_time=[activity[key] for key in window],
        total_watch_hours=total_minutes // 60,
        total_watch_minutes=total_minutes % 60,
        watch_hours_by_month=[
            MonthHours(month=calendar.month_abbr[key[1]], hours=round(hours_by_month[key])) for key in window
        ],
        movie_stats=MovieStats(
            completed=len(by_type[MediaType.MOVIE]),
            watch_hours=movie_minutes // 60,
            avg_rating=_average(_rated(by_type[MediaType.MOVIE])),
        ),
        tv_stats=TvStats(
            completed=len(by_type[MediaType.TV]),
            watch_hours=tv_minutes // 60,
            episodes_watched=episodes_watched,
            avg_rating=_average(_rated(by_type[MediaType.TV])),
        ),
        book_stats=BookStats(
            completed=len(by_type[MediaType.BOOK]),
            pages_read=pages_read,
            avg_rating=_average(_rated(by_type[MediaType.BOOK])),
        ),
    )
