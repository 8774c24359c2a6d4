"""Aggregated consumption statistics schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class NamedValue(BaseModel):
    """A labelled count, used for genre distributions."""
    name: str
    value: int


class MonthActivity(BaseModel):
    """Library activity for one month, broken down by status."""
    name: str
    total: int = 0
    completed: int = 0
    watching: int = 0
    plan_to_watch: int = 0
    on_hold: int = 0
    dropped: int = 0


class MonthHours(BaseModel):
    """Hours of completed media for one month."""
    month: str
    hours: int = 0


class MovieStats(BaseModel):
    completed: int = 0
    watch_hours: int = 0
    avg_rating: float = 0


class TvStats(BaseModel):
    completed: int = 0
    watch_hours: int = 0
    episodes_watched: int = 0
    avg_rating: float = 0


class BookStats(BaseModel):
    completed: int = 0
    pages_read: int = 0
    avg_rating: float = 0


class UserStats(BaseModel):
    """Everything the stats page renders."""
    total_completed: int = 0
    average_rating: float = 0
    genre_distribution: list[NamedValue] = Field(default_factory=list)
    completed_over_time: list[MonthActivity] = Field(default_factory=list)
    total_watch_hours: int = 0
    total_watch_minutes: int = 0
    watch_hours_by_month: list[MonthHours] = Field(default_factory=list)
    movie_stats: MovieStats = Field(default_factory=MovieStats)
    tv_stats: TvStats = Field(default_factory=TvStats)
    book_stats: BookStats = Field(default_factory=BookStats)
