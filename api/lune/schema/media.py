"""Media-related schemas for catalog responses and library updates."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lune.models.media import MediaStatus, MediaType
from lune.schema.base import CatalogModel, ORMModel


class MediaItemRead(CatalogModel):
    """Catalog entry fields returned with library and list views."""
    id: str
    type: MediaType
    title: str | None = None
    cover_image: str | None = None
    author_or_director: str | None = None
    year: int | None = None
    genres: list[str] = Field(default_factory=list)
    runtime: int | None = None
    episode_runtime: int | None = None
    number_of_episodes: int | None = None
    number_of_seasons: int | None = None
    episodes_per_season: dict[int, int] | None = None
    total_pages: int | None = None


class MediaSummaryRead(ORMModel):
    """Upstream search/trending/detail result, optionally marked as a favourite."""
    id: str
    title: str
    type: MediaType
    cover_image: str | None = None
    author_or_director: str = ""
    description: str = ""
    genres: list[str] = Field(default_factory=list)
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


class AvailabilityRead(BaseModel):
    """A place where a media item can be watched or bought."""
    platform: str
    url: str


class LibraryUpdate(BaseModel):
    """Partial update for one (user, media) pair plus catalog metadata.

    Accepts camelCase or snake_case keys. A field counts as supplied only when
    it was sent with a non-null value, so an explicit ``isFavourite: false`` is
    an update while an omitted ``isFavourite`` leaves the stored flag alone.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    media_id: str | None = None
    media_type: MediaType

    title: str | None = None
    cover_image: str | None = None
    author_or_director: str | None = None
    year: int | None = None
    genres: list[str] = Field(default_factory=list)
    episode_runtime: int | None = Field(default=None, ge=0)
    total_episodes: int | None = Field(default=None, ge=0)
    number_of_seasons: int | None = Field(default=None, ge=0)
    episodes_per_season: dict[int, int] | None = None
    total_pages: int | None = Field(default=None, ge=0)

    status: MediaStatus | None = None
    rating: float | None = Field(default=None, ge=0, le=5, multiple_of=0.5)
    is_favourite: bool | None = None
    current_episode: int | None = Field(default=None, ge=1)
    current_season: int | None = Field(default=None, ge=1)
    current_page: int | None = Field(default=None, ge=1)

    def provided(self, field_name: str) -> bool:
        """Return True when the caller supplied a non-null value for the field."""
        return field_name in self.model_fields_set and getattr(self, field_name) is not None


class UserMediaRead(ORMModel):
    """A user's tracking state for one media item."""
    id: UUID
    user_id: UUID
    media_id: str
    status: MediaStatus | None = None
    rating: float | None = None
    is_favourite: bool = False
    current_episode: int | None = None
    current_season: int | None = None
    current_page: int | None = None
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class LibraryEntryRead(UserMediaRead):
    """Library record with its catalog entry attached."""
    media_item: MediaItemRead


class ActionResult(BaseModel):
    """Outcome of a library write: ``success`` or a user-facing ``error``."""
    success: bool = False
    error: str | None = None

    @classmethod
    def ok(cls) -> "ActionResult":
        return cls(success=True)

    @classmethod
    def failed(cls, message: str) -> "ActionResult":
        return cls(success=False, error=message)
