"""Media catalog and per-user library models."""

from __future__ import annotations

import enum
import typing
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lune.db.base_class import Base
from lune.utils.datetime import utc_now

JSON_COMPATIBLE = JSON().with_variant(JSONB, "postgresql")

if typing.TYPE_CHECKING:  # pragma: no cover
    from lune.models.collection import CustomListItem
    from lune.models.review import Review
    from lune.models.user import User


class MediaType(str, enum.Enum):
    """Supported media categories for catalog items."""
    BOOK = "book"
    MOVIE = "movie"
    TV = "tv"


class MediaStatus(str, enum.Enum):
    """Tracking statuses for a user's progress on a media item."""
    COMPLETED = "completed"
    WATCHING = "watching"
    PLAN_TO_WATCH = "plan_to_watch"
    ON_HOLD = "on_hold"
    DROPPED = "dropped"


EPISODIC_TYPES = frozenset({MediaType.TV})
PAGINATED_TYPES = frozenset({MediaType.BOOK})


class MediaItem(Base):
    """Catalog entry keyed by ``{type}-{externalApiId}``, shared by all users."""
    __tablename__ = "media_items"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    # Persist the enum values (lowercase) instead of names (uppercase) so they match the DB enum
    type: Mapped[MediaType] = mapped_column(
        Enum(MediaType, name="media_type", values_callable=lambda enum_cls: [e.value for e in enum_cls]),
        nullable=False,
    )
    title: Mapped[str | None] = mapped_column(String(500), index=True)
    cover_image: Mapped[str | None] = mapped_column(String(1024))
    author_or_director: Mapped[str | None] = mapped_column(String(500))
    year: Mapped[int | None] = mapped_column(Integer)
    genres: Mapped[list[str] | None] = mapped_column(JSON_COMPATIBLE, default=list)
    runtime: Mapped[int | None] = mapped_column(Integer)
    episode_runtime: Mapped[int | None] = mapped_column(Integer)
    number_of_episodes: Mapped[int | None] = mapped_column(Integer)
    number_of_seasons: Mapped[int | None] = mapped_column(Integer)
    episodes_per_season: Mapped[dict | None] = mapped_column(JSON_COMPATIBLE)
    total_pages: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    library_entries: Mapped[list["UserMedia"]] = relationship(back_populates="media_item", cascade="all, delete-orphan")
    list_links: Mapped[list["CustomListItem"]] = relationship(back_populates="media_item", cascade="all, delete-orphan")
    reviews: Mapped[list["Review"]] = relationship(back_populates="media_item", cascade="all, delete-orphan")


class UserMedia(Base):
    """One user's tracking state for one catalog entry."""
    __tablename__ = "user_media"
    __table_args__ = (
        UniqueConstraint("user_id", "media_id", name="uq_user_media_user_media"),
        CheckConstraint("rating IS NULL OR (rating > 0 AND rating <= 5)", name="rating_range"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    media_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("media_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[MediaStatus | None] = mapped_column(
        Enum(MediaStatus, name="media_status", values_callable=lambda enum_cls: [e.value for e in enum_cls]),
        nullable=True,
    )
    rating: Mapped[float | None] = mapped_column(Float)
    is_favourite: Mapped[bool] = mapped_column(default=False)
    current_episode: Mapped[int | None] = mapped_column(Integer)
    current_season: Mapped[int | None] = mapped_column(Integer)
    current_page: Mapped[int | None] = mapped_column(Integer)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    user: Mapped["User"] = relationship(back_populates="library")
    media_item: Mapped[MediaItem] = relationship(back_populates="library_entries")
