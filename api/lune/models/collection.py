"""Custom list (collection) models and their media membership rows."""

from __future__ import annotations

import typing
import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lune.db.base_class import Base
from lune.utils.datetime import utc_now

if typing.TYPE_CHECKING:  # pragma: no cover
    from lune.models.media import MediaItem
    from lune.models.user import User


class CustomList(Base):
    """User-owned named collection of catalog entries."""
    __tablename__ = "custom_lists"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_custom_lists_user_name"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    owner: Mapped["User"] = relationship(back_populates="custom_lists")
    items: Mapped[list["CustomListItem"]] = relationship(back_populates="custom_list", cascade="all, delete-orphan")


class CustomListItem(Base):
    """Membership of a catalog entry in one of a user's lists."""
    __tablename__ = "user_media_custom_lists"
    __table_args__ = (
        UniqueConstraint("user_id", "media_id", "custom_list_id", name="uq_user_media_custom_lists_member"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    media_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("media_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    custom_list_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("custom_lists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    custom_list: Mapped[CustomList] = relationship(back_populates="items")
    media_item: Mapped["MediaItem"] = relationship(back_populates="list_links")
