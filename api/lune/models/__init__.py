"""SQLAlchemy ORM models for the Lune API."""

from lune.models.collection import CustomList, CustomListItem
from lune.models.media import MediaItem, MediaStatus, MediaType, UserMedia
from lune.models.review import Review
from lune.models.user import User, UserFollow

__all__ = [
    "CustomList",
    "CustomListItem",
    "MediaItem",
    "MediaStatus",
    "MediaType",
    "Review",
    "User",
    "UserFollow",
    "UserMedia",
]
