"""Custom list request/response schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from lune.models.media import MediaType
from lune.schema.base import CatalogModel, ORMModel


class CustomListCreate(BaseModel):
    """Payload for creating a list."""
    name: str = Field(max_length=255)


class CustomListUpdate(BaseModel):
    """Payload for renaming a list or editing its description."""
    name: str = Field(max_length=255)
    description: str | None = None


class CustomListRead(ORMModel):
    """List metadata returned by the API."""
    id: UUID
    name: str
    description: str | None = None
    created_at: datetime


class ListItemRead(CatalogModel):
    """Catalog entry inside a list, annotated with the owner's favourite flag."""
    id: str
    title: str | None = None
    type: MediaType
    cover_image: str | None = None
    author_or_director: str | None = None
    year: int | None = None
    genres: list[str] = Field(default_factory=list)
    is_favourite: bool = False


class CustomListDetail(BaseModel):
    """A list and the catalog entries it contains."""
    custom_list: CustomListRead
    items: list[ListItemRead]
