"""Shared schema base classes for API responses."""

from typing import Any

from pydantic import BaseModel, field_validator


class ORMModel(BaseModel):
    """Base model that reads attributes from SQLAlchemy objects."""

    model_config = {"from_attributes": True}


class CatalogModel(ORMModel):
    """Catalog-backed response; stored ``NULL`` genre lists read as empty."""

    @field_validator("genres", mode="before", check_fields=False)
    @classmethod
    def _null_genres(cls, value: Any) -> Any:
        return value or []
