"""Import all models here for Alembic autogenerate."""

from lune.db.base_class import Base
from lune.models import (  # noqa: F401
    collection,
    media,
    review,
    user,
)

__all__ = ["Base"]
