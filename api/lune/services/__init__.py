from . import (
    collection_service,
    follow_service,
    library_service,
    media_service,
    review_service,
    stats_service,
    user_service,
)

__all__ = [
    "collection_service",
    "follow_service",
    "library_service",
    "media_service",
    "review_service",
    "stats_service",
    "user_service",
]
"""Service-layer helpers for API operations."""
