"""API router composition for all route groups."""

from fastapi import APIRouter

from .routes import auth, library, lists, media, stats, users

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, tags=["users"])
api_router.include_router(library.router, prefix="/me/library", tags=["library"])
api_router.include_router(lists.router, prefix="/me", tags=["lists"])
api_router.include_router(stats.router, prefix="/me/stats", tags=["stats"])
api_router.include_router(media.router, prefix="/media", tags=["media"])
