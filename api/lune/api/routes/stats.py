import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lune.api.deps import get_db, get_optional_user_id
from lune.schema.stats import UserStats
from lune.services import stats_service

router = APIRouter()


@router.get("", response_model=UserStats)
async def read_stats(
    viewer_id: uuid.UUID | None = Depends(get_optional_user_id),
    session: AsyncSession = Depends(get_db),
) -> UserStats:
    """Return consumption stats; anonymous callers get empty stats."""
    return await stats_service.get_user_stats(session, viewer_id)
