"""Request dependencies: database sessions and caller identity.

Identity comes from a bearer token or the ``access_token`` cookie set at login.
"""

import uuid

from fastapi import Cookie, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from lune.core.config import settings
from lune.core.security import ACCESS_TOKEN_TYPE, decode_token
from lune.db.session import get_session
from lune.models.user import User
from lune.services import user_service

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_prefix}/auth/login", auto_error=False)


async def get_db() -> AsyncSession:
    async for session in get_session():
        yield session


def get_access_token(
    token: str | None = Depends(oauth2_scheme),
    access_token_cookie: str | None = Cookie(default=None, alias="access_token"),
) -> str | None:
    """Bearer header wins over the cookie."""
    return token or access_token_cookie


async def _user_for_token(session: AsyncSession, token: str) -> User | None:
    payload = decode_token(token)
    if not payload or payload.get("type") != ACCESS_TOKEN_TYPE:
        return None
    return await user_service.get_user_by_id(session, payload.get("sub"))


async def get_current_user(
    session: AsyncSession = Depends(get_db),
    token: str | None = Depends(get_access_token),
) -> User:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    user = await _user_for_token(session, token)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return user


async def get_optional_current_user(
    session: AsyncSession = Depends(get_db),
    token: str | None = Depends(get_access_token),
) -> User | None:
    """Anonymous callers, and callers with stale tokens, resolve to ``None``."""
    if not token:
        return None
    return await _user_for_token(session, token)


async def get_optional_user_id(user: User | None = Depends(get_optional_current_user)) -> uuid.UUID | None:
    return user.id if user else None
