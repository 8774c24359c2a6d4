from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from lune.api.deps import get_db
from lune.core.config import settings
from lune.core.security import create_access_token
from lune.schema.auth import TokenResponse
from lune.schema.user import UserCreate, UserLogin, UserRead
from lune.services import user_service

router = APIRouter()

ACCESS_COOKIE_NAME = "access_token"


def set_auth_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        ACCESS_COOKIE_NAME,
        access_token,
        max_age=settings.access_token_expires_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=settings.environment.lower() == "production",
        path="/",
    )


def _token_response(user: UserRead) -> TokenResponse:
    return TokenResponse(access_token=create_access_token(str(user.id)), user=user)


@router.post("/register", response_model=TokenResponse)
async def register(payload: UserCreate, response: Response, session: AsyncSession = Depends(get_db)) -> TokenResponse:
    user = await user_service.create_user(
        session, email=payload.email, password=payload.password, display_name=payload.display_name
    )
    token = _token_response(UserRead.model_validate(user))
    set_auth_cookie(response, token.access_token)
    return token


@router.post("/login", response_model=TokenResponse)
async def login(payload: UserLogin, response: Response, session: AsyncSession = Depends(get_db)) -> TokenResponse:
    user = await user_service.authenticate_user(session, payload.email, payload.password)
    token = _token_response(UserRead.model_validate(user))
    set_auth_cookie(response, token.access_token)
    return token


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(response: Response) -> Response:
    response.delete_cookie(ACCESS_COOKIE_NAME, path="/")
    response.status_code = status.HTTP_204_NO_CONTENT
    return response
