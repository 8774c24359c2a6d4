"""Authentication-related request/response schemas."""

from pydantic import BaseModel

from lune.schema.user import UserRead


class TokenResponse(BaseModel):
    """Access token returned after register or login."""
    access_token: str
    token_type: str = "bearer"
    user: UserRead
