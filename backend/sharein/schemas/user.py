from pydantic import EmailStr, Field

from .base import CamelModel, UTCDateTime


class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)
    name: str | None = None


class UserLogin(CamelModel):
    email: str
    password: str


class RefreshRequest(CamelModel):
    refresh_token: str | None = None


class Token(CamelModel):
    token: str
    refresh_token: str | None = None


class UserResponse(CamelModel):
    id: str
    email: str
    name: str | None = None
    created_at: UTCDateTime


class TokenCheck(CamelModel):
    message: str
    user_id: str
