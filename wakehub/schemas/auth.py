"""Request/response schemas for auth endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from wakehub.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)


class UserResponse(BaseModel):
    """Public projection of a user. Never includes the password digest."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: Literal["user", "admin"]
    last_login_at: datetime | None = None
    force_password_change: bool
    is_disabled: bool


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(
        ..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN, description="Username"
    )
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")
    remember_me: bool = Field(
        default=False, description="Issue a long-lived refresh token (30 days instead of 1)"
    )


class LoginResponse(BaseModel):
    """User projection plus a fresh access/refresh token pair."""

    message: str
    user: UserResponse
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="Opaque single-use refresh token")
    token_type: str = Field(default="bearer", description="Token type")


class RefreshRequest(BaseModel):
    """Refresh token to redeem (or revoke, for logout)."""

    refresh_token: str = Field(..., min_length=1, max_length=512)


class TokenPairResponse(BaseModel):
    """Rotated token pair returned by POST /refresh."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class ChangePasswordRequest(BaseModel):
    """Self-service password change; the current password must be re-proven."""

    old_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class MessageResponse(BaseModel):
    message: str


class CurrentUser(BaseModel):
    """Authenticated identity, read from the stored account, for dependency injection."""

    id: int
    username: str
    role: str
