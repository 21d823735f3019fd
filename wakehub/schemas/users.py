"""Request/response schemas for admin user management."""

from typing import Literal

from pydantic import BaseModel, Field

from wakehub.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, USERNAME_MAX_LEN
from wakehub.schemas.auth import UserResponse


class CreateUserRequest(BaseModel):
    """New account; the server generates the temporary password."""

    username: str = Field(..., min_length=1, max_length=USERNAME_MAX_LEN, description="Username")


class CreateUserResponse(BaseModel):
    """Created user plus the one-time temporary password."""

    message: str
    user: UserResponse
    password: str


class UpdateRoleRequest(BaseModel):
    role: Literal["user", "admin"]


class UpdateStatusRequest(BaseModel):
    is_disabled: bool


class AdminResetPasswordRequest(BaseModel):
    """Admin reset; omit new_password to have one generated."""

    new_password: str | None = Field(
        default=None, min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN
    )


class AdminResetPasswordResponse(BaseModel):
    """password is only present when the server generated it."""

    message: str
    password: str | None = None
