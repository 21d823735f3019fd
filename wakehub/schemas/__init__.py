"""Pydantic request/response schemas."""

from wakehub.schemas.auth import (
    ChangePasswordRequest,
    CurrentUser,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshRequest,
    TokenPairResponse,
    UserResponse,
)
from wakehub.schemas.devices import (
    CreateDeviceRequest,
    DeviceResponse,
    UpdateDeviceRequest,
)
from wakehub.schemas.health import HealthResponse
from wakehub.schemas.users import (
    AdminResetPasswordRequest,
    AdminResetPasswordResponse,
    CreateUserRequest,
    CreateUserResponse,
    UpdateRoleRequest,
    UpdateStatusRequest,
)

__all__ = [
    "AdminResetPasswordRequest",
    "AdminResetPasswordResponse",
    "ChangePasswordRequest",
    "CreateDeviceRequest",
    "CreateUserRequest",
    "CreateUserResponse",
    "CurrentUser",
    "DeviceResponse",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "RefreshRequest",
    "TokenPairResponse",
    "UpdateDeviceRequest",
    "UpdateRoleRequest",
    "UpdateStatusRequest",
    "UserResponse",
]
