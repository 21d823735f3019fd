"""Admin-only user management: create, list, role/status changes, resets, deletion."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from wakehub.api.auth import require_admin
from wakehub.core.database import get_db
from wakehub.schemas.auth import CurrentUser, MessageResponse, UserResponse
from wakehub.schemas.users import (
    AdminResetPasswordRequest,
    AdminResetPasswordResponse,
    CreateUserRequest,
    CreateUserResponse,
    UpdateRoleRequest,
    UpdateStatusRequest,
)
from wakehub.services import accounts

router = APIRouter()


def _not_found(e: accounts.UserNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


@router.get("", response_model=list[UserResponse])
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> list[UserResponse]:
    """List all users (admin only)."""
    return [UserResponse.model_validate(u) for u in accounts.list_users(db)]


@router.post("", response_model=CreateUserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    body: CreateUserRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> CreateUserResponse:
    """
    Create a user with a generated temporary password (returned once).
    The user must change it after logging in.
    """
    try:
        user, password = accounts.create_user(db, body.username)
    except accounts.UsernameTakenError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return CreateUserResponse(
        message="User created successfully",
        user=UserResponse.model_validate(user),
        password=password,
    )


@router.put("/{user_id}/role", response_model=UserResponse)
def update_role(
    user_id: int,
    body: UpdateRoleRequest,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    """Change a user's role. Admins cannot change their own role."""
    try:
        user = accounts.set_role(db, admin.id, user_id, body.role)
    except accounts.UserNotFoundError as e:
        raise _not_found(e)
    return UserResponse.model_validate(user)


@router.put("/{user_id}/status", response_model=UserResponse)
def update_status(
    user_id: int,
    body: UpdateStatusRequest,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    """Enable or disable a user. Takes effect on their next request."""
    try:
        user = accounts.set_disabled(db, admin.id, user_id, body.is_disabled)
    except accounts.UserNotFoundError as e:
        raise _not_found(e)
    return UserResponse.model_validate(user)


@router.post("/{user_id}/reset-password", response_model=AdminResetPasswordResponse)
def reset_password(
    user_id: int,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    body: AdminResetPasswordRequest | None = None,
) -> AdminResetPasswordResponse:
    """Reset a user's password; a password is generated when none is supplied."""
    new_password = body.new_password if body is not None else None
    try:
        _, generated = accounts.admin_reset_password(db, user_id, new_password)
    except accounts.UserNotFoundError as e:
        raise _not_found(e)
    return AdminResetPasswordResponse(
        message="Password reset successfully",
        password=generated,
    )


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Delete a user and their refresh tokens. Admins cannot delete themselves."""
    try:
        accounts.delete_user(db, admin.id, user_id)
    except accounts.UserNotFoundError as e:
        raise _not_found(e)
    return MessageResponse(message="User deleted successfully")
