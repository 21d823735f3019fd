"""Login, token refresh/logout, self-service password change, and the auth gate.

The gate is two dependencies: get_current_user (valid bearer token whose
account still exists and is not disabled) and require_admin (the same, plus
role == 'admin'). The token check and the live account check are separate
steps so the latter can be swapped or cached independently.
"""

import logging
from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wakehub.core.config import get_settings
from wakehub.core.database import get_db
from wakehub.core.errors import AuthError, AuthErrorKind
from wakehub.core.tokens import AccessClaims, AccessTokenIssuer, InvalidTokenError
from wakehub.models import User
from wakehub.models.user import ROLE_ADMIN
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
from wakehub.services import accounts
from wakehub.services.refresh_tokens import (
    RefreshTokenError,
    RefreshTokenExpiredError,
    RefreshTokenLedger,
)

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_token_issuer(request: Request) -> AccessTokenIssuer:
    """Dependency: the issuer constructed at application startup."""
    return request.app.state.token_issuer


def decode_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    issuer: Annotated[AccessTokenIssuer, Depends(get_token_issuer)],
) -> AccessClaims:
    """First check: a well-formed Bearer header carrying a valid, unexpired token."""
    if credentials is None or not credentials.credentials:
        raise AuthError(AuthErrorKind.MISSING_CREDENTIALS)
    try:
        return issuer.validate(credentials.credentials)
    except InvalidTokenError:
        raise AuthError(AuthErrorKind.INVALID_TOKEN)


def check_account_status(db: Session, claims: AccessClaims) -> User:
    """Second check: the account behind the claims still exists under the same name and is enabled."""
    try:
        user = db.get(User, claims.user_id)
    except SQLAlchemyError:
        logger.exception("Account status lookup failed", extra={"user_id": claims.user_id})
        raise AuthError(AuthErrorKind.DATABASE_ERROR)
    if user is None or user.username != claims.subject:
        raise AuthError(AuthErrorKind.INVALID_TOKEN)
    if user.is_disabled:
        raise AuthError(AuthErrorKind.ACCOUNT_DISABLED)
    return user


def get_current_user(
    claims: Annotated[AccessClaims, Depends(decode_bearer_token)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser:
    """
    Dependency: require a valid Bearer JWT for a live, enabled account.
    Role comes from the stored account, so a demotion applies on the next request.
    """
    user = check_account_status(db, claims)
    return CurrentUser(id=user.id, username=user.username, role=user.role)


def require_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency: require authenticated user with role 'admin'. Raises 403 for non-admin."""
    if current_user.role != ROLE_ADMIN:
        raise AuthError(AuthErrorKind.FORBIDDEN)
    return current_user


def _issue_pair(
    db: Session,
    issuer: AccessTokenIssuer,
    user: User,
    refresh_ttl: timedelta,
) -> tuple[str, str]:
    access_token = issuer.issue(user.id, user.username, user.role)
    refresh_token = RefreshTokenLedger(db).issue(user.id, refresh_ttl)
    return access_token, refresh_token


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    issuer: Annotated[AccessTokenIssuer, Depends(get_token_issuer)],
) -> LoginResponse:
    """
    Authenticate with username and password; returns an access/refresh token pair.
    Include the access token in the Authorization header as: Bearer <access_token>
    """
    try:
        user = accounts.authenticate(db, body.username, body.password)
    except accounts.AccountDisabledError:
        raise AuthError(AuthErrorKind.ACCOUNT_DISABLED)
    except accounts.InvalidCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)

    settings = get_settings()
    days = (
        settings.REFRESH_TOKEN_REMEMBER_DAYS
        if body.remember_me
        else settings.REFRESH_TOKEN_SESSION_DAYS
    )
    access_token, refresh_token = _issue_pair(db, issuer, user, timedelta(days=days))
    return LoginResponse(
        message="Login successful",
        user=UserResponse.model_validate(user),
        access_token=access_token,
        refresh_token=refresh_token,
    )


@router.post("/refresh", response_model=TokenPairResponse)
def refresh(
    body: RefreshRequest,
    db: Annotated[Session, Depends(get_db)],
    issuer: Annotated[AccessTokenIssuer, Depends(get_token_issuer)],
) -> TokenPairResponse:
    """
    Exchange a refresh token for a new pair. The presented token is consumed.
    The new refresh token always gets the long (remember-me) lifetime.
    """
    try:
        user_id = RefreshTokenLedger(db).redeem(body.refresh_token)
    except RefreshTokenError as e:
        reason = "expired" if isinstance(e, RefreshTokenExpiredError) else "invalid"
        logger.info("Refresh rejected", extra={"reason": reason})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        )

    user = db.get(User, user_id)
    if user is None:
        raise AuthError(AuthErrorKind.INVALID_TOKEN)
    if user.is_disabled:
        raise AuthError(AuthErrorKind.ACCOUNT_DISABLED)

    ttl = timedelta(days=get_settings().REFRESH_TOKEN_REMEMBER_DAYS)
    access_token, refresh_token = _issue_pair(db, issuer, user, ttl)
    return TokenPairResponse(access_token=access_token, refresh_token=refresh_token)


@router.post("/logout", response_model=MessageResponse)
def logout(
    body: RefreshRequest,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Revoke a refresh token. Always succeeds, even for unknown tokens."""
    RefreshTokenLedger(db).revoke(body.refresh_token)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
def me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    """Return the current user's projection."""
    try:
        user = accounts.get_user(db, current_user.id)
    except accounts.UserNotFoundError:
        raise AuthError(AuthErrorKind.INVALID_TOKEN)
    return UserResponse.model_validate(user)


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Change own password; requires the current password. Clears force_password_change."""
    try:
        user = accounts.get_user(db, current_user.id)
        accounts.change_password(db, user, body.old_password, body.new_password)
    except accounts.UserNotFoundError:
        raise AuthError(AuthErrorKind.INVALID_TOKEN)
    except accounts.InvalidCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)
    return MessageResponse(message="Password changed successfully")
