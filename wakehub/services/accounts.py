"""Account lifecycle: creation, login state, password changes, admin actions.

Flags on a user are independent: force_password_change does not block
login (the user logs in to change the password); is_disabled blocks login
and every authenticated request until an admin clears it.
"""

import logging
from datetime import datetime, timezone
from functools import lru_cache

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wakehub.core.errors import AuthError, AuthErrorKind
from wakehub.core.security import (
    generate_password,
    hash_password,
    normalize_username,
    verify_password,
)
from wakehub.models import User
from wakehub.models.user import ROLE_ADMIN, ROLE_USER, ROLES

logger = logging.getLogger(__name__)


class AccountError(Exception):
    """Base error for account operations; message is safe to return to clients."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UserNotFoundError(AccountError):
    def __init__(self) -> None:
        super().__init__("User not found")


class UsernameTakenError(AccountError):
    def __init__(self) -> None:
        super().__init__("Username already exists")


class InvalidCredentialsError(AccountError):
    """Unknown user or wrong password; deliberately indistinguishable."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class AccountDisabledError(AccountError):
    def __init__(self) -> None:
        super().__init__("Account disabled")


@lru_cache
def _dummy_digest() -> str:
    # Verified against when the username is unknown so both paths pay the hash cost.
    return hash_password(generate_password(32))


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise UserNotFoundError()
    return user


def get_user_by_username(db: Session, username: str) -> User | None:
    return (
        db.query(User)
        .filter(User.username == normalize_username(username))
        .first()
    )


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.id).all()


def create_user(
    db: Session,
    username: str,
    role: str = ROLE_USER,
    password: str | None = None,
) -> tuple[User, str]:
    """
    Create an account with a temporary password and force_password_change set.
    Returns (user, temporary_password). Raises UsernameTakenError on a duplicate.
    """
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")
    username = normalize_username(username)
    if not username:
        raise ValueError("Username must not be empty")
    if get_user_by_username(db, username) is not None:
        raise UsernameTakenError()

    temp_password = password or generate_password()
    user = User(
        username=username,
        password_hash=hash_password(temp_password),
        role=role,
        force_password_change=True,
        failed_login_attempts=0,
        is_disabled=False,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent create of the same username.
        db.rollback()
        raise UsernameTakenError() from e
    db.refresh(user)
    logger.info("User created", extra={"user_id": user.id, "role": role})
    return user, temp_password


def authenticate(
    db: Session,
    username: str,
    password: str,
    now: datetime | None = None,
) -> User:
    """
    Check credentials and record the attempt.

    Disabled accounts are rejected before the password is checked. A wrong
    password increments failed_login_attempts; a correct one resets it and
    stamps last_login_at.
    """
    user = get_user_by_username(db, username)
    if user is None:
        verify_password(password, _dummy_digest())
        logger.warning("Login failed", extra={"reason": "unknown_user"})
        raise InvalidCredentialsError()

    if user.is_disabled:
        logger.warning("Login failed", extra={"user_id": user.id, "reason": "disabled"})
        raise AccountDisabledError()

    if not verify_password(password, user.password_hash):
        # Single UPDATE ... SET failed_login_attempts = failed_login_attempts + 1
        user.failed_login_attempts = User.failed_login_attempts + 1
        db.commit()
        logger.warning("Login failed", extra={"user_id": user.id, "reason": "wrong_password"})
        raise InvalidCredentialsError()

    user.failed_login_attempts = 0
    user.last_login_at = now or datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    logger.info("Login succeeded", extra={"user_id": user.id})
    return user


def change_password(db: Session, user: User, old_password: str, new_password: str) -> User:
    """Self-service change: re-prove the current password, then clear force_password_change."""
    if not verify_password(old_password, user.password_hash):
        raise InvalidCredentialsError()
    user.password_hash = hash_password(new_password)
    user.force_password_change = False
    db.commit()
    db.refresh(user)
    logger.info("Password changed", extra={"user_id": user.id})
    return user


def admin_reset_password(
    db: Session,
    user_id: int,
    new_password: str | None = None,
) -> tuple[User, str | None]:
    """
    Replace a user's password without the old one.

    Clears the failure counter and last_login_at and re-imposes
    force_password_change. Returns (user, generated_password) where the
    second item is None when new_password was supplied.
    """
    user = get_user(db, user_id)
    generated = None
    if new_password is None:
        generated = generate_password()
        new_password = generated
    user.password_hash = hash_password(new_password)
    user.failed_login_attempts = 0
    user.last_login_at = None
    user.force_password_change = True
    db.commit()
    db.refresh(user)
    logger.info("Password reset by admin", extra={"user_id": user.id})
    return user, generated


def _guard_self_action(actor_id: int, target_id: int, message: str) -> None:
    if actor_id == target_id:
        raise AuthError(AuthErrorKind.FORBIDDEN, message)


def set_role(db: Session, actor_id: int, user_id: int, role: str) -> User:
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")
    _guard_self_action(actor_id, user_id, "You cannot change your own role")
    user = get_user(db, user_id)
    user.role = role
    db.commit()
    db.refresh(user)
    logger.info("Role updated", extra={"user_id": user.id, "role": role, "actor_id": actor_id})
    return user


def set_disabled(db: Session, actor_id: int, user_id: int, is_disabled: bool) -> User:
    _guard_self_action(actor_id, user_id, "You cannot change your own account status")
    user = get_user(db, user_id)
    user.is_disabled = is_disabled
    db.commit()
    db.refresh(user)
    logger.info(
        "Account status updated",
        extra={"user_id": user.id, "is_disabled": is_disabled, "actor_id": actor_id},
    )
    return user


def delete_user(db: Session, actor_id: int, user_id: int) -> None:
    """Delete a user; their refresh tokens go with them."""
    _guard_self_action(actor_id, user_id, "You cannot delete your own account")
    user = get_user(db, user_id)
    db.delete(user)
    db.commit()
    logger.info("User deleted", extra={"user_id": user_id, "actor_id": actor_id})


def bootstrap_admin(
    db: Session,
    username: str,
    password: str | None = None,
) -> tuple[User, str, bool]:
    """
    Upsert the bootstrap administrator.

    A missing account is created as admin; an existing one is promoted,
    re-enabled and given the new password. Either way the password is
    temporary (force_password_change=True). Returns (user, password, created).
    """
    user = get_user_by_username(db, username)
    if user is None:
        user, temp_password = create_user(db, username, role=ROLE_ADMIN, password=password)
        return user, temp_password, True

    temp_password = password or generate_password()
    user.role = ROLE_ADMIN
    user.password_hash = hash_password(temp_password)
    user.force_password_change = True
    user.is_disabled = False
    user.failed_login_attempts = 0
    db.commit()
    db.refresh(user)
    logger.info("Bootstrap admin updated", extra={"user_id": user.id})
    return user, temp_password, False
