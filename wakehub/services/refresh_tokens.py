"""Refresh token ledger: issue, redeem (single use), revoke and purge.

Tokens are opaque random strings; only their SHA-256 digest is persisted.
Redemption deletes the row, and the delete's row count decides which of two
concurrent redemptions wins.
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from wakehub.models import RefreshToken

logger = logging.getLogger(__name__)

# 48 random bytes -> 64 URL-safe characters
REFRESH_TOKEN_BYTES = 48


class RefreshTokenError(Exception):
    """Base error for refresh token redemption."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class RefreshTokenInvalidError(RefreshTokenError):
    """Token unknown, already redeemed, or revoked."""

    def __init__(self) -> None:
        super().__init__("Invalid refresh token")


class RefreshTokenExpiredError(RefreshTokenError):
    """Token found but past its expiry; the row has been deleted."""

    def __init__(self) -> None:
        super().__init__("Refresh token expired")


def hash_refresh_token(token: str) -> str:
    """Lookup key for a presented token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class RefreshTokenLedger:
    """Persistent store of outstanding refresh tokens, bound to one DB session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def issue(self, user_id: int, ttl: timedelta, now: datetime | None = None) -> str:
        """Create and persist a token for user_id valid for ttl; return the plaintext token."""
        now = now or datetime.now(timezone.utc)
        token = secrets.token_urlsafe(REFRESH_TOKEN_BYTES)
        self.session.add(
            RefreshToken(
                token_hash=hash_refresh_token(token),
                user_id=user_id,
                expires_at=now + ttl,
            )
        )
        self.session.commit()
        return token

    def redeem(self, token: str, now: datetime | None = None) -> int:
        """
        Consume a token and return its owner's user id.

        Raises RefreshTokenInvalidError if the token is unknown or was consumed
        concurrently, RefreshTokenExpiredError if it had expired (the row is
        deleted either way).
        """
        now = now or datetime.now(timezone.utc)
        token_hash = hash_refresh_token(token)
        row = (
            self.session.query(RefreshToken)
            .filter(RefreshToken.token_hash == token_hash)
            .first()
        )
        if row is None:
            raise RefreshTokenInvalidError()

        user_id = row.user_id
        expired = _as_utc(row.expires_at) < now
        self.session.expunge(row)

        deleted = (
            self.session.query(RefreshToken)
            .filter(RefreshToken.token_hash == token_hash)
            .delete(synchronize_session=False)
        )
        self.session.commit()

        if deleted == 0:
            # Another request redeemed it between our read and delete.
            raise RefreshTokenInvalidError()
        if expired:
            raise RefreshTokenExpiredError()
        return user_id

    def revoke(self, token: str) -> None:
        """Delete the token if present. Idempotent."""
        (
            self.session.query(RefreshToken)
            .filter(RefreshToken.token_hash == hash_refresh_token(token))
            .delete(synchronize_session=False)
        )
        self.session.commit()

    def purge_expired(self, now: datetime | None = None) -> int:
        """Delete every expired token; return how many were removed."""
        now = now or datetime.now(timezone.utc)
        deleted_count = (
            self.session.query(RefreshToken)
            .filter(RefreshToken.expires_at < now)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        if deleted_count > 0:
            logger.info(
                "Refresh token purge: cutoff=%s, tokens_deleted=%s",
                now.isoformat(),
                deleted_count,
            )
        return deleted_count
