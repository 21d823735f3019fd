"""JWT access token issuance and validation.

The issuer is constructed explicitly from settings. When no JWT_SECRET is
configured it draws a random secret for the lifetime of the process, so
tokens issued before a restart stop validating after it.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from wakehub.core.config import Settings

logger = logging.getLogger(__name__)


class InvalidTokenError(Exception):
    """Token is malformed, tampered with, signed with another key, or expired."""

    def __init__(self, message: str = "Invalid token") -> None:
        self.message = message
        super().__init__(message)


@dataclass(frozen=True)
class AccessClaims:
    """Claims carried by an access token: sub (username), uid, role, exp."""

    subject: str
    user_id: int
    role: str
    expires_at: datetime


class AccessTokenIssuer:
    """Creates and validates short-lived HMAC-signed access tokens."""

    def __init__(
        self,
        secret: str | None,
        algorithm: str = "HS256",
        default_ttl: timedelta = timedelta(minutes=15),
    ) -> None:
        self.ephemeral = not secret
        if self.ephemeral:
            logger.warning(
                "JWT_SECRET not set, using a random secret. "
                "Tokens will be invalid after restart."
            )
            secret = secrets.token_urlsafe(32)
        self._secret = secret
        self.algorithm = algorithm
        self.default_ttl = default_ttl

    def issue(
        self,
        user_id: int,
        username: str,
        role: str,
        ttl: timedelta | None = None,
    ) -> str:
        """Create a signed token whose claims expire after ttl (default_ttl if omitted)."""
        now = datetime.now(UTC)
        expire = now + (ttl if ttl is not None else self.default_ttl)
        payload: dict[str, Any] = {
            "sub": username,
            "uid": user_id,
            "role": role,
            "exp": expire,
            "iat": now,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def validate(self, token: str) -> AccessClaims:
        """
        Verify signature and expiry and return the claims.
        Raises InvalidTokenError for every failure, with the same message.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub", "uid", "role"]},
            )
        except jwt.PyJWTError as e:
            raise InvalidTokenError() from e

        sub = payload.get("sub")
        uid = payload.get("uid")
        role = payload.get("role")
        if not isinstance(sub, str) or not isinstance(role, str):
            raise InvalidTokenError()
        if not isinstance(uid, int) or isinstance(uid, bool):
            raise InvalidTokenError()
        return AccessClaims(
            subject=sub,
            user_id=uid,
            role=role,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
        )


def build_token_issuer(settings: Settings) -> AccessTokenIssuer:
    """Construct the issuer from settings (ephemeral secret when JWT_SECRET is unset)."""
    secret = settings.JWT_SECRET.get_secret_value() if settings.JWT_SECRET else None
    return AccessTokenIssuer(
        secret,
        algorithm=settings.JWT_ALGORITHM,
        default_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )

