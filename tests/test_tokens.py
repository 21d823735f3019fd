"""Unit tests for wakehub.core.tokens: access token issue/validate and the ephemeral secret."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import jwt
from pydantic import SecretStr

from wakehub.core.tokens import (
    AccessTokenIssuer,
    InvalidTokenError,
    build_token_issuer,
)

SECRET = "token-test-secret-0123456789abcdefghij"


class TestIssueAndValidate(unittest.TestCase):
    def setUp(self) -> None:
        self.issuer = AccessTokenIssuer(SECRET)

    def test_round_trip_claims(self) -> None:
        before = datetime.now(UTC)
        token = self.issuer.issue(7, "alice", "admin", ttl=timedelta(minutes=5))
        claims = self.issuer.validate(token)
        self.assertEqual(claims.subject, "alice")
        self.assertEqual(claims.user_id, 7)
        self.assertEqual(claims.role, "admin")
        self.assertGreater(claims.expires_at, before + timedelta(minutes=4))
        self.assertLessEqual(claims.expires_at, before + timedelta(minutes=5, seconds=1))

    def test_default_ttl_used_when_omitted(self) -> None:
        issuer = AccessTokenIssuer(SECRET, default_ttl=timedelta(minutes=2))
        claims = issuer.validate(issuer.issue(1, "bob", "user"))
        remaining = claims.expires_at - datetime.now(UTC)
        self.assertLessEqual(remaining, timedelta(minutes=2))
        self.assertGreater(remaining, timedelta(minutes=1))


class TestInvalidTokens(unittest.TestCase):
    """Expired, tampered, foreign and malformed tokens fail the same way."""

    def setUp(self) -> None:
        self.issuer = AccessTokenIssuer(SECRET)

    def _message(self, token: str) -> str:
        with self.assertRaises(InvalidTokenError) as ctx:
            self.issuer.validate(token)
        return ctx.exception.message

    def test_expired_is_indistinguishable_from_tampered(self) -> None:
        expired = self.issuer.issue(1, "alice", "user", ttl=timedelta(seconds=-10))
        valid = self.issuer.issue(1, "alice", "user")
        header, payload, signature = valid.split(".")
        tampered = ".".join([header, payload, signature[::-1]])
        self.assertEqual(self._message(expired), "Invalid token")
        self.assertEqual(self._message(tampered), "Invalid token")

    def test_signed_with_other_secret(self) -> None:
        other = AccessTokenIssuer("another-secret-0123456789abcdefghijkl")
        self.assertEqual(self._message(other.issue(1, "alice", "user")), "Invalid token")

    def test_garbage(self) -> None:
        for token in ("", "abc", "a.b.c"):
            with self.subTest(token=token):
                self._message(token)

    def test_missing_uid_claim(self) -> None:
        token = jwt.encode(
            {"sub": "alice", "role": "user", "exp": datetime.now(UTC) + timedelta(minutes=1)},
            SECRET,
            algorithm="HS256",
        )
        self._message(token)

    def test_non_integer_uid_claim(self) -> None:
        token = jwt.encode(
            {
                "sub": "alice",
                "uid": "7",
                "role": "user",
                "exp": datetime.now(UTC) + timedelta(minutes=1),
            },
            SECRET,
            algorithm="HS256",
        )
        self._message(token)

    def test_unsigned_token_rejected(self) -> None:
        token = jwt.encode(
            {"sub": "alice", "uid": 1, "role": "admin", "exp": datetime.now(UTC) + timedelta(minutes=1)},
            None,
            algorithm="none",
        )
        self._message(token)


class TestEphemeralSecret(unittest.TestCase):
    """Without a configured secret the issuer draws a random one and warns."""

    def test_warns_and_generates_secret(self) -> None:
        with self.assertLogs("wakehub.core.tokens", level="WARNING") as logs:
            issuer = AccessTokenIssuer(None)
        self.assertIn("JWT_SECRET not set", logs.output[0])
        token = issuer.issue(1, "alice", "user")
        self.assertEqual(issuer.validate(token).subject, "alice")

    def test_each_process_secret_is_distinct(self) -> None:
        with self.assertLogs("wakehub.core.tokens", level="WARNING"):
            first = AccessTokenIssuer(None)
            second = AccessTokenIssuer(None)
        with self.assertRaises(InvalidTokenError):
            second.validate(first.issue(1, "alice", "user"))


class TestBuildTokenIssuer(unittest.TestCase):
    def test_uses_settings(self) -> None:
        settings = MagicMock()
        settings.JWT_SECRET = SecretStr(SECRET)
        settings.JWT_ALGORITHM = "HS512"
        settings.ACCESS_TOKEN_EXPIRE_MINUTES = 30
        issuer = build_token_issuer(settings)
        self.assertFalse(issuer.ephemeral)
        self.assertEqual(issuer.algorithm, "HS512")
        self.assertEqual(issuer.default_ttl, timedelta(minutes=30))
        token = issuer.issue(3, "carol", "user")
        self.assertEqual(AccessTokenIssuer(SECRET, algorithm="HS512").validate(token).user_id, 3)

    def test_missing_secret_falls_back_to_ephemeral(self) -> None:
        settings = MagicMock()
        settings.JWT_SECRET = None
        settings.JWT_ALGORITHM = "HS256"
        settings.ACCESS_TOKEN_EXPIRE_MINUTES = 15
        with self.assertLogs("wakehub.core.tokens", level="WARNING"):
            issuer = build_token_issuer(settings)
        self.assertTrue(issuer.ephemeral)
