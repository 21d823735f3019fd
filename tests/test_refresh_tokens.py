"""Tests for wakehub.services.refresh_tokens: single-use, expiring, hashed refresh tokens."""

import hashlib
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from wakehub.models import RefreshToken
from wakehub.services.refresh_tokens import (
    RefreshTokenExpiredError,
    RefreshTokenInvalidError,
    RefreshTokenLedger,
    hash_refresh_token,
)
from tests.support import add_user, make_session_factory

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class LedgerTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine, SessionTesting = make_session_factory()
        self.db = SessionTesting()
        self.user = add_user(self.db, "alice")
        self.ledger = RefreshTokenLedger(self.db)

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()

    def _rows(self) -> list[RefreshToken]:
        return self.db.query(RefreshToken).all()


class TestIssue(LedgerTestCase):
    def test_stores_only_digest(self) -> None:
        token = self.ledger.issue(self.user.id, timedelta(days=1), now=NOW)
        self.assertGreaterEqual(len(token), 64)
        rows = self._rows()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].token_hash, hashlib.sha256(token.encode()).hexdigest())
        self.assertNotEqual(rows[0].token_hash, token)
        self.assertEqual(rows[0].user_id, self.user.id)
        expires_at = rows[0].expires_at.replace(tzinfo=timezone.utc)
        self.assertEqual(expires_at, NOW + timedelta(days=1))

    def test_tokens_are_unique(self) -> None:
        tokens = {self.ledger.issue(self.user.id, timedelta(days=1)) for _ in range(5)}
        self.assertEqual(len(tokens), 5)
        self.assertEqual(len(self._rows()), 5)


class TestRedeem(LedgerTestCase):
    def test_redeem_returns_owner_and_consumes(self) -> None:
        token = self.ledger.issue(self.user.id, timedelta(days=1), now=NOW)
        self.assertEqual(self.ledger.redeem(token, now=NOW + timedelta(hours=1)), self.user.id)
        self.assertEqual(self._rows(), [])

    def test_second_redeem_is_invalid(self) -> None:
        token = self.ledger.issue(self.user.id, timedelta(days=1), now=NOW)
        self.ledger.redeem(token, now=NOW)
        with self.assertRaises(RefreshTokenInvalidError):
            self.ledger.redeem(token, now=NOW)

    def test_unknown_token_is_invalid(self) -> None:
        with self.assertRaises(RefreshTokenInvalidError):
            self.ledger.redeem("never-issued")

    def test_expired_token_is_deleted(self) -> None:
        token = self.ledger.issue(self.user.id, timedelta(days=1), now=NOW)
        with self.assertRaises(RefreshTokenExpiredError):
            self.ledger.redeem(token, now=NOW + timedelta(days=1, seconds=1))
        self.assertEqual(self._rows(), [])
        with self.assertRaises(RefreshTokenInvalidError):
            self.ledger.redeem(token, now=NOW)

    def test_lost_race_is_invalid(self) -> None:
        """A row read but already deleted by a concurrent redemption is not honoured."""
        row = MagicMock()
        row.user_id = 1
        row.expires_at = NOW + timedelta(days=1)
        session = MagicMock()
        session.query.return_value.filter.return_value.first.return_value = row
        session.query.return_value.filter.return_value.delete.return_value = 0
        with self.assertRaises(RefreshTokenInvalidError):
            RefreshTokenLedger(session).redeem("token", now=NOW)
        session.commit.assert_called_once()


class TestRevokeAndPurge(LedgerTestCase):
    def test_revoke_is_idempotent(self) -> None:
        token = self.ledger.issue(self.user.id, timedelta(days=1))
        self.ledger.revoke(token)
        self.ledger.revoke(token)
        self.ledger.revoke("never-issued")
        with self.assertRaises(RefreshTokenInvalidError):
            self.ledger.redeem(token)

    def test_purge_removes_only_expired(self) -> None:
        self.ledger.issue(self.user.id, timedelta(days=1), now=NOW - timedelta(days=3))
        self.ledger.issue(self.user.id, timedelta(days=1), now=NOW - timedelta(days=2))
        live = self.ledger.issue(self.user.id, timedelta(days=30), now=NOW)
        self.assertEqual(self.ledger.purge_expired(now=NOW), 2)
        rows = self._rows()
        self.assertEqual([r.token_hash for r in rows], [hash_refresh_token(live)])
        self.assertEqual(self.ledger.purge_expired(now=NOW), 0)

    def test_user_deletion_cascades(self) -> None:
        self.ledger.issue(self.user.id, timedelta(days=1))
        self.ledger.issue(self.user.id, timedelta(days=1))
        self.db.delete(self.user)
        self.db.commit()
        self.assertEqual(self._rows(), [])
