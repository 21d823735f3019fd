"""Tests for startup admin bootstrap, health check, and the CLI entrypoints."""

import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

from pydantic import SecretStr

from wakehub import token_cleanup
from wakehub.core.security import verify_password
from wakehub.core.tokens import AccessTokenIssuer
from wakehub.main import app, run_admin_bootstrap
from wakehub.models import RefreshToken, User
from wakehub.scripts import create_user
from wakehub.services.refresh_tokens import RefreshTokenLedger
from tests.support import ApiTestCase, add_user, make_session_factory


class DbTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine, self.SessionTesting = make_session_factory()

    def tearDown(self) -> None:
        self.engine.dispose()

    def users(self) -> list[User]:
        db = self.SessionTesting()
        try:
            users = db.query(User).order_by(User.id).all()
            for u in users:
                db.expunge(u)
            return users
        finally:
            db.close()


class TestRunAdminBootstrap(DbTestCase):
    def _settings(self, username: str | None, password: str | None = None) -> MagicMock:
        settings = MagicMock()
        settings.BOOTSTRAP_ADMIN_USERNAME = username
        settings.BOOTSTRAP_ADMIN_PASSWORD = SecretStr(password) if password else None
        return settings

    def test_not_configured_does_nothing(self) -> None:
        with patch("wakehub.main.SessionLocal", self.SessionTesting):
            run_admin_bootstrap(self._settings(None))
        self.assertEqual(self.users(), [])

    def test_configured_password(self) -> None:
        with patch("wakehub.main.SessionLocal", self.SessionTesting):
            run_admin_bootstrap(self._settings("admin", "first-boot-pw"))
        (user,) = self.users()
        self.assertEqual(user.role, "admin")
        self.assertTrue(user.force_password_change)
        self.assertTrue(verify_password("first-boot-pw", user.password_hash))

    def test_generated_password_is_logged_once(self) -> None:
        with patch("wakehub.main.SessionLocal", self.SessionTesting):
            with self.assertLogs("wakehub.main", level="WARNING") as logs:
                run_admin_bootstrap(self._settings("admin"))
        self.assertEqual(len(logs.output), 1)
        password = logs.output[0].rsplit(" ", 1)[-1]
        (user,) = self.users()
        self.assertTrue(verify_password(password, user.password_hash))


class TestTokenCleanup(DbTestCase):
    def test_purges_expired(self) -> None:
        db = self.SessionTesting()
        try:
            user = add_user(db)
            ledger = RefreshTokenLedger(db)
            ledger.issue(user.id, timedelta(days=1), now=datetime.now(timezone.utc) - timedelta(days=2))
            ledger.issue(user.id, timedelta(days=1))
        finally:
            db.close()
        with patch("wakehub.token_cleanup.SessionLocal", self.SessionTesting):
            self.assertEqual(token_cleanup.main(), 0)
        db = self.SessionTesting()
        try:
            self.assertEqual(db.query(RefreshToken).count(), 1)
        finally:
            db.close()

    def test_failure_returns_one(self) -> None:
        session = MagicMock()
        session.query.side_effect = RuntimeError("db down")
        with patch("wakehub.token_cleanup.SessionLocal", return_value=session):
            with self.assertLogs("wakehub.token_cleanup", level="ERROR"):
                self.assertEqual(token_cleanup.main(), 1)
        session.close.assert_called_once()


class TestCreateUserScript(DbTestCase):
    def test_creates_user_and_prints_password(self) -> None:
        out = io.StringIO()
        with patch("wakehub.scripts.create_user.SessionLocal", self.SessionTesting):
            with redirect_stdout(out):
                self.assertEqual(create_user.main(["Carol", "--admin"]), 0)
        (user,) = self.users()
        self.assertEqual(user.username, "carol")
        self.assertEqual(user.role, "admin")
        password = out.getvalue().strip().splitlines()[-1].split(": ", 1)[1]
        self.assertTrue(verify_password(password, user.password_hash))

    def test_duplicate_fails(self) -> None:
        with patch("wakehub.scripts.create_user.SessionLocal", self.SessionTesting):
            with redirect_stdout(io.StringIO()):
                create_user.main(["carol"])
            err = io.StringIO()
            with redirect_stderr(err):
                self.assertEqual(create_user.main(["CAROL"]), 1)
        self.assertIn("already exists", err.getvalue())


class TestHealth(ApiTestCase):
    def test_health_reports_database(self) -> None:
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")
        self.assertEqual(resp.json()["database"], "connected")
        self.assertEqual(resp.json()["signing_secret"], "configured")

    def test_health_flags_ephemeral_secret(self) -> None:
        with self.assertLogs("wakehub.core.tokens", level="WARNING"):
            app.state.token_issuer = AccessTokenIssuer(None)
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["signing_secret"], "ephemeral")

    def test_root(self) -> None:
        self.assertEqual(self.client.get("/").json(), {"message": "Wakehub API"})
