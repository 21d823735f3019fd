"""Shared helpers: throwaway SQLite databases and an API test case wired to one."""

import unittest

from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wakehub.core.database import build_engine, get_db
from wakehub.core.tokens import AccessTokenIssuer
from wakehub.main import app
from wakehub.models import Base, User
from wakehub.services import accounts

TEST_SECRET = "unit-test-signing-secret-0123456789abcdef"


def make_session_factory() -> tuple[Engine, sessionmaker]:
    """Fresh in-memory SQLite database with all tables created."""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    return engine, sessionmaker(autocommit=False, autoflush=False, bind=engine)


def add_user(db: Session, username: str = "alice", role: str = "user") -> User:
    """Insert a user row directly (no password hashing)."""
    user = User(
        username=username,
        password_hash="not-a-real-digest",
        role=role,
        force_password_change=False,
        failed_login_attempts=0,
        is_disabled=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


class ApiTestCase(unittest.TestCase):
    """TestClient against the real app with get_db and the token issuer swapped out."""

    def setUp(self) -> None:
        self.engine, self.SessionTesting = make_session_factory()

        def override_get_db():
            db = self.SessionTesting()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self._previous_issuer = app.state.token_issuer
        self.issuer = AccessTokenIssuer(TEST_SECRET)
        app.state.token_issuer = self.issuer
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        app.state.token_issuer = self._previous_issuer
        self.engine.dispose()

    def create_user(self, username: str, role: str = "user", password: str | None = None) -> tuple[int, str]:
        """Create an account through the service layer; returns (id, temporary password)."""
        db = self.SessionTesting()
        try:
            user, temp_password = accounts.create_user(db, username, role=role, password=password)
            return user.id, temp_password
        finally:
            db.close()

    def load_user(self, user_id: int) -> User | None:
        db = self.SessionTesting()
        try:
            user = db.get(User, user_id)
            if user is not None:
                db.expunge(user)
            return user
        finally:
            db.close()

    def login(self, username: str, password: str, remember_me: bool = False):
        return self.client.post(
            "/api/login",
            json={"username": username, "password": password, "remember_me": remember_me},
        )

    def login_tokens(self, username: str, password: str) -> tuple[str, str]:
        resp = self.login(username, password)
        self.assertEqual(resp.status_code, 200, resp.text)
        data = resp.json()
        return data["access_token"], data["refresh_token"]

    @staticmethod
    def bearer(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}
