"""Shared helpers: in-memory SQLite databases with seeded roles, and a TestClient-backed API case."""

import unittest
from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import Settings
from app.core.database import get_db
from app.main import create_app
from app.models import Base, RoleName, User
from app.services.credential_store import CredentialStore

TEST_BCRYPT_ROUNDS = 10
TEST_SECRET = "test-secret-key"

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "AdminPass1!"
READER_EMAIL = "reader@example.com"
READER_PASSWORD = "Secret1!"


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from the environment and any .env file."""
    values: dict[str, Any] = {
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": TEST_SECRET,
        "BCRYPT_ROUNDS": TEST_BCRYPT_ROUNDS,
        "APP_ENV": "dev",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_engine() -> Engine:
    """One shared in-memory connection so every session (and thread) sees the same tables."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


class FakeClock:
    """Callable clock for deterministic expiry tests."""

    def __init__(self, now: Any) -> None:
        self.now = now

    def __call__(self) -> Any:
        return self.now

    def advance(self, delta: Any) -> None:
        self.now = self.now + delta


def fixed_utc(hour: int = 12) -> datetime:
    return datetime(2024, 3, 1, hour, 0, 0, tzinfo=UTC)


class DatabaseTestCase(unittest.TestCase):
    """Fresh database per test, roles seeded, store bound to a session."""

    def setUp(self) -> None:
        self.engine = make_engine()
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)
        self.session: Session = self.SessionLocal()
        self.store = CredentialStore(self.session, bcrypt_rounds=TEST_BCRYPT_ROUNDS)
        self.store.seed_roles()

    def tearDown(self) -> None:
        self.session.close()
        self.engine.dispose()

    def create_user(
        self,
        name: str = "Reader One",
        email: str = READER_EMAIL,
        password: str = READER_PASSWORD,
        role: RoleName = RoleName.READER,
    ) -> User:
        role_row = self.store.find_role_by_name(role)
        return self.store.create_user(name, email, password, role_row.id)


class ApiTestCase(DatabaseTestCase):
    """DatabaseTestCase plus an app wired to the test database, with one admin and one reader."""

    settings_overrides: dict[str, Any] = {}
    raise_server_exceptions = True

    def setUp(self) -> None:
        super().setUp()
        self.app = create_app(make_settings(**self.settings_overrides))

        def override_get_db() -> Generator[Session, None, None]:
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        self.app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(self.app, raise_server_exceptions=self.raise_server_exceptions)
        self.admin = self.create_user("Admin", ADMIN_EMAIL, ADMIN_PASSWORD, RoleName.ADMIN)
        self.reader = self.create_user()

    def tearDown(self) -> None:
        self.client.close()
        super().tearDown()

    def login(self, email: str, password: str) -> str:
        response = self.client.post("/api/auth/login", json={"email": email, "password": password})
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["token"]

    def admin_headers(self) -> dict[str, str]:
        return bearer(self.login(ADMIN_EMAIL, ADMIN_PASSWORD))

    def reader_headers(self) -> dict[str, str]:
        return bearer(self.login(READER_EMAIL, READER_PASSWORD))


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


ONE_HOUR = timedelta(hours=1)
