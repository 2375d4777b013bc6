"""
Pytest configuration and fixtures for the dispatch engine tests.

Every test gets its own in-memory SQLite database and a fake push gateway that records what was sent.
"""
import os

# Settings are read at import time; keep tests off Postgres, FCM and the scheduler.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PUSH_PROVIDER"] = "log"
os.environ["SCHEDULER_ENABLED"] = "false"

import threading

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mandi_notify.api.deps import get_dispatcher, get_translation_backend
from mandi_notify.db.base import Base
from mandi_notify.db.session import get_db
from mandi_notify.main import app
from mandi_notify.models import User
from mandi_notify.services.push import Dispatcher, GatewayError


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def db(engine):
    """Session bound to the per-test database. Services commit freely; the database is dropped afterwards."""
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    """Create a user row. make_user("u1", token="tok-1", preferences={...})."""

    def _make(user_id: str, token: str | None = None, preferences: dict | None = None) -> User:
        user = User(id=user_id, fcm_token=token, platform="android" if token else None, notification_preferences=preferences)
        db.add(user)
        db.commit()
        return user

    return _make


# =============================================================================
# Push Fixtures
# =============================================================================


class FakeGateway:
    """
    Records every message. Tokens listed in `failures` raise GatewayError with the mapped code
    (and optional status code) instead of sending.
    """

    provider_id = "fake"

    def __init__(self):
        self.sent = []
        self.failures: dict[str, tuple[str, int | None]] = {}
        self._lock = threading.Lock()

    def fail(self, token: str, code: str, status_code: int | None = None) -> None:
        self.failures[token] = (code, status_code)

    def send(self, message):
        failure = self.failures.get(message.token)
        if failure is not None:
            code, status_code = failure
            raise GatewayError(f"rejected: {code}", code=code, status_code=status_code)
        with self._lock:
            self.sent.append(message)
            return f"msg-{len(self.sent)}"

    def tokens(self) -> list[str]:
        return [m.token for m in self.sent]


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def dispatcher(gateway):
    return Dispatcher(gateway, max_workers=4)


# =============================================================================
# Translation Fixtures
# =============================================================================


class FakeTranslationBackend:
    """Returns a canned translation, or raises `error` when set."""

    def __init__(self, output: str = "नमस्ते दुनिया", error: Exception | None = None):
        self.output = output
        self.error = error
        self.calls = []

    def translate(self, text, from_lang, to_lang):
        self.calls.append((text, from_lang, to_lang))
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture
def translation_backend():
    return FakeTranslationBackend()


# =============================================================================
# API Fixtures
# =============================================================================


@pytest.fixture
def client(db, dispatcher, translation_backend):
    """TestClient with the database, dispatcher and translation backend overridden. Lifespan is not run."""

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_translation_backend] = lambda: translation_backend
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
