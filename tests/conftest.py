"""Shared fixtures: a throwaway SQLite database and fakes for outbound channels."""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

TEST_DB_PATH = Path(tempfile.gettempdir()) / "telehealth_notifications_test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["STREAM_WEBHOOK_SECRET"] = "webhook-secret"
os.environ["STREAM_WEBHOOK_ALLOW_UNSIGNED"] = "false"
os.environ.pop("FIREBASE_CREDENTIALS_FILE", None)
os.environ.pop("FIREBASE_CREDENTIALS_JSON", None)

from app.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from app.domain.entities import ROLE_PATIENT, User  # noqa: E402
from app.infrastructure.database import (  # noqa: E402
    Base,
    SessionLocal,
    engine,
    initialize_database,
)
from app.infrastructure.repositories import RoleRepository, UserRepository  # noqa: E402
from app.infrastructure.security import create_access_token, get_password_hash  # noqa: E402

PASSWORD = "Secret123"
_PASSWORD_HASH = get_password_hash(PASSWORD)


class RecordingGateway:
    """Stand-in for the realtime gateway remembering every published event."""

    def __init__(self) -> None:
        self.events: list[tuple[int, str, dict]] = []

    def publish_to_user(self, user_id, event, payload) -> None:
        self.events.append((user_id, event, payload))

    def events_for(self, user_id: int, event: str | None = None) -> list[dict]:
        return [
            payload
            for recipient, name, payload in self.events
            if recipient == user_id and (event is None or name == event)
        ]

    def names_for(self, user_id: int) -> list[str]:
        return [name for recipient, name, _ in self.events if recipient == user_id]


class FakePushSender:
    """Push transport capturing messages instead of calling Firebase."""

    def __init__(self, *, enabled: bool = True) -> None:
        self._enabled = enabled
        self.messages = []
        self.failures: list[Exception] = []

    @property
    def enabled(self) -> bool:
        return self._enabled

    def send(self, message) -> str:
        if self.failures:
            raise self.failures.pop(0)
        self.messages.append(message)
        return f"projects/test/messages/{len(self.messages)}"


@pytest.fixture(autouse=True)
def reset_database():
    """Ensure every test starts from empty tables."""

    Base.metadata.drop_all(bind=engine)
    initialize_database()
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture()
def push_sender() -> FakePushSender:
    return FakePushSender()


@pytest.fixture()
def make_user(db):
    """Create users directly through the repository with a precomputed hash."""

    counter = {"value": 0}

    def _make(
        name: str = "Test User",
        *,
        role: str = ROLE_PATIENT,
        email: str | None = None,
        fcm_token: str | None = None,
        is_active: bool = True,
    ) -> User:
        counter["value"] += 1
        repository = UserRepository(db)
        user = repository.create(
            User(
                id=None,
                role=RoleRepository(db).get_or_create(role),
                name=name,
                email=email or f"user{counter['value']}@example.com",
                password=_PASSWORD_HASH,
                is_active=is_active,
                fcm_token=fcm_token,
            )
        )
        return user

    return _make


@pytest.fixture()
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        token = create_access_token({"sub": str(user.id), "role": user.role.alias})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def client(gateway, push_sender):
    """Test client whose dispatcher records realtime events instead of sending them."""

    from fastapi.testclient import TestClient

    from main import create_app

    app = create_app(realtime_gateway=gateway, push_sender=push_sender)
    with TestClient(app) as test_client:
        yield test_client
