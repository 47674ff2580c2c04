"""Pytest fixtures for the tasks backend tests."""

import os
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

# Ensure the process-wide app (built on import of src.api.main) stays in memory
# and signs with a fixed secret; cheap hashing keeps the suite fast.
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")
os.environ.setdefault("JWT_SECRET", "test-secret-0123456789abcdef0123456789abcdef")
os.environ.setdefault("PASSWORD_HASH_METHOD", "pbkdf2:sha256:1000")

from src.api.main import create_app  # noqa: E402
from src.api.settings import Settings  # noqa: E402
from src.api.storage import LocalFileStorage  # noqa: E402

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"
PASSWORD = "correct horse battery staple"


class FakeClock:
    """A settable clock for TokenService/ProfileService."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now


class RecordingStorage(LocalFileStorage):
    """LocalFileStorage that remembers every store() call."""

    def __init__(self, base_dir: str) -> None:
        super().__init__(base_dir)
        self.calls = []

    def store(self, data: bytes, suggested_name: str) -> str:
        self.calls.append((len(data), suggested_name))
        return super().store(data, suggested_name)


def build_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        persistence_backend="memory",
        sqlite_db_path=str(tmp_path / "data" / "tasks.db"),
        cors_allow_origins=["*"],
        jwt_secret=TEST_SECRET,
        jwt_algorithm="HS256",
        token_ttl_seconds=3600,
        password_hash_method="pbkdf2:sha256:1000",
        upload_dir=str(tmp_path / "uploads"),
        max_image_bytes=5 * 1024 * 1024,
        host="127.0.0.1",
        port=3000,
        log_level="WARNING",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path):
    return build_settings(tmp_path)


@pytest.fixture
def file_storage(settings):
    return RecordingStorage(settings.upload_dir)


@pytest.fixture
def app(settings, file_storage):
    """A fresh app with empty in-memory stores for every test."""
    return create_app(settings, file_storage=file_storage)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def login(client):
    """
    Register (if needed) and log in a user; returns Authorization headers.

    Usage: headers = login("ada@example.com")
    """

    def _login(email: str, password: str = PASSWORD) -> dict:
        client.post("/register", json={"email": email, "password": password})
        res = client.post("/login", json={"email": email, "password": password})
        assert res.status_code == 200, res.text
        return {"Authorization": f"Bearer {res.json()['token']}"}

    return _login


@pytest.fixture
def alice(login):
    return login("alice@example.com")


@pytest.fixture
def bob(login):
    return login("bob@example.com")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_settings(tmp_path):
    """Build Settings rooted in tmp_path, with keyword overrides."""

    def _make(**overrides) -> Settings:
        return build_settings(tmp_path, **overrides)

    return _make
