"""Shared pytest fixtures for all tests."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from fileshare.auth import hash_password
from fileshare.config import Settings
from fileshare.main import create_app
from fileshare.service_locator import build_services
from fileshare.services.file_service import UploadItem

TEST_SECRET = "test-secret-key-with-at-least-32-bytes!"


class FakeClock:
    """Controllable aware-UTC clock."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    """
    Create a controllable clock.

    Returns:
        FakeClock starting at 2024-01-01T12:00:00Z
    """
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    """
    Create settings pointing at temporary database and storage paths.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Settings instance
    """
    return Settings(
        database_path=str(tmp_path / "fileshare.db"),
        storage_path=str(tmp_path / "uploads"),
        jwt_secret=TEST_SECRET,
        max_upload_bytes=1024,
    )


@pytest.fixture
def services(settings, clock):
    """
    Build a service container with an initialized database.

    Args:
        settings: Temporary settings fixture
        clock: Controllable clock fixture

    Returns:
        ServiceContainer
    """
    container = build_services(settings, clock=clock)
    container.database.initialize()
    container.storage.ensure_root()
    yield container
    container.database.close()


def make_user(services, name: str, email: str):
    """Insert a user directly through the repository."""
    return services.user_repo.create_user(
        user_id=f"user-{name.lower()}",
        name=name,
        email=email,
        password_hash=hash_password("password123"),
        created_at=services.file_service.clock(),
    )


@pytest.fixture
def alice(services):
    return make_user(services, "Alice", "alice@example.com")


@pytest.fixture
def bob(services):
    return make_user(services, "Bob", "bob@example.com")


@pytest.fixture
def carol(services):
    return make_user(services, "Carol", "carol@example.com")


@pytest.fixture
def alice_file(services, alice):
    """
    Upload a small text file owned by alice.

    Returns:
        FileRecord of the uploaded file
    """
    return services.file_service.upload_file(
        alice, UploadItem(filename="notes.txt", media_type="text/plain", data=b"hello world")
    )


@pytest.fixture
def client(settings, clock):
    """
    Create FastAPI test client with its lifespan running.

    Args:
        settings: Temporary settings fixture
        clock: Controllable clock fixture

    Returns:
        TestClient bound to a fresh application
    """
    app = create_app(settings, clock=clock)
    with TestClient(app) as test_client:
        yield test_client


def register(client, name: str, email: str, password: str = "password123"):
    """
    Register a user through the API.

    Returns:
        Tuple of (auth headers, user json)
    """
    response = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    data = response.json()
    return {"Authorization": f"Bearer {data['token']}"}, data["user"]
