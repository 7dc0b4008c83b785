"""
Shared fixtures: an app wired to an in-memory SQLite database and a
temporary images directory, plus helpers for users and auth headers.
"""

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from movie_api.core.config import Settings
from movie_api.core.security import hash_password
from movie_api.database import build_engine, init_db
from movie_api.main import create_app
from movie_api.models.user import User
from movie_api.services.image_service import DeletionOutcome, ImageDeletion


class RecordingCleaner:
    """Stands in for ImageCleaner and remembers every deletion request."""

    def __init__(self):
        self.calls = []

    def delete_image(self, ref):
        self.calls.append(ref)
        return ImageDeletion(DeletionOutcome.SKIPPED, ref)


@pytest.fixture
def images_dir(tmp_path):
    path = tmp_path / "images"
    path.mkdir()
    return path


@pytest.fixture
def settings(images_dir):
    return Settings(
        SECRET_KEY="test-secret-key-for-the-movie-api",
        DATABASE_URL="sqlite://",
        IMAGES_DIR=str(images_dir),
        LEGACY_IMAGE_DIRS=[],
        STORAGE_BACKEND="local",
        BCRYPT_ROUNDS=4,
        MAX_UPLOAD_BYTES=1024,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(settings):
    engine = build_engine(settings)
    init_db(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture
def make_user(db):
    def _make(email=None, username=None, password="secret1"):
        user = User(email=email, username=username, hashed_password=hash_password(password, rounds=4))
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def cleaner():
    return RecordingCleaner()


def register(client, password="secret1", **identity):
    return client.post("/users/register", json={"password": password, **identity})


def login(client, password="secret1", **identity):
    return client.post("/users/login", json={"password": password, **identity})


@pytest.fixture
def auth_headers(client):
    """Register + log in a user, return a function producing their headers."""
    def _headers(email="a@x.com", password="secret1"):
        register(client, password=password, email=email)
        response = login(client, password=password, email=email)
        assert response.status_code == 200, response.text
        token = response.json()["data"]["access_token"]
        return {"Authorization": f"Bearer {token}"}
    return _headers
