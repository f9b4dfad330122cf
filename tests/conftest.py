from collections.abc import Generator

import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from auth import issue_token
from config import Settings, get_settings
from database import create_document, get_db
from main import app
from media import LocalMediaStore, get_media_store
from schemas import User

TEST_SETTINGS = Settings(_env_file=None, jwt_secret="test-secret-with-at-least-32-bytes!", upload_dir="unused")


def auth_headers(user_id: ObjectId) -> dict:
    return {"x-auth-token": issue_token(user_id, TEST_SETTINGS)}


@pytest.fixture
def db():
    return mongomock.MongoClient()["video_sharing_test"]


@pytest.fixture
def media(tmp_path) -> LocalMediaStore:
    return LocalMediaStore(str(tmp_path / "uploads"))


@pytest.fixture
def client(db, media) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_media_store] = lambda: media
    app.dependency_overrides[get_settings] = lambda: TEST_SETTINGS
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(name: str) -> ObjectId:
        return create_document(db, "user", User(name=name, email=f"{name.lower()}@example.com"))["_id"]

    return _make
