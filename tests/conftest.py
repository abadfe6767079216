"""Pytest configuration and shared fixtures for the Blog API tests."""

import io
import os

import pytest

# Point storage at an in-memory database before anything imports models
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite://"

from blog_api import create_app  # noqa: E402
from models import storage  # noqa: E402

# 1x1 transparent PNG
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00\x1f\x15\xc4\x89"
    b"\x00\x00\x00\rIDATx\x9cc\xf8\x0f\x00\x00\x01\x01\x00\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82"
)


def user_payload(**overrides):
    payload = {
        "first_name": "Alice",
        "last_name": "Walker",
        "email": "alice@example.com",
        "phone": "5551234567",
        "password": "correct-horse",
        "date_of_birth": "1990-05-17",
        "preferences": ["technology", "science"],
    }
    payload.update(overrides)
    return payload


def png_file(name="photo.png", content_type="image/png"):
    return (io.BytesIO(PNG_BYTES), name, content_type)


@pytest.fixture
def db():
    """Fresh tables for every test."""
    storage.reset()
    yield storage
    storage.close()


@pytest.fixture
def app(db, tmp_path):
    app = create_app("testing")
    app.config["UPLOAD_FOLDER"] = str(tmp_path / "uploads")
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def bearer():
    def _bearer(token):
        return {"Authorization": f"Bearer {token}"}
    return _bearer


@pytest.fixture
def register(client):
    """Register a user through the API and return the response's data block."""
    def _register(**overrides):
        resp = client.post("/api/v1/auth/register", json=user_payload(**overrides))
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()["data"]
    return _register


@pytest.fixture
def alice(register):
    return register()


@pytest.fixture
def bob(register):
    return register(first_name="Bob", email="bob@example.com", phone="5559876543")


@pytest.fixture
def upload_folder(app):
    return app.config["UPLOAD_FOLDER"]
