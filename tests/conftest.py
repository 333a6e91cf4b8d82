"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
import uuid
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402
from models.records import UserRecord  # noqa: E402

ROOT_ADMIN_EMAIL = "admin@portal.com"
ROOT_ADMIN_PASSWORD = "admin"


class _BaseTestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key-that-is-long-enough-for-hs256"
    JWT_SECRET_KEY = SECRET_KEY
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_size": 5, "max_overflow": 0, "pool_timeout": 5}
    STORAGE_BACKEND = "sql"
    API_PUBLIC_URL = "http://portal.test"
    ROOT_ADMIN_EMAIL = ROOT_ADMIN_EMAIL
    ROOT_ADMIN_NAME = "System Admin"
    ROOT_ADMIN_PASSWORD = ROOT_ADMIN_PASSWORD
    BCRYPT_ROUNDS = 10
    EXPOSE_TEMP_PASSWORD = False
    MAIL_SUPPRESS_SEND = True
    CORS_ORIGINS = "*"


def build_test_config(tmp_path: Path, **overrides) -> type[Config]:
    class TestConfig(_BaseTestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'portal.db'}"
        LOCAL_STORE_PATH = str(tmp_path / "portal.json")

    for key, value in overrides.items():
        setattr(TestConfig, key, value)
    return TestConfig


@pytest.fixture()
def app_overrides() -> dict:
    """Config values individual test modules may override."""

    return {}


@pytest.fixture()
def app(tmp_path, app_overrides) -> Flask:
    """Create a Flask application instance for tests."""

    application = create_app(build_test_config(tmp_path, **app_overrides))

    yield application

    if application.config["STORAGE_BACKEND"] == "sql":
        with application.app_context():
            db.session.remove()
            db.drop_all()
            db.engine.dispose()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def portal(app: Flask):
    return app.extensions["portal"]


@pytest.fixture()
def outbox(portal) -> list:
    """Messages the suppressed mailer would have sent."""

    return portal.mailer.outbox


@pytest.fixture()
def create_user(app: Flask, portal):
    """Factory persisting a user directly through the configured storage."""

    def _create_user(
        email: str,
        password: str = "Password123",
        *,
        name: str = "Test User",
        role: str = "user",
        status: str = "approved",
        verified: bool = True,
        token: str | None = None,
    ) -> UserRecord:
        with app.app_context():
            return portal.storage.create_user(
                UserRecord(
                    id=str(uuid.uuid4()),
                    name=name,
                    email=email.lower(),
                    password_hash=portal.storage.hash_password(password),
                    role=role,
                    status=status,
                    is_verified=verified,
                    verification_token=token,
                )
            )

    return _create_user


@pytest.fixture()
def find_user(app: Flask, portal):
    def _find_user(email: str) -> UserRecord | None:
        with app.app_context():
            return portal.storage.find_by_email(email)

    return _find_user


def login(client: FlaskClient, email: str, password: str) -> str:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.get_json()
    return response.get_json()["accessToken"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers(client: FlaskClient) -> dict[str, str]:
    """Authorization headers for the seeded root admin."""

    return bearer(login(client, ROOT_ADMIN_EMAIL, ROOT_ADMIN_PASSWORD))


@pytest.fixture()
def root_admin(find_user) -> UserRecord:
    return find_user(ROOT_ADMIN_EMAIL)
