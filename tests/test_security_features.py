"""Tests covering error shapes, CORS and connection pool discipline."""

from __future__ import annotations

import pytest

from models import db
from storage import SQLStorage, StorageUnavailableError

from conftest import ROOT_ADMIN_EMAIL, ROOT_ADMIN_PASSWORD, bearer, login


@pytest.mark.parametrize(
    "app_overrides", [{"CORS_ORIGINS": ["https://client.example"]}]
)
def test_cors_allows_configured_origin(client):
    response = client.get(
        "/api/health", headers={"Origin": "https://client.example"}
    )

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == "https://client.example"
    assert response.headers.get("X-Request-ID")


def test_json_error_shape_for_invalid_request(client):
    response = client.post(
        "/api/auth/signup",
        data="not-json",
        content_type="text/plain",
    )

    assert response.status_code == 400
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["error"] == "Bad Request"
    assert "Request content type" in payload["message"]
    assert payload["request_id"]


def test_request_id_is_echoed(client):
    response = client.post(
        "/api/auth/login",
        json={"email": "ghost@x.com", "password": "x"},
        headers={"X-Request-ID": "req-123"},
    )

    assert response.headers["X-Request-ID"] == "req-123"
    assert response.get_json()["request_id"] == "req-123"


def test_non_string_fields_are_rejected(client):
    response = client.post("/api/auth/login", json={"email": 42, "password": "x"})

    assert response.status_code == 400
    assert "must be a string" in response.get_json()["message"]


def test_invalid_token_is_rejected_in_json(client):
    response = client.get("/api/users", headers=bearer("not.a.jwt"))

    assert response.status_code == 401
    assert response.get_json()["success"] is False


def test_storage_outage_is_reported_without_internals(client, monkeypatch):
    def _down(self, email):
        raise StorageUnavailableError("connection refused on 10.0.0.5:3306")

    monkeypatch.setattr(SQLStorage, "find_by_email", _down)

    response = client.post(
        "/api/auth/login", json={"email": "a@x.com", "password": "x"}
    )

    assert response.status_code == 500
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["error"] == "Unreachable"
    assert "10.0.0.5" not in response.get_data(as_text=True)
    assert "Traceback" not in response.get_data(as_text=True)


def test_unexpected_errors_return_generic_message(client, monkeypatch):
    def _boom(self, email):
        raise RuntimeError("secret internal detail")

    monkeypatch.setattr(SQLStorage, "find_by_email", _boom)

    response = client.post(
        "/api/auth/login", json={"email": "a@x.com", "password": "x"}
    )

    assert response.status_code == 500
    assert response.get_json()["message"] == "An unexpected error occurred."
    assert "secret internal detail" not in response.get_data(as_text=True)


def test_health_reports_unreachable_storage(client, monkeypatch):
    def _down(self):
        raise StorageUnavailableError("down")

    monkeypatch.setattr(SQLStorage, "ping", _down)

    response = client.get("/api/health")

    assert response.status_code == 500
    assert response.get_json()["status"] == "error"


@pytest.mark.parametrize(
    "app_overrides",
    [
        {
            "SQLALCHEMY_ENGINE_OPTIONS": {
                "pool_size": 1,
                "max_overflow": 0,
                "pool_timeout": 2,
            }
        }
    ],
)
def test_connections_are_released_on_every_path(app, client, create_user):
    """A single-connection pool keeps serving through successes and failures."""

    create_user("pool@x.com", "PoolPass1")
    token = login(client, ROOT_ADMIN_EMAIL, ROOT_ADMIN_PASSWORD)

    for _ in range(3):
        assert client.get("/api/users", headers=bearer(token)).status_code == 200
        assert (
            client.post(
                "/api/auth/login", json={"email": "pool@x.com", "password": "bad"}
            ).status_code
            == 401
        )
        assert (
            client.post(
                "/api/auth/signup",
                json={"name": "Dup", "email": "pool@x.com", "password": "x"},
            ).status_code
            == 409
        )
        assert (
            client.post("/api/categories", json={"name": "Work"}, headers=bearer(token))
            .status_code
            == 409
        )
        assert client.delete("/api/users/missing", headers=bearer(token)).status_code == 404
        assert client.post("/api/auth/login", data="x").status_code == 400

    with app.app_context():
        assert db.engine.pool.checkedout() == 0
