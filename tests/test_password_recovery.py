"""Tests for temporary passwords, self-service changes and admin resets."""

from __future__ import annotations

import logging

import pytest

from services.mailer import MailDeliveryError

from conftest import ROOT_ADMIN_EMAIL, ROOT_ADMIN_PASSWORD, bearer, login


def _temporary_password(outbox) -> str:
    body = outbox[-1].get_content()
    return body.split("temporary password: ", 1)[1].split()[0]


def _login_status(client, email: str, password: str) -> int:
    return client.post(
        "/api/auth/login", json={"email": email, "password": password}
    ).status_code


def test_reset_on_unverified_account_fails(client, create_user, outbox):
    create_user("alice@x.com", "pw1", verified=False, status="pending")

    response = client.post("/api/auth/forgot", json={"email": "alice@x.com"})

    assert response.status_code == 403
    assert response.get_json()["error"] == "EmailNotVerified"
    assert outbox == []
    assert _login_status(client, "alice@x.com", "pw1") == 403


def test_reset_for_unknown_email_fails(client):
    response = client.post("/api/auth/forgot", json={"email": "ghost@x.com"})

    assert response.status_code == 404
    assert response.get_json()["error"] == "UserNotFound"


def test_reset_replaces_password_with_mailed_temporary_one(client, create_user, outbox):
    create_user("alice@x.com", "pw1")

    response = client.post("/api/auth/forgot", json={"email": "alice@x.com"})

    assert response.status_code == 200
    body = response.get_json()
    assert body["success"] is True
    assert "tempPassword" not in body

    temp_password = _temporary_password(outbox)
    assert len(temp_password) >= 10
    assert temp_password.isalnum()
    assert outbox[-1]["To"] == "alice@x.com"

    assert _login_status(client, "alice@x.com", "pw1") == 401
    assert _login_status(client, "alice@x.com", temp_password) == 200


def test_temporary_password_is_not_persisted_or_logged(
    client, create_user, outbox, find_user, caplog
):
    create_user("alice@x.com", "pw1")

    with caplog.at_level(logging.DEBUG):
        client.post("/api/auth/forgot", json={"email": "alice@x.com"})

    temp_password = _temporary_password(outbox)
    assert temp_password not in caplog.text
    stored = find_user("alice@x.com")
    assert temp_password not in stored.password_hash


def test_reset_reports_mail_failure(client, create_user, portal, monkeypatch):
    create_user("alice@x.com", "pw1")

    def _fail(*args, **kwargs):
        raise MailDeliveryError("smtp down")

    monkeypatch.setattr(portal.mailer, "send_reset_email", _fail)

    response = client.post("/api/auth/forgot", json={"email": "alice@x.com"})

    assert response.status_code == 500
    assert response.get_json()["error"] == "Unreachable"
    assert response.get_json()["message"] == "Could not process reset."


@pytest.mark.parametrize("app_overrides", [{"EXPOSE_TEMP_PASSWORD": True}])
def test_reset_can_echo_temporary_password_for_development(
    client, create_user, outbox
):
    create_user("dev@x.com", "pw1")

    response = client.post("/api/auth/forgot", json={"email": "dev@x.com"})

    temp_password = response.get_json()["tempPassword"]
    assert temp_password == _temporary_password(outbox)
    assert _login_status(client, "dev@x.com", temp_password) == 200


def test_change_password_requires_current_password(client, create_user, find_user):
    create_user("bob@x.com", "OldPass1")
    before = find_user("bob@x.com").password_hash

    response = client.post(
        "/api/auth/change-password",
        json={
            "email": "bob@x.com",
            "currentPassword": "not-it",
            "newPassword": "NewPass1",
        },
    )

    assert response.status_code == 401
    assert response.get_json()["error"] == "InvalidCredentials"
    assert find_user("bob@x.com").password_hash == before
    assert _login_status(client, "bob@x.com", "OldPass1") == 200


def test_change_password_succeeds_with_current_password(client, create_user):
    create_user("bob@x.com", "OldPass1")

    response = client.post(
        "/api/auth/change-password",
        json={
            "email": "bob@x.com",
            "currentPassword": "OldPass1",
            "newPassword": "NewPass1",
        },
    )

    assert response.status_code == 200
    assert response.get_json() == {"success": True}
    assert _login_status(client, "bob@x.com", "OldPass1") == 401
    assert _login_status(client, "bob@x.com", "NewPass1") == 200


def test_change_password_for_unknown_user(client):
    response = client.post(
        "/api/auth/change-password",
        json={"email": "nobody@x.com", "currentPassword": "a", "newPassword": "b"},
    )

    assert response.status_code == 404


def test_admin_sets_password_without_old_one(client, create_user, admin_headers):
    user = create_user("bob@x.com", "OldPass1")

    response = client.post(
        f"/api/users/{user.id}/password",
        json={"newPassword": "AdminChosen1"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert _login_status(client, "bob@x.com", "AdminChosen1") == 200
    assert _login_status(client, "bob@x.com", "OldPass1") == 401


def test_non_admin_cannot_set_passwords(client, create_user, find_user):
    create_user("bob@x.com", "BobPass1")
    target = create_user("carol@x.com", "CarolPass1")
    token = login(client, "bob@x.com", "BobPass1")

    response = client.post(
        f"/api/users/{target.id}/password",
        json={"newPassword": "Hijacked1"},
        headers=bearer(token),
    )

    assert response.status_code == 403
    assert response.get_json()["error"] == "Forbidden"
    assert _login_status(client, "carol@x.com", "CarolPass1") == 200


def test_root_admin_password_cannot_be_forced(client, create_user, root_admin):
    create_user("second-admin@x.com", "AdminPass1", role="admin")
    token = login(client, "second-admin@x.com", "AdminPass1")

    response = client.post(
        f"/api/users/{root_admin.id}/password",
        json={"newPassword": "Takeover1"},
        headers=bearer(token),
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "InvalidOperation"
    assert _login_status(client, ROOT_ADMIN_EMAIL, ROOT_ADMIN_PASSWORD) == 200
