"""Service-level tests that run without an HTTP layer."""

from __future__ import annotations

import smtplib

import pytest

from services.accounts import AccountService
from services.authorization import USER_DELETE, AuthorizationGate, is_admin, is_self
from services.mailer import MailDeliveryError, Mailer
from services.recovery import PasswordRecovery
from services.results import Err, ErrorKind, Ok
from storage import LocalStorage


@pytest.fixture()
def store(tmp_path) -> LocalStorage:
    store = LocalStorage(str(tmp_path / "services.json"))
    store.initialize()
    store.ensure_root_admin("root@portal.test", "Root", "RootPass1")
    return store


@pytest.fixture()
def mailer() -> Mailer:
    return Mailer({"MAIL_SUPPRESS_SEND": True})


@pytest.fixture()
def gate(store) -> AuthorizationGate:
    return AuthorizationGate(store, "Root@Portal.test")


@pytest.fixture()
def accounts(store, gate, mailer) -> AccountService:
    return AccountService(store, gate, mailer, "https://portal.example/")


def test_result_kinds_map_to_http_statuses():
    assert ErrorKind.CONFLICT.status == 409
    assert ErrorKind.FORBIDDEN.status == 403
    assert ErrorKind.INVALID_OPERATION.status == 400
    assert ErrorKind.UNREACHABLE.status == 500
    assert Ok(1).ok is True
    assert Err(ErrorKind.FORBIDDEN, "no").ok is False


def test_signup_builds_verification_url(accounts, mailer, store):
    result = accounts.signup("Dana", "Dana@Example.com", "DanaPass1")

    assert isinstance(result, Ok)
    assert result.value.email == "dana@example.com"
    token = store.find_by_email("dana@example.com").verification_token
    assert (
        f"https://portal.example/api/auth/verify?token={token}"
        in mailer.outbox[0].get_content()
    )


def test_signup_rejects_oversized_password(accounts):
    result = accounts.signup("Eve", "eve@example.com", "x" * 73)

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.VALIDATION_ERROR


def test_capabilities(accounts, store):
    root = store.find_by_email("root@portal.test").public()
    member = accounts.signup("M", "m@example.com", "MemberPass1").value

    assert is_admin(root) and not is_admin(member) and not is_admin(None)
    assert is_self(member, member.id) and not is_self(root, member.id)


def test_gate_checks_admin_before_target(gate, accounts):
    member = accounts.signup("M", "m@example.com", "MemberPass1").value

    result = gate.authorize_user_action(member, "missing", USER_DELETE)

    assert result.kind is ErrorKind.FORBIDDEN


def test_failed_delete_leaves_store_untouched(accounts, store):
    root = store.find_by_email("root@portal.test").public()
    before = store.list_users()

    result = accounts.delete_user(root, root.id)

    assert result.kind is ErrorKind.INVALID_OPERATION
    assert store.list_users() == before


def test_recovery_paths_all_rehash(store, gate, mailer, accounts):
    recovery = PasswordRecovery(store, gate, mailer)
    root = store.find_by_email("root@portal.test").public()
    member = accounts.signup("M", "m@example.com", "MemberPass1").value
    store.redeem_verification_token(store.find_by_id(member.id).verification_token)

    assert isinstance(recovery.change_password("m@example.com", "MemberPass1", "Second1"), Ok)
    assert isinstance(recovery.admin_set_password(root, member.id, "Third1"), Ok)
    ticket = recovery.request_reset("m@example.com")
    assert isinstance(ticket, Ok)
    assert ticket.value.temporary_password is None

    record = store.find_by_id(member.id)
    for old in ("MemberPass1", "Second1", "Third1"):
        assert store.verify_password(record, old) is False


def test_mailer_reports_unaddressable_recipient(mailer):
    with pytest.raises(MailDeliveryError):
        mailer.send_verification_email("eve@x.com\nBcc: victim@y.com", "https://x")

    assert mailer.outbox == []


def test_mailer_closes_connection_when_starttls_fails(monkeypatch):
    """A refused STARTTLS upgrade surfaces as a delivery error and drops the socket."""

    opened = []

    class _FakeSMTP:
        def __init__(self, host, port, timeout=None):
            self.closed = False
            opened.append(self)

        def starttls(self):
            raise smtplib.SMTPNotSupportedError("STARTTLS extension not supported")

        def close(self):
            self.closed = True

    monkeypatch.setattr(smtplib, "SMTP", _FakeSMTP)
    mailer = Mailer({"SMTP_HOST": "smtp.portal.test", "SMTP_USE_TLS": True})

    with pytest.raises(MailDeliveryError):
        mailer.send_reset_email("m@example.com", "Temp1234")

    assert len(opened) == 1
    assert opened[0].closed is True
