"""Authentication blueprint: signup, verification, login and password recovery."""

from __future__ import annotations
from http import HTTPStatus

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import Unauthorized

from services.results import Err
from utils.request_validation import parse_json_request, text_field
from utils.responses import get_portal, unwrap

auth_bp = Blueprint("auth", __name__)

TEXT_PLAIN = {"Content-Type": "text/plain; charset=utf-8"}


@auth_bp.route("/signup", methods=["POST"])
def signup() -> tuple:
    """Create an unverified, pending account and mail the verification link."""
    payload = parse_json_request(request)
    unwrap(
        get_portal().accounts.signup(
            text_field(payload, "name"),
            text_field(payload, "email"),
            text_field(payload, "password"),
        )
    )
    return (
        jsonify(
            {
                "success": True,
                "message": "Account created. Check your email to verify before admin approval.",
            }
        ),
        HTTPStatus.CREATED,
    )


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple:
    """Authenticate a user and open a session."""
    payload = parse_json_request(request)
    portal = get_portal()
    user = unwrap(
        portal.accounts.authenticate(
            text_field(payload, "email"), text_field(payload, "password")
        )
    )
    token = portal.sessions.establish(user)
    return (
        jsonify({"success": True, "user": user.to_dict(), "accessToken": token}),
        HTTPStatus.OK,
    )


@auth_bp.route("/logout", methods=["POST"])
@jwt_required()
def logout() -> tuple:
    get_portal().sessions.clear()
    return jsonify({"success": True}), HTTPStatus.OK


@auth_bp.route("/me", methods=["GET"])
def me() -> tuple:
    """Return the identity behind the presented token."""
    user = get_portal().sessions.current()
    if user is None:
        raise Unauthorized("Authentication required.")
    return jsonify({"success": True, "user": user.to_dict()}), HTTPStatus.OK


@auth_bp.route("/forgot", methods=["POST"])
def forgot_password() -> tuple:
    """Issue a temporary password and mail it to the account owner."""
    payload = parse_json_request(request)
    ticket = unwrap(get_portal().recovery.request_reset(text_field(payload, "email")))
    body = {"success": True, "message": "Temporary password sent to your email."}
    if ticket.temporary_password is not None:
        body["tempPassword"] = ticket.temporary_password
    return jsonify(body), HTTPStatus.OK


@auth_bp.route("/verify", methods=["GET"])
def verify_email():
    """Redeem a verification token. Answers in plain text for email clients."""
    result = get_portal().accounts.verify(request.args.get("token", ""))
    if isinstance(result, Err):
        return result.message, int(result.kind.status), TEXT_PLAIN
    return (
        "Email verified. You can now log in (admin approval may still be required).",
        HTTPStatus.OK,
        TEXT_PLAIN,
    )


@auth_bp.route("/change-password", methods=["POST"])
def change_password() -> tuple:
    payload = parse_json_request(request)
    unwrap(
        get_portal().recovery.change_password(
            text_field(payload, "email"),
            text_field(payload, "currentPassword"),
            text_field(payload, "newPassword"),
        )
    )
    return jsonify({"success": True}), HTTPStatus.OK
