"""Admin user management blueprint."""

from __future__ import annotations
from http import HTTPStatus

from flask import Blueprint, jsonify, request

from utils.request_validation import parse_json_request, text_field
from utils.responses import get_portal, unwrap

users_bp = Blueprint("users", __name__)


@users_bp.route("", methods=["GET"])
def list_users():
    """Return every account, newest first."""

    portal = get_portal()
    users = unwrap(portal.accounts.list_users(portal.sessions.current()))
    return jsonify({"success": True, "users": [user.to_dict() for user in users]})


@users_bp.route("/<user_id>/status", methods=["PATCH"])
def update_status(user_id: str):
    """Approve, reject or return an account to pending."""

    portal = get_portal()
    caller = portal.sessions.current()
    unwrap(portal.gate.require_admin(caller))
    payload = parse_json_request(request)
    status = (text_field(payload, "status") or "").strip().lower()
    unwrap(portal.accounts.set_status(caller, user_id, status))
    return jsonify({"success": True}), HTTPStatus.OK


@users_bp.route("/<user_id>/password", methods=["POST"])
def set_password(user_id: str):
    """Force a new password without the current one."""

    portal = get_portal()
    caller = portal.sessions.current()
    unwrap(portal.gate.require_admin(caller))
    payload = parse_json_request(request)
    new_password = text_field(payload, "newPassword")
    unwrap(portal.recovery.admin_set_password(caller, user_id, new_password))
    return jsonify({"success": True}), HTTPStatus.OK


@users_bp.route("/<user_id>", methods=["DELETE"])
def delete_user(user_id: str):
    portal = get_portal()
    unwrap(portal.accounts.delete_user(portal.sessions.current(), user_id))
    return jsonify({"success": True}), HTTPStatus.OK
