"""App and category blueprints. Reads are public, writes need an admin."""

from __future__ import annotations
from http import HTTPStatus

from flask import Blueprint, jsonify, request

from utils.request_validation import parse_json_request, text_field
from utils.responses import get_portal, unwrap

apps_bp = Blueprint("apps", __name__)
categories_bp = Blueprint("categories", __name__)


@apps_bp.route("", methods=["GET"])
def list_apps():
    """Return apps with optional ``category`` and ``q`` filters."""

    apps = unwrap(
        get_portal().catalog.list_apps(
            category=request.args.get("category"), query=request.args.get("q")
        )
    )
    return jsonify({"success": True, "apps": [app.to_dict() for app in apps]})


@apps_bp.route("", methods=["POST"])
def create_app_entry():
    portal = get_portal()
    caller = portal.sessions.current()
    unwrap(portal.gate.require_admin(caller))
    payload = parse_json_request(request)
    app = unwrap(portal.catalog.create_app(caller, payload))
    return jsonify({"success": True, "app": app.to_dict()}), HTTPStatus.CREATED


@apps_bp.route("/<app_id>", methods=["PUT", "PATCH"])
def update_app_entry(app_id: str):
    portal = get_portal()
    caller = portal.sessions.current()
    unwrap(portal.gate.require_admin(caller))
    payload = parse_json_request(request)
    app = unwrap(portal.catalog.update_app(caller, app_id, payload))
    return jsonify({"success": True, "app": app.to_dict()})


@apps_bp.route("/<app_id>", methods=["DELETE"])
def delete_app_entry(app_id: str):
    portal = get_portal()
    unwrap(portal.catalog.delete_app(portal.sessions.current(), app_id))
    return jsonify({"success": True})


@categories_bp.route("", methods=["GET"])
def list_categories():
    categories = unwrap(get_portal().catalog.list_categories())
    return jsonify({"success": True, "categories": categories})


@categories_bp.route("", methods=["POST"])
def create_category():
    portal = get_portal()
    caller = portal.sessions.current()
    unwrap(portal.gate.require_admin(caller))
    payload = parse_json_request(request)
    name = unwrap(portal.catalog.create_category(caller, text_field(payload, "name")))
    return jsonify({"success": True, "category": name}), HTTPStatus.CREATED


@categories_bp.route("/<path:name>", methods=["DELETE"])
def delete_category(name: str):
    portal = get_portal()
    unwrap(portal.catalog.delete_category(portal.sessions.current(), name))
    return jsonify({"success": True})
