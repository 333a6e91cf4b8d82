"""Application factory."""

import logging
import os
import uuid

from flask import Flask, current_app, g, jsonify, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from config import Config
from models import db
from routes.auth import auth_bp
from routes.catalog import apps_bp, categories_bp
from routes.users import users_bp
from services import build_portal
from services.results import ErrorKind
from storage import StorageUnavailableError, build_storage
from storage.seed import bootstrap_storage

migrate = Migrate()
jwt = JWTManager()


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application.

    Raises ``StorageUnavailableError`` when the configured storage backend
    cannot be reached, so a broken deployment never starts serving.
    """
    app = Flask(__name__)
    app.config.from_object(config_class)
    _configure_logging(app)

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    # CORS
    CORS(
        app,
        resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Storage and services
    storage = build_storage(app.config)
    with app.app_context():
        try:
            bootstrap_storage(storage, app.config)
        except StorageUnavailableError:
            app.logger.critical(
                "Storage backend %r unreachable at startup; refusing to serve.",
                app.config.get("STORAGE_BACKEND"),
            )
            raise
    app.extensions["portal"] = build_portal(storage, app.config)
    app.logger.info("Portal ready using %s storage", app.config.get("STORAGE_BACKEND"))

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(users_bp, url_prefix="/api/users")
    app.register_blueprint(apps_bp, url_prefix="/api/apps")
    app.register_blueprint(categories_bp, url_prefix="/api/categories")

    # Health
    @app.route("/api/health", methods=["GET"])
    def health_check():
        try:
            app.extensions["portal"].storage.ping()
        except StorageUnavailableError:
            return jsonify({"status": "error", "message": "Storage not reachable."}), 500
        return jsonify({"status": "ok"})

    # Errors
    _register_error_handlers(app)

    return app


def _configure_logging(app: Flask) -> None:
    level = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)


def _error_payload(error: str, message: str) -> dict:
    return {
        "success": False,
        "error": error,
        "message": message,
        "request_id": g.get("request_id") or str(uuid.uuid4()),
    }


def _json_error(error: str, message: str, status: int):
    payload = _error_payload(error, message)
    response = jsonify(payload)
    response.status_code = status
    response.headers.setdefault("X-Request-ID", payload["request_id"])
    return response


@jwt.token_in_blocklist_loader
def _token_revoked(jwt_header, jwt_payload) -> bool:
    return current_app.extensions["portal"].sessions.is_revoked(jwt_payload)


@jwt.unauthorized_loader
def _missing_token(reason: str):
    return _json_error("Unauthorized", "Authentication required.", 401)


@jwt.invalid_token_loader
def _invalid_token(reason: str):
    return _json_error("Unauthorized", "Invalid session token.", 401)


@jwt.revoked_token_loader
def _revoked_token(jwt_header, jwt_payload):
    return _json_error("Unauthorized", "Session has been logged out.", 401)


def _register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers with request IDs."""

    @app.before_request
    def _assign_request_id():  # pragma: no cover
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.after_request
    def _add_request_id_header(response):  # pragma: no cover
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        return _json_error(
            getattr(error, "name", "Error"),
            error.description or "Request failed.",
            error.code or 500,
        )

    @app.errorhandler(StorageUnavailableError)
    def _handle_storage_unavailable(error: StorageUnavailableError):
        app.logger.error("Storage unavailable: %s", error)
        return _json_error(
            ErrorKind.UNREACHABLE.label,
            "Service temporarily unavailable. Please try again later.",
            int(ErrorKind.UNREACHABLE.status),
        )

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):  # pragma: no cover
        app.logger.exception("Unhandled application error", exc_info=error)
        return _json_error("Internal Server Error", "An unexpected error occurred.", 500)


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", Config.PORT)))
