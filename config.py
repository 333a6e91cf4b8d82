"""Application configuration module."""

import os
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y"}


class Config:
    """Base configuration for the Flask application."""

    # Core
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)
    # Sessions are not time-bound; logout revokes the token instead.
    JWT_ACCESS_TOKEN_EXPIRES = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Storage
    STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "sql").strip().lower()
    LOCAL_STORE_PATH = os.getenv(
        "LOCAL_STORE_PATH", str(Path("workspace") / "portal.json")
    )
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///portal.db")
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_size": int(os.getenv("DB_POOL_SIZE", "10")),
        "max_overflow": int(os.getenv("DB_MAX_OVERFLOW", "0")),
        "pool_timeout": int(os.getenv("DB_POOL_TIMEOUT", "30")),
        "pool_pre_ping": True,
    }

    # Public URLs
    PORT = int(os.getenv("PORT", os.getenv("API_PORT", "4000")))
    API_PUBLIC_URL = os.getenv("API_PUBLIC_URL", f"http://localhost:{PORT}").rstrip("/")

    # CORS
    _raw_origins = os.getenv("ORIGINS", "*")
    if _raw_origins.strip() == "*":
        CORS_ORIGINS = "*"
    else:
        CORS_ORIGINS = [o.strip() for o in _raw_origins.split(",") if o.strip()]

    # Accounts
    ROOT_ADMIN_EMAIL = os.getenv("ROOT_ADMIN_EMAIL", "admin@portal.com").strip().lower()
    ROOT_ADMIN_NAME = os.getenv("ROOT_ADMIN_NAME", "System Admin")
    ROOT_ADMIN_PASSWORD = os.getenv("ROOT_ADMIN_PASSWORD", "admin")
    BCRYPT_ROUNDS = max(10, int(os.getenv("BCRYPT_ROUNDS", "10")))
    # Development only: echo the temporary password in the /forgot response.
    EXPOSE_TEMP_PASSWORD = _env_bool("EXPOSE_TEMP_PASSWORD", False)

    # Outbound mail
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME", os.getenv("SMTP_USER"))
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", os.getenv("SMTP_PASS"))
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL", "no-reply@portal.local")
    SMTP_FROM_NAME = os.getenv("SMTP_FROM_NAME", "App Portal")
    SMTP_USE_TLS = _env_bool("SMTP_USE_TLS", True)
    SMTP_USE_SSL = _env_bool("SMTP_USE_SSL", False)
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND", False)
