"""Database initialization and model exports."""

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()

# Import models to register them with SQLAlchemy metadata.
from .user import User  # noqa: E402,F401
from .app_entry import AppEntry  # noqa: E402,F401
from .category import Category  # noqa: E402,F401
from .revoked_token import RevokedToken  # noqa: E402,F401

__all__ = [
    "db",
    "User",
    "AppEntry",
    "Category",
    "RevokedToken",
]
