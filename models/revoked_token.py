"""Revoked session tokens."""

from . import db
from .records import utcnow


class RevokedToken(db.Model):
    """A logged-out access token, identified by its ``jti`` claim."""

    __tablename__ = "revoked_tokens"

    jti = db.Column(db.String(64), primary_key=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
