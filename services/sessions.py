"""Session handling on top of flask-jwt-extended.

A session is a non-expiring access token whose claims carry the public
projection of the user. It is never time-bound; logging out revokes it by
``jti``. Handlers obtain the caller with ``current()`` and pass the returned
identity explicitly into the services.
"""

from __future__ import annotations

from typing import Optional

from flask_jwt_extended import (
    create_access_token,
    get_jwt,
    get_jwt_identity,
    verify_jwt_in_request,
)

from models.records import PublicUser
from storage import CredentialStore


class SessionManager:
    def __init__(self, store: CredentialStore):
        self.store = store

    def establish(self, user: PublicUser) -> str:
        """Issue a token for an authenticated user."""

        return create_access_token(
            identity=user.id,
            additional_claims={"user": user.to_dict()},
            expires_delta=False,
        )

    def current(self) -> Optional[PublicUser]:
        """Return the caller of the current request, or None.

        The record is reloaded so a deleted, unverified or no longer approved
        account stops acting through an old token.
        """

        verify_jwt_in_request(optional=True)
        user_id = get_jwt_identity()
        if user_id is None:
            return None
        record = self.store.find_by_id(str(user_id))
        if record is None or not record.is_verified or record.status != "approved":
            return None
        return record.public()

    def clear(self) -> None:
        """Revoke the token presented with the current request."""

        verify_jwt_in_request()
        self.store.revoke_token(get_jwt()["jti"])

    def is_revoked(self, jwt_payload: dict) -> bool:
        jti = jwt_payload.get("jti")
        return jti is None or self.store.is_token_revoked(jti)
