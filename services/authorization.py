"""Capability checks guarding mutating operations.

There is no role hierarchy: a caller either is an admin or is not, and either
is or is not the target of the action. Every check runs before any write, so a
refused call leaves storage untouched.
"""

from __future__ import annotations

import logging
from typing import Optional

from models.records import PublicUser, UserRecord
from storage import CredentialStore

from .results import Err, ErrorKind, Ok, Result

logger = logging.getLogger(__name__)

USER_DELETE = "delete"
USER_SET_STATUS = "set_status"
USER_SET_PASSWORD = "set_password"


def is_admin(identity: Optional[PublicUser]) -> bool:
    return identity is not None and identity.is_admin


def is_self(identity: Optional[PublicUser], target_id: str) -> bool:
    return identity is not None and identity.id == target_id


class AuthorizationGate:
    def __init__(self, store: CredentialStore, root_admin_email: str):
        self.store = store
        self.root_admin_email = root_admin_email.strip().lower()

    def is_root_admin(self, record: UserRecord) -> bool:
        return record.email.lower() == self.root_admin_email

    def require_admin(self, identity: Optional[PublicUser]) -> Result[PublicUser]:
        if not is_admin(identity):
            logger.info(
                "Refused admin action for %s",
                identity.id if identity else "anonymous caller",
            )
            return Err(ErrorKind.FORBIDDEN, "Admin privileges required.")
        return Ok(identity)

    def authorize_user_action(
        self,
        identity: Optional[PublicUser],
        target_id: str,
        action: str,
        *,
        new_status: Optional[str] = None,
    ) -> Result[UserRecord]:
        """Check an admin action against a target user.

        Returns the target record when the action may proceed.
        """

        admin = self.require_admin(identity)
        if not admin.ok:
            return admin

        target = self.store.find_by_id(target_id)
        if target is None:
            return Err(ErrorKind.USER_NOT_FOUND, "User not found.")

        if self.is_root_admin(target):
            messages = {
                USER_DELETE: "Cannot delete root admin.",
                USER_SET_STATUS: "Cannot change the root admin's status.",
                USER_SET_PASSWORD: "Cannot force a password on the root admin.",
            }
            return Err(ErrorKind.INVALID_OPERATION, messages[action])

        if is_self(identity, target_id):
            if action == USER_DELETE:
                return Err(ErrorKind.INVALID_OPERATION, "You cannot delete your own account.")
            if action == USER_SET_STATUS and new_status != "approved":
                return Err(
                    ErrorKind.INVALID_OPERATION, "You cannot deactivate your own account."
                )

        return Ok(target)
