"""Password recovery and password changes.

Three ways to replace a password, all ending in ``CredentialStore.set_password``:

* ``request_reset``: a temporary password is mailed to a verified account;
* ``change_password``: self-service, proven by the current password;
* ``admin_set_password``: admin capability stands in for the current password.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from models.records import PublicUser
from storage import CredentialStore
from utils.passwords import generate_temporary_password

from .accounts import normalize_email, validate_password
from .authorization import USER_SET_PASSWORD, AuthorizationGate
from .mailer import Mailer, MailDeliveryError
from .results import Err, ErrorKind, Ok, Result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResetTicket:
    """Outcome of a reset request.

    ``temporary_password`` is only populated when the deployment echoes it
    back for development; otherwise it exists solely in the outgoing email.
    """

    temporary_password: Optional[str] = None


class PasswordRecovery:
    def __init__(
        self,
        store: CredentialStore,
        gate: AuthorizationGate,
        mailer: Mailer,
        *,
        expose_temp_password: bool = False,
    ):
        self.store = store
        self.gate = gate
        self.mailer = mailer
        self.expose_temp_password = expose_temp_password

    def request_reset(self, email: str) -> Result[ResetTicket]:
        email = normalize_email(email)
        if not email:
            return Err(ErrorKind.VALIDATION_ERROR, "Email required.")

        record = self.store.find_by_email(email)
        if record is None:
            return Err(ErrorKind.USER_NOT_FOUND, "No account found for that email.")
        if not record.is_verified:
            return Err(ErrorKind.EMAIL_NOT_VERIFIED, "Email not verified yet.")

        temp_password = generate_temporary_password()
        self.store.set_password(record.id, temp_password)
        logger.info("Issued temporary password for account %s", record.id)

        try:
            self.mailer.send_reset_email(record.email, temp_password)
        except MailDeliveryError as exc:
            logger.error("Failed to send reset email for account %s: %s", record.id, exc)
            if not self.expose_temp_password:
                return Err(ErrorKind.UNREACHABLE, "Could not process reset.")

        return Ok(
            ResetTicket(
                temporary_password=temp_password if self.expose_temp_password else None
            )
        )

    def change_password(
        self, email: str, current_password: str, new_password: str
    ) -> Result[None]:
        if not email or not current_password or not new_password:
            return Err(ErrorKind.VALIDATION_ERROR, "Missing fields.")
        invalid = validate_password(new_password, "New password")
        if invalid:
            return invalid

        record = self.store.find_by_email(email)
        if record is None:
            return Err(ErrorKind.USER_NOT_FOUND, "User not found.")
        if not self.store.verify_password(record, current_password):
            return Err(ErrorKind.INVALID_CREDENTIALS, "Current password incorrect.")

        self.store.set_password(record.id, new_password)
        logger.info("Account %s changed its password", record.id)
        return Ok()

    def admin_set_password(
        self, caller: Optional[PublicUser], user_id: str, new_password: str
    ) -> Result[None]:
        admin = self.gate.require_admin(caller)
        if not admin.ok:
            return admin
        invalid = validate_password(new_password, "New password")
        if invalid:
            return invalid

        allowed = self.gate.authorize_user_action(caller, user_id, USER_SET_PASSWORD)
        if not allowed.ok:
            return allowed

        if not self.store.set_password(user_id, new_password):
            return Err(ErrorKind.USER_NOT_FOUND, "User not found.")
        logger.info("Admin %s set the password of account %s", caller.id, user_id)
        return Ok()
