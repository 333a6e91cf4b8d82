"""Account lifecycle: signup, email verification, approval and login.

A user's state is two independent dimensions, ``is_verified`` and ``status``
(pending, approved, rejected). Signup starts at unverified + pending; token
redemption only touches the first, admins only touch the second.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional
from urllib.parse import urlencode

from email_validator import EmailNotValidError, validate_email

from models.records import USER_STATUSES, PublicUser, UserRecord
from storage import CredentialStore, DuplicateRecordError
from utils.passwords import generate_verification_token

from .authorization import USER_DELETE, USER_SET_STATUS, AuthorizationGate
from .mailer import Mailer, MailDeliveryError
from .results import Err, ErrorKind, Ok, Result

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72


def normalize_email(raw_email: Optional[str]) -> str:
    """Normalize an email string by stripping whitespace and lowering case."""
    return (raw_email or "").strip().lower()


def validate_password(password: Optional[str], field: str = "Password") -> Optional[Err]:
    if not password:
        return Err(ErrorKind.VALIDATION_ERROR, f"{field} is required.")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return Err(
            ErrorKind.VALIDATION_ERROR,
            f"{field} must be at most {MAX_PASSWORD_BYTES} bytes long.",
        )
    return None


class AccountService:
    def __init__(
        self,
        store: CredentialStore,
        gate: AuthorizationGate,
        mailer: Mailer,
        public_url: str,
    ):
        self.store = store
        self.gate = gate
        self.mailer = mailer
        self.public_url = public_url.rstrip("/")

    def verification_url(self, token: str) -> str:
        return f"{self.public_url}/api/auth/verify?{urlencode({'token': token})}"

    def signup(self, name: str, email: str, password: str) -> Result[PublicUser]:
        name = (name or "").strip()
        email = normalize_email(email)
        if not name or not email or not password:
            return Err(ErrorKind.VALIDATION_ERROR, "Missing fields.")
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError:
            return Err(ErrorKind.VALIDATION_ERROR, "A valid email address is required.")
        invalid = validate_password(password)
        if invalid:
            return invalid

        token = generate_verification_token()
        record = UserRecord(
            id=str(uuid.uuid4()),
            name=name,
            email=email,
            password_hash=self.store.hash_password(password),
            role="user",
            status="pending",
            is_verified=False,
            verification_token=token,
        )
        try:
            created = self.store.create_user(record)
        except DuplicateRecordError:
            return Err(ErrorKind.CONFLICT, "Email already exists.")

        try:
            self.mailer.send_verification_email(email, self.verification_url(token))
        except MailDeliveryError as exc:
            # Account creation stands; the link can be resent out of band.
            logger.error("Failed to send verification email to %s: %s", email, exc)

        logger.info("Created account %s", created.id)
        return Ok(created.public())

    def verify(self, token: str) -> Result[PublicUser]:
        if not token:
            return Err(ErrorKind.VALIDATION_ERROR, "Missing token.")
        record = self.store.redeem_verification_token(token)
        if record is None:
            return Err(ErrorKind.INVALID_TOKEN, "Invalid token.")
        logger.info("Verified email for account %s", record.id)
        return Ok(record.public())

    def authenticate(self, email: str, password: str) -> Result[PublicUser]:
        """Check credentials, then the account lifecycle, in that order.

        "Not found" and "wrong password" are reported separately, which reveals
        whether an email is registered. Clients depend on the distinction.
        """

        if not email or not password:
            return Err(ErrorKind.VALIDATION_ERROR, "Missing credentials.")

        record = self.store.find_by_email(email)
        if record is None:
            return Err(ErrorKind.USER_NOT_FOUND, "User not found.")
        if not self.store.verify_password(record, password):
            return Err(ErrorKind.INVALID_CREDENTIALS, "Invalid password.")
        if not record.is_verified:
            return Err(
                ErrorKind.EMAIL_NOT_VERIFIED,
                "Email not verified. Please check your inbox.",
            )
        if record.status == "pending":
            return Err(ErrorKind.PENDING_APPROVAL, "Account is pending approval.")
        if record.status == "rejected":
            return Err(ErrorKind.ACCOUNT_DEACTIVATED, "Account has been deactivated.")
        return Ok(record.public())

    def list_users(self, caller: Optional[PublicUser]) -> Result[list[PublicUser]]:
        allowed = self.gate.require_admin(caller)
        if not allowed.ok:
            return allowed
        return Ok([record.public() for record in self.store.list_users()])

    def set_status(
        self, caller: Optional[PublicUser], user_id: str, status: str
    ) -> Result[None]:
        admin = self.gate.require_admin(caller)
        if not admin.ok:
            return admin
        if status not in USER_STATUSES:
            return Err(
                ErrorKind.VALIDATION_ERROR,
                "Status must be one of: {}.".format(", ".join(USER_STATUSES)),
            )
        allowed = self.gate.authorize_user_action(
            caller, user_id, USER_SET_STATUS, new_status=status
        )
        if not allowed.ok:
            return allowed
        if not self.store.set_status(user_id, status):
            return Err(ErrorKind.USER_NOT_FOUND, "User not found.")
        logger.info("Admin %s set account %s to %s", caller.id, user_id, status)
        return Ok()

    def delete_user(self, caller: Optional[PublicUser], user_id: str) -> Result[None]:
        allowed = self.gate.authorize_user_action(caller, user_id, USER_DELETE)
        if not allowed.ok:
            return allowed
        if not self.store.delete_user(user_id):
            return Err(ErrorKind.USER_NOT_FOUND, "User not found.")
        logger.info("Admin %s deleted account %s", caller.id, user_id)
        return Ok()
