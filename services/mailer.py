"""Outbound email for verification links and temporary passwords.

Configuration comes from the Flask config:

    SMTP_HOST=smtp.example.com
    SMTP_PORT=587
    SMTP_USERNAME=portal@example.com
    SMTP_PASSWORD=...
    SMTP_FROM_EMAIL=no-reply@portal.local
    SMTP_USE_TLS=true
    SMTP_USE_SSL=false

With ``MAIL_SUPPRESS_SEND`` enabled nothing leaves the process; messages are
collected in ``Mailer.outbox`` instead.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Mapping

logger = logging.getLogger(__name__)


class MailDeliveryError(RuntimeError):
    """Raised when a message could not be handed to the mail transport."""


class Mailer:
    def __init__(self, config: Mapping):
        self.host = config.get("SMTP_HOST")
        self.port = int(config.get("SMTP_PORT", 587))
        self.username = config.get("SMTP_USERNAME")
        self.password = config.get("SMTP_PASSWORD")
        self.from_email = config.get("SMTP_FROM_EMAIL") or self.username or ""
        self.from_name = config.get("SMTP_FROM_NAME") or ""
        self.use_tls = bool(config.get("SMTP_USE_TLS", True))
        self.use_ssl = bool(config.get("SMTP_USE_SSL", False))
        self.suppress_send = bool(config.get("MAIL_SUPPRESS_SEND", False))
        self.outbox: list[EmailMessage] = []

    def _create_smtp_client(self) -> smtplib.SMTP:
        """Open an SMTP connection, using SSL or optional STARTTLS."""

        if not self.host:
            raise MailDeliveryError("SMTP_HOST is not configured.")

        try:
            if self.use_ssl:
                server: smtplib.SMTP = smtplib.SMTP_SSL(self.host, self.port, timeout=30)
            else:
                server = smtplib.SMTP(self.host, self.port, timeout=30)
        except (OSError, smtplib.SMTPException) as exc:
            raise MailDeliveryError(f"Cannot connect to {self.host}:{self.port}.") from exc

        if self.use_tls and not self.use_ssl:
            try:
                server.starttls()
            except (OSError, smtplib.SMTPException) as exc:
                server.close()
                raise MailDeliveryError(f"STARTTLS failed with {self.host}.") from exc
        return server

    def _build(self, to_email: str, subject: str, text_body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = (
            f"{self.from_name} <{self.from_email}>" if self.from_name else self.from_email
        )
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.set_content(text_body)
        return msg

    def send(self, to_email: str, subject: str, text_body: str) -> None:
        """Send a plain-text message to a single recipient.

        Raises ``MailDeliveryError`` if the transport is missing or fails.
        """

        try:
            msg = self._build(to_email, subject, text_body)
        except ValueError as exc:
            # Header values may not contain line breaks.
            raise MailDeliveryError(f"Cannot address a message to {to_email!r}.") from exc
        if self.suppress_send:
            self.outbox.append(msg)
            return

        server = self._create_smtp_client()
        try:
            if self.username:
                server.login(self.username, self.password or "")
            server.send_message(msg)
        except smtplib.SMTPException as exc:
            raise MailDeliveryError(f"Delivery to {to_email} failed.") from exc
        finally:
            try:
                server.quit()
            except (OSError, smtplib.SMTPException):
                pass
        logger.info("Sent %r to %s", subject, to_email)

    def send_verification_email(self, to_email: str, verify_url: str) -> None:
        self.send(
            to_email,
            "Verify your Portal email",
            f"Welcome! Please verify your email by visiting this link: {verify_url}",
        )

    def send_reset_email(self, to_email: str, temp_password: str) -> None:
        self.send(
            to_email,
            "Your Portal temporary password",
            f"Here is your temporary password: {temp_password}\n\n"
            "Please log in and change it.",
        )
