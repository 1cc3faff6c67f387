"""Outbound email over SMTP with implicit TLS."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from liam_relay.config import settings

logger = logging.getLogger(__name__)


class Mailer:
    """Send plain-text mail through an authenticated SMTP_SSL session.

    Parameters default to the Gmail settings in :mod:`liam_relay.config`.
    """

    def __init__(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        user: str | None = None,
        password: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.host = host or settings.smtp_host
        self.port = port or settings.smtp_port
        self.user = user if user is not None else settings.gmail_user
        self.password = password if password is not None else settings.gmail_app_pass
        self.timeout = timeout

    def build_message(self, to: str, subject: str, text: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.user
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text)
        return message

    def send(self, to: str, subject: str, text: str) -> None:
        """Deliver one message; SMTP errors propagate to the caller."""
        message = self.build_message(to, subject, text)
        with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.login(self.user, self.password)
            smtp.send_message(message)
        logger.info("Sent %r to %s", subject, to)
