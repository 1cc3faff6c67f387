"""Mail — SMTP delivery of relay replies."""

from liam_relay.mail.smtp import Mailer

__all__ = ["Mailer"]
