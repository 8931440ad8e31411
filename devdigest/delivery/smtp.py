"""
SMTP delivery transport for the newsletter.

Builds a multipart/alternative message (plaintext + HTML) and sends it over
STARTTLS. smtplib blocks, so each send runs in a worker thread and the
dispatcher's event loop keeps serving other recipients.
"""

from __future__ import annotations

import asyncio
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate
from typing import Any, Protocol

from devdigest.errors import DeliveryError
from devdigest.infrastructure.settings import (
    SMTP_FROM_EMAIL,
    SMTP_FROM_NAME,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_TIMEOUT,
    SMTP_USER,
)
from devdigest.observability.logging import get_logger
from devdigest.utils.redaction import redact_email

logger = get_logger(__name__)


class DeliveryTransport(Protocol):
    """Delivery collaborator: raise (or return False) on failure."""

    async def send(self, recipient: str, subject: str, html: str, text: str) -> bool | None: ...


class SmtpTransport:
    """Sends newsletter e-mails through an SMTP relay (Gmail by default)."""

    def __init__(
        self,
        smtp_host: str | None = None,
        smtp_port: int | None = None,
        smtp_user: str | None = None,
        smtp_password: str | None = None,
        from_email: str | None = None,
        from_name: str | None = None,
        timeout: float = SMTP_TIMEOUT,
    ):
        self.smtp_host = smtp_host or SMTP_HOST
        self.smtp_port = smtp_port or SMTP_PORT
        self.smtp_user = smtp_user or SMTP_USER
        self.smtp_password = smtp_password or SMTP_PASSWORD
        self.from_email = from_email or SMTP_FROM_EMAIL or self.smtp_user
        self.from_name = from_name or SMTP_FROM_NAME
        self.timeout = timeout

        if not all([self.smtp_host, self.smtp_user, self.smtp_password, self.from_email]):
            logger.warning("SMTP not fully configured. Set SMTP_* environment variables.")
            self.enabled = False
        else:
            self.enabled = True
            logger.info("SMTP delivery configured: %s:%s", self.smtp_host, self.smtp_port)

    def build_message(self, recipient: str, subject: str, html: str, text: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((self.from_name, self.from_email or ""))
        msg["To"] = recipient
        msg["Date"] = formatdate(localtime=True)
        msg.attach(MIMEText(text, "plain", "utf-8"))
        msg.attach(MIMEText(html, "html", "utf-8"))
        return msg

    async def send(self, recipient: str, subject: str, html: str, text: str) -> bool:
        """
        Send one newsletter e-mail.

        Raises:
            DeliveryError: If SMTP is not configured or the relay rejects the message
        """
        if not self.enabled:
            raise DeliveryError("SMTP delivery not enabled. Configure SMTP_* environment variables.")

        msg = self.build_message(recipient, subject, html, text)
        await asyncio.to_thread(self._send_blocking, msg)
        logger.info("Newsletter sent to: %s", redact_email(recipient))
        return True

    def _send_blocking(self, msg: MIMEMultipart) -> None:
        if not self.smtp_user or not self.smtp_password:
            raise DeliveryError("SMTP credentials missing")
        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"SMTP send failed: {e}") from e

    def get_config_status(self) -> dict[str, Any]:
        """SMTP configuration status (no secrets)"""
        return {
            "enabled": self.enabled,
            "smtp_host": self.smtp_host,
            "smtp_port": self.smtp_port,
            "smtp_user_set": bool(self.smtp_user),
            "smtp_password_set": bool(self.smtp_password),
            "from_name": self.from_name,
        }
