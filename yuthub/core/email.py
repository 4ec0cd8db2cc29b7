from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from yuthub.core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(self) -> None:
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.username = settings.smtp_username
        self.password = settings.smtp_password
        self.sender = settings.smtp_from
        self.use_tls = settings.smtp_use_tls

    @property
    def configured(self) -> bool:
        return bool(self.host)

    def _send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(message)

    async def send(self, *, to: str, subject: str, body: str) -> bool:
        if not self.configured:
            logger.info("SMTP not configured, skipping email to=%s subject=%r", to, subject)
            return False

        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = to
        message.set_content(body)

        await asyncio.to_thread(self._send, message)
        logger.info("Email sent to=%s subject=%r", to, subject)
        return True


def render_dunning_email(organization_name: str, invoice_id: str) -> tuple[str, str]:
    subject = "Action required: your YUTHUB payment failed"
    body = (
        f"Hello {organization_name},\n\n"
        f"We were unable to collect payment for invoice {invoice_id}. "
        "Your subscription is now past due and access to some features may be restricted.\n\n"
        f"Please update your payment method at {settings.app_base_url}/billing "
        "to keep your account active.\n\n"
        "The YUTHUB team\n"
    )
    return subject, body
