"""Outgoing account emails (verification and password reset)."""
from __future__ import annotations

import logging
from email.mime.text import MIMEText

import aiosmtplib

from .config import Settings

logger = logging.getLogger(__name__)


class Mailer:
    """Sends plain-text account emails over SMTP.

    When no SMTP host is configured the message is logged and dropped, which
    keeps local development and tests free of a mail server.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return bool(self.settings.smtp_host)

    async def send(self, to: str, subject: str, body: str) -> bool:
        """Send one message; returns False instead of raising on SMTP errors."""

        if not self.enabled:
            logger.info("SMTP not configured, skipping email to %s: %s", to, subject)
            return False

        message = MIMEText(body, "plain", "utf-8")
        message["From"] = self.settings.mail_from
        message["To"] = to
        message["Subject"] = subject

        try:
            await aiosmtplib.send(
                message,
                hostname=self.settings.smtp_host,
                port=self.settings.smtp_port,
                username=self.settings.smtp_user,
                password=self.settings.smtp_password,
                start_tls=self.settings.smtp_port == 587,
                timeout=30,
            )
        except aiosmtplib.SMTPException as exc:
            logger.error("SMTP error while sending email to %s: %s", to, exc)
            return False

        logger.info("Email sent to %s: %s", to, subject)
        return True

    async def send_verification(self, to: str, token: str) -> bool:
        verify_url = f"{self.settings.server_url}/auth/verify/{token}"
        return await self.send(
            to,
            "BetLogic - Verify Your Account",
            f"Please verify your account by clicking: {verify_url}",
        )

    async def send_password_reset(self, to: str, token: str) -> bool:
        reset_url = f"{self.settings.server_url}/reset-password?token={token}"
        return await self.send(
            to,
            "BetLogic - Reset Your Password",
            f"A password reset was requested for your account.\n"
            f"Use this link to choose a new password: {reset_url}\n"
            f"If you did not request this, you can ignore this email.",
        )
