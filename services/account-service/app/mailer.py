"""SMTP email adapter for account notifications."""

from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

from .config import Settings, get_settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when the SMTP server rejects or fails to deliver a message."""


@dataclass(slots=True)
class ActivationEmailParameters:
    """Template values for the account activation email."""

    name: str | None
    activation_link: str


class SmtpEmailSender:
    """Sends templated account emails using the SMTP credentials from Settings."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    @property
    def configured(self) -> bool:
        s = self._settings
        return bool(s.smtp_host and s.smtp_user and s.smtp_password and s.smtp_port)

    async def send_account_activation_email(
        self, to_address: str, from_address: str, parameters: ActivationEmailParameters
    ) -> None:
        """Send the activation link to a newly created account."""
        greeting = f"Hello {parameters.name}," if parameters.name else "Hello,"
        link = parameters.activation_link
        html_body = f"""
        <p>{escape(greeting)}</p>
        <p>Your account has been created. Confirm it by following the link below:</p>
        <p><a href="{escape(link, quote=True)}">Activate my account</a></p>
        <p>If the button does not work, copy this address into your browser:</p>
        <p>{escape(link)}</p>
        """
        text_body = f"{greeting}\n\nActivate your account: {link}\n"
        await self.send("Activate your account", to_address, from_address, html_body, text_body)

    async def send(
        self, subject: str, to_address: str, from_address: str, html_body: str, text_body: str | None = None
    ) -> None:
        if not self.configured:
            logger.warning("SMTP is not configured; skipping email to %s", to_address)
            return
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = from_address
        msg["To"] = to_address
        msg.attach(MIMEText(text_body or html_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))
        try:
            await asyncio.to_thread(self._deliver, from_address, to_address, msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("failed to send email to %s: %s", to_address, exc)
            raise EmailDeliveryError(f"failed to send email to {to_address}") from exc
        logger.info("sent '%s' email to %s", subject, to_address)

    def _deliver(self, from_address: str, to_address: str, message: str) -> None:
        s = self._settings
        if s.smtp_port == 465:
            with smtplib.SMTP_SSL(s.smtp_host, s.smtp_port, context=ssl.create_default_context()) as server:
                server.login(s.smtp_user, s.smtp_password)
                server.sendmail(from_address, [to_address], message)
        else:
            with smtplib.SMTP(s.smtp_host, s.smtp_port) as server:
                server.ehlo()
                server.starttls(context=ssl.create_default_context())
                server.login(s.smtp_user, s.smtp_password)
                server.sendmail(from_address, [to_address], message)
