"""
Mail delivery abstraction.

Uses SMTP when SMTP_HOST is set, otherwise falls back to a mailer that only
logs (nothing is delivered). The log-only fallback is refused in production.
"""
from __future__ import annotations

import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage

from streamia_backend.errors import ConfigurationError
from streamia_backend.settings import PRODUCTION, Settings

logger = logging.getLogger(__name__)


class MailDeliveryError(RuntimeError):
    """Raised when a message could not be handed to the mail server."""

    pass


class Mailer(ABC):
    """Abstract mailer interface."""

    @abstractmethod
    def send(self, to: str, subject: str, html: str, text: str | None = None) -> None:
        """Deliver one message or raise `MailDeliveryError`."""
        pass


class LoggingMailer(Mailer):
    """Development mailer: records messages instead of sending them."""

    def __init__(self) -> None:
        self.outbox: list[EmailMessage] = []

    def send(self, to: str, subject: str, html: str, text: str | None = None) -> None:
        message = _build_message("noreply@localhost", to, subject, html, text)
        self.outbox.append(message)
        logger.warning(f"SMTP_HOST not set; email to {to} ({subject!r}) was not sent")


class SmtpMailer(Mailer):
    def __init__(
        self,
        host: str,
        port: int,
        *,
        sender: str,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout_seconds = timeout_seconds

    def send(self, to: str, subject: str, html: str, text: str | None = None) -> None:
        message = _build_message(self.sender, to, subject, html, text)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username and self.password:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(f"Failed to send email to {to}: {exc}")
            raise MailDeliveryError(f"Failed to send email: {exc}") from exc
        logger.info(f"Sent email {subject!r} to {to}")


def _build_message(sender: str, to: str, subject: str, html: str, text: str | None) -> EmailMessage:
    message = EmailMessage()
    message["From"] = sender
    message["To"] = to
    message["Subject"] = subject
    message.set_content(text or "This message requires an HTML-capable mail client.")
    message.add_alternative(html, subtype="html")
    return message


def build_mailer(settings: Settings) -> Mailer:
    if settings.smtp_host:
        return SmtpMailer(
            settings.smtp_host,
            settings.smtp_port,
            sender=settings.email_from,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
        )
    if settings.app_env == PRODUCTION:
        raise ConfigurationError("SMTP_HOST must be set when APP_ENV=production")
    logger.warning("SMTP_HOST is not set; outgoing mail is only logged")
    return LoggingMailer()
