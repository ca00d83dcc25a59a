from __future__ import annotations

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from streamia_backend.errors import ConfigurationError
from streamia_backend.mail.mailer import LoggingMailer, MailDeliveryError, SmtpMailer, build_mailer
from streamia_backend.mail.templates import password_reset_email, welcome_email
from streamia_backend.settings import Settings


def test_build_mailer_picks_smtp_only_when_configured() -> None:
    assert isinstance(build_mailer(Settings()), LoggingMailer)
    smtp = build_mailer(Settings(smtp_host="smtp.example.com", email_from="hello@streamia.com"))
    assert isinstance(smtp, SmtpMailer)
    assert smtp.sender == "hello@streamia.com"


def test_build_mailer_refuses_log_only_mail_in_production() -> None:
    with pytest.raises(ConfigurationError, match="SMTP_HOST"):
        build_mailer(Settings(app_env="production"))
    assert isinstance(build_mailer(Settings(app_env="test")), LoggingMailer)
    assert isinstance(build_mailer(Settings(app_env="production", smtp_host="smtp.example.com")), SmtpMailer)


def test_logging_mailer_records_messages() -> None:
    mailer = LoggingMailer()
    mailer.send("ana@example.com", "Hi", "<p>Hi</p>", "Hi")
    assert mailer.outbox[0]["To"] == "ana@example.com"
    assert mailer.outbox[0].get_body(preferencelist=("html",)).get_content().strip() == "<p>Hi</p>"


@patch("streamia_backend.mail.mailer.smtplib.SMTP")
def test_smtp_mailer_sends_with_tls_and_login(mock_smtp: MagicMock) -> None:
    server = mock_smtp.return_value.__enter__.return_value
    mailer = SmtpMailer("smtp.example.com", 587, sender="noreply@streamia.com", username="u", password="p")

    mailer.send("ana@example.com", "Subject", "<p>x</p>")

    mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=10.0)
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("u", "p")
    sent = server.send_message.call_args.args[0]
    assert sent["From"] == "noreply@streamia.com"


@patch("streamia_backend.mail.mailer.smtplib.SMTP")
def test_smtp_failure_becomes_delivery_error(mock_smtp: MagicMock) -> None:
    mock_smtp.side_effect = smtplib.SMTPConnectError(421, "unavailable")
    mailer = SmtpMailer("smtp.example.com", 587, sender="noreply@streamia.com")

    with pytest.raises(MailDeliveryError):
        mailer.send("ana@example.com", "Subject", "<p>x</p>")


def test_templates_escape_names_and_include_links() -> None:
    subject, html, text = welcome_email("<Ana>", "http://frontend.test")
    assert subject == "Welcome to Streamia!"
    assert "&lt;Ana&gt;" in html
    assert "http://frontend.test/movies" in text

    subject, html, text = password_reset_email("Ana", "http://frontend.test/reset-password/abc")
    assert "http://frontend.test/reset-password/abc" in html
    assert "60 minutes" in text
