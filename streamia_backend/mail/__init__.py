"""
Outbound email (welcome and password-reset messages).
"""

from streamia_backend.mail.mailer import LoggingMailer, MailDeliveryError, Mailer, SmtpMailer, build_mailer

__all__ = [
    "LoggingMailer",
    "MailDeliveryError",
    "Mailer",
    "SmtpMailer",
    "build_mailer",
]
