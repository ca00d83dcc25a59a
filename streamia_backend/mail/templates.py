from __future__ import annotations

from html import escape

from streamia_backend.security.passwords import RESET_TOKEN_LIFETIME


def welcome_email(first_name: str, frontend_url: str) -> tuple[str, str, str]:
    """Returns (subject, html, text)."""
    name = escape(first_name)
    link = f"{frontend_url}/movies"
    html = (
        f"<h1>Welcome to Streamia!</h1>"
        f"<p>Hi {name},</p>"
        f"<p>Your account has been created. Start exploring the catalog:</p>"
        f'<p><a href="{escape(link)}">Browse movies</a></p>'
    )
    text = f"Hi {first_name},\n\nYour account has been created. Browse movies: {link}\n"
    return "Welcome to Streamia!", html, text


def password_reset_email(first_name: str, reset_url: str) -> tuple[str, str, str]:
    minutes = int(RESET_TOKEN_LIFETIME.total_seconds() // 60)
    html = (
        f"<h2>Password Reset</h2>"
        f"<p>Hello {escape(first_name)},</p>"
        f"<p>You have requested to reset your password. Click the link below:</p>"
        f'<p><a href="{escape(reset_url)}">{escape(reset_url)}</a></p>'
        f"<p>This link expires in {minutes} minutes. "
        f"If you did not request this change, please ignore this message.</p>"
    )
    text = (
        f"Hello {first_name},\n\nReset your password: {reset_url}\n\n"
        f"This link expires in {minutes} minutes.\n"
    )
    return "Reset your password - Streamia", html, text
