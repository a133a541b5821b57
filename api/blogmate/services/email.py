"""Email service using Resend for sending transactional emails."""

from __future__ import annotations

import logging
from typing import Any

import resend

from ..settings import Settings

logger = logging.getLogger(__name__)


def _init_resend(settings: Settings) -> bool:
    """Initialize Resend API key. Returns True if configured."""
    if not settings.email_key:
        logger.warning("EMAIL_KEY not configured - email sending disabled")
        return False
    resend.api_key = settings.email_key
    return True


def _render(title: str, body: str, link: str) -> tuple[str, str]:
    html_content = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{title}</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <h1 style="font-size: 22px;">{title}</h1>
    <p>{body}</p>
    <p style="text-align: center; margin: 30px 0;">
        <a href="{link}" style="background: #2f6fed; color: white; text-decoration: none; padding: 12px 24px; border-radius: 5px;">Click the link</a>
    </p>
    <p style="color: #666; font-size: 12px; word-break: break-all;">{link}</p>
</body>
</html>
"""
    text_content = f"{title}\n\n{body}\n\n{link}\n"
    return html_content, text_content


def _send(settings: Settings, to_email: str, subject: str, body: str, link: str) -> dict[str, Any] | None:
    if not _init_resend(settings):
        logger.info(f"Email sending disabled - would send '{subject}' to {to_email}")
        return None

    html_content, text_content = _render(subject, body, link)
    try:
        response = resend.Emails.send(
            {
                "from": settings.email_from,
                "to": [to_email],
                "subject": subject,
                "html": html_content,
                "text": text_content,
            }
        )
        logger.info(f"Sent '{subject}' email to {to_email}")
        return response
    except Exception as e:
        logger.error(f"Failed to send '{subject}' email to {to_email}: {e}")
        return None


def send_verification_email(
    settings: Settings,
    to_email: str,
    token: str,
    username: str | None = None,
) -> dict[str, Any] | None:
    """
    Send the account verification link.

    Returns the Resend API response, or None when sending is disabled or fails.
    """
    link = f"{settings.base_url}/users/accountVerification?token={token}"
    greeting = f"Hi {username}!" if username else "Hi there!"
    body = (
        f"{greeting} Please verify your email address to activate your BlogMate account. "
        "This link expires in 24 hours."
    )
    return _send(settings, to_email, "Verify your BlogMate account", body, link)


def send_password_reset_email(
    settings: Settings,
    to_email: str,
    token: str,
    username: str | None = None,
) -> dict[str, Any] | None:
    """Send the password reset link. Same return contract as send_verification_email."""
    link = f"{settings.base_url}/users/resetPassword?token={token}"
    greeting = f"Hi {username}!" if username else "Hi there!"
    body = (
        f"{greeting} Someone asked to reset the password of your BlogMate account. "
        "If it was you, use this link within the next hour. Otherwise you can ignore this email."
    )
    return _send(settings, to_email, "Reset your BlogMate password", body, link)
