"""
Email templates.

Each template function returns (subject, html_body, text_body).
"""

from __future__ import annotations

from html import escape

APP_NAME = "Study Planner"
ACCENT = "#3B82F6"
TEXT_PRIMARY = "#111827"
TEXT_SECONDARY = "#6B7280"


def _base_layout(content: str) -> str:
    """Wrap content in the base email layout."""
    return f"""\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{APP_NAME}</title>
</head>
<body style="margin: 0; padding: 32px 16px; background-color: #F9FAFB; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;">
    <div style="max-width: 560px; margin: 0 auto; background-color: #FFFFFF; border-radius: 12px; padding: 32px;">
        <h1 style="font-size: 20px; color: {ACCENT}; margin: 0 0 24px;">{APP_NAME}</h1>
        {content}
        <p style="color: {TEXT_SECONDARY}; font-size: 12px; margin-top: 32px;">
            If you didn't expect this email, you can safely ignore it.
        </p>
    </div>
</body>
</html>"""


def _button(url: str, label: str) -> str:
    return (
        f'<p style="margin: 28px 0;"><a href="{escape(url)}" '
        f'style="background-color: {ACCENT}; color: #FFFFFF; padding: 12px 28px; '
        f'border-radius: 8px; text-decoration: none; font-weight: 600;">{label}</a></p>'
    )


def welcome_email(name: str | None, verify_url: str) -> tuple[str, str, str]:
    """Welcome email sent after registration, with the verification link."""
    greeting = f"Hi {escape(name)}," if name else "Hi,"
    subject = f"Welcome to {APP_NAME}"
    html_body = _base_layout(
        f'<p style="color: {TEXT_PRIMARY};">{greeting}</p>'
        f'<p style="color: {TEXT_PRIMARY};">Your account is ready. Confirm your email address to finish setting it up.</p>'
        f"{_button(verify_url, 'Verify Email')}"
    )
    text_body = (
        f"{greeting}\n\nYour account is ready. Confirm your email address to finish setting it up:\n"
        f"{verify_url}\n"
    )
    return subject, html_body, text_body


def verify_email(verify_url: str, expires_hours: int = 24) -> tuple[str, str, str]:
    subject = "Verify your email address"
    html_body = _base_layout(
        f'<p style="color: {TEXT_PRIMARY};">Click below to verify your email address. '
        f"The link expires in {expires_hours} hours.</p>"
        f"{_button(verify_url, 'Verify Email')}"
    )
    text_body = f"Verify your email address (link expires in {expires_hours} hours):\n{verify_url}\n"
    return subject, html_body, text_body


def password_reset(reset_url: str, expires_minutes: int = 60) -> tuple[str, str, str]:
    subject = "Reset your password"
    html_body = _base_layout(
        f'<p style="color: {TEXT_PRIMARY};">We received a request to reset your password. '
        f"The link expires in {expires_minutes} minutes.</p>"
        f"{_button(reset_url, 'Reset Password')}"
    )
    text_body = f"Reset your password (link expires in {expires_minutes} minutes):\n{reset_url}\n"
    return subject, html_body, text_body
