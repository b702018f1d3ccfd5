"""Account email delivery.

Templates are looked up by name in ``TEMPLATES`` and rendered from a context
dict. Delivery goes through SMTP (default) or the Resend HTTP API, selected by
``SP_EMAIL_PROVIDER``. Providers report failure by returning False.
"""

from __future__ import annotations

import ssl
from collections.abc import Callable
from email.message import EmailMessage
from typing import Any, Protocol

import aiosmtplib
import httpx
import structlog

from studyplanner.config import Settings, get_settings
from studyplanner.email.templates import password_reset, verify_email, welcome_email

logger = structlog.get_logger()

RESEND_URL = "https://api.resend.com/emails"

Rendered = tuple[str, str, str]


class EmailProvider(Protocol):
    async def send(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool: ...


def _sender(from_name: str, from_address: str) -> str:
    return f"{from_name} <{from_address}>"


class SMTPProvider:
    """SMTP delivery through aiosmtplib, as a multipart text + HTML message."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_address: str,
        from_name: str,
        use_tls: bool = True,
    ) -> None:
        self.host = host
        self.port = port
        self.credentials = (username or None, password or None)
        self.sender = _sender(from_name, from_address)
        self.use_tls = use_tls

    def build_message(self, to_email: str, subject: str, html_body: str, text_body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to_email
        message["Subject"] = subject
        message.set_content(text_body)
        message.add_alternative(html_body, subtype="html")
        return message

    async def send(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        username, password = self.credentials
        try:
            await aiosmtplib.send(
                self.build_message(to_email, subject, html_body, text_body),
                hostname=self.host,
                port=self.port,
                username=username,
                password=password,
                start_tls=self.use_tls,
                tls_context=ssl.create_default_context() if self.use_tls else None,
            )
        except Exception:
            logger.exception("email_send_failed", to=to_email, provider="smtp")
            return False
        logger.info("email_sent", to=to_email, template_subject=subject, provider="smtp")
        return True


class ResendProvider:
    """Delivery through the Resend HTTP API."""

    def __init__(self, api_key: str, from_address: str, from_name: str, timeout: float = 10.0) -> None:
        self.api_key = api_key
        self.sender = _sender(from_name, from_address)
        self.timeout = timeout

    async def send(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        payload = {"from": self.sender, "to": [to_email], "subject": subject, "html": html_body, "text": text_body}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(RESEND_URL, headers={"Authorization": f"Bearer {self.api_key}"}, json=payload)
                response.raise_for_status()
        except httpx.HTTPError:
            logger.exception("email_send_failed", to=to_email, provider="resend")
            return False
        logger.info("email_sent", to=to_email, template_subject=subject, provider="resend")
        return True


def provider_from_settings(settings: Settings) -> EmailProvider:
    name = settings.email_provider.lower()
    if name == "smtp":
        return SMTPProvider(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
            use_tls=settings.smtp_use_tls,
        )
    if name == "resend":
        return ResendProvider(settings.resend_api_key, settings.email_from_address, settings.email_from_name)
    msg = f"Unsupported email provider: {name}"
    raise ValueError(msg)


TEMPLATES: dict[str, Callable[[dict[str, Any], Settings], Rendered]] = {
    "welcome": lambda ctx, _settings: welcome_email(ctx.get("name"), ctx.get("verify_url", "")),
    "verify_email": lambda ctx, settings: verify_email(
        ctx.get("verify_url", ""), expires_hours=settings.email_verification_token_ttl_hours
    ),
    "password_reset": lambda ctx, settings: password_reset(
        ctx.get("reset_url", ""), expires_minutes=settings.password_reset_token_ttl_minutes
    ),
}


class EmailService:
    """Renders named templates and hands them to a provider."""

    def __init__(self, provider: EmailProvider | None = None) -> None:
        self.provider = provider or provider_from_settings(get_settings())

    async def send_email(self, to: str, subject: str, html_body: str, text_body: str) -> bool:
        return await self.provider.send(to, subject, html_body, text_body)

    async def send_template(self, to: str, template_name: str, context: dict[str, Any]) -> bool:
        """Render ``template_name`` with ``context`` and send it.

        Raises:
            ValueError: If the template name is unknown.
        """
        render = TEMPLATES.get(template_name)
        if render is None:
            msg = f"Unknown template: {template_name}"
            raise ValueError(msg)
        subject, html_body, text_body = render(context, get_settings())
        return await self.send_email(to, subject, html_body, text_body)


_email_service: EmailService | None = None


def get_email_service() -> EmailService:
    global _email_service  # noqa: PLW0603
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
