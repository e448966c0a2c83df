"""Template rendering and SMTP delivery for transactional emails."""
from __future__ import annotations

import asyncio
import logging
import os
import smtplib
from datetime import datetime, timezone
from email.message import EmailMessage
from typing import Any, Callable, Mapping

from pybars import Compiler

from .email_templates import EMAIL_TEMPLATES

logger = logging.getLogger(__name__)


class EmailDeliveryError(RuntimeError):
    """Raised when a message cannot be rendered or handed to the SMTP server."""


def template_env_key(name: str) -> str:
    return f"EMAIL_TEMPLATE_{name.upper().replace('-', '_')}"


class EmailTemplateRenderer:
    """Compiles Handlebars templates once and renders them with a context."""

    def __init__(
        self,
        templates: Mapping[str, str] | None = None,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._templates = dict(EMAIL_TEMPLATES if templates is None else templates)
        self._environ = os.environ if environ is None else environ
        self._compiler = Compiler()
        self._cache: dict[str, Callable[..., Any]] = {}

    @property
    def available(self) -> list[str]:
        return sorted(self._templates)

    def _source(self, name: str) -> str:
        if name in self._templates:
            return self._templates[name]
        env_source = self._environ.get(template_env_key(name))
        if env_source:
            logger.info("Using email template %s from %s", name, template_env_key(name))
            return env_source
        raise EmailDeliveryError(
            f'Template "{name}" not found. Available templates: {", ".join(self.available)}. '
            f"You can also set environment variable: {template_env_key(name)}"
        )

    def compiled(self, name: str) -> Callable[..., Any]:
        template = self._cache.get(name)
        if template is None:
            template = self._compiler.compile(self._source(name))
            self._cache[name] = template
        return template

    def render(self, name: str, data: Mapping[str, Any] | None = None) -> str:
        context = {"currentYear": datetime.now(timezone.utc).year, **(data or {})}
        return str(self.compiled(name)(context))


class SmtpMailer:
    """Delivers HTML mail over SMTP with STARTTLS."""

    def __init__(
        self,
        host: str,
        username: str,
        password: str,
        *,
        port: int = 587,
        sender: str | None = None,
        timeout: float = 30.0,
        smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._sender = sender or username
        self._timeout = timeout
        self._smtp_factory = smtp_factory

    def _send_sync(self, message: EmailMessage) -> None:
        try:
            with self._smtp_factory(self._host, self._port, timeout=self._timeout) as smtp:
                smtp.starttls()
                smtp.login(self._username, self._password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise EmailDeliveryError(f"Failed to send email: {exc}") from exc

    async def send(self, to: str, subject: str, html: str, *, sender: str | None = None) -> None:
        message = EmailMessage()
        message["From"] = sender or self._sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML-capable email client.")
        message.add_alternative(html, subtype="html")
        await asyncio.to_thread(self._send_sync, message)


class EmailService:
    def __init__(self, mailer: SmtpMailer, renderer: EmailTemplateRenderer | None = None) -> None:
        self._mailer = mailer
        self._renderer = renderer or EmailTemplateRenderer()

    async def send_template_email(
        self,
        to: str,
        template_name: str,
        data: Mapping[str, Any],
        *,
        subject: str,
        sender: str | None = None,
    ) -> None:
        html = self._renderer.render(template_name, data)
        await self._mailer.send(to, subject, html, sender=sender)
        logger.info("Sent %s email to %s", template_name, to)

    async def send_website_creation_email(self, to: str, data: Mapping[str, Any]) -> None:
        name = data.get("companyName") or data.get("websiteName") or "your business"
        await self.send_template_email(
            to,
            "website-creation",
            data,
            subject=f"Your website for {name} is ready!",
        )


__all__ = [
    "EmailDeliveryError",
    "EmailService",
    "EmailTemplateRenderer",
    "SmtpMailer",
    "template_env_key",
]
