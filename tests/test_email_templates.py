from __future__ import annotations

import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

import pytest

from juzbuild.infrastructure.email_templates import EMAIL_TEMPLATES
from juzbuild.infrastructure.mailer import (
    EmailDeliveryError,
    EmailService,
    EmailTemplateRenderer,
    SmtpMailer,
    template_env_key,
)


def test_all_named_templates_are_available():
    assert EmailTemplateRenderer().available == sorted(
        [
            "contact-confirmation",
            "contact-notification",
            "password-reset",
            "waitlist-notification",
            "waitlist-welcome",
            "website-creation",
        ]
    )
    assert set(EMAIL_TEMPLATES) == set(EmailTemplateRenderer().available)


def test_website_creation_renders_placeholders_and_year():
    html = EmailTemplateRenderer().render(
        "website-creation",
        {
            "companyName": "Acme Realty",
            "domain": "acme.onjuzbuild.com",
            "websiteUrl": "https://acme.onjuzbuild.com",
        },
    )
    assert "Acme Realty" in html
    assert 'href="https://acme.onjuzbuild.com"' in html
    assert str(datetime.now(timezone.utc).year) in html
    assert "{{" not in html


def test_conditional_blocks_follow_data():
    renderer = EmailTemplateRenderer()
    with_phone = renderer.render(
        "contact-confirmation",
        {"name": "Ada", "email": "ada@example.com", "phone": "555-0100", "message": "Hi"},
    )
    without_phone = renderer.render(
        "contact-confirmation",
        {"name": "Ada", "email": "ada@example.com", "message": "Hi"},
    )
    assert "555-0100" in with_phone
    assert "Phone:" in with_phone
    assert "Phone:" not in without_phone
    assert "Company:" not in without_phone


def test_environment_fallback_and_missing_template():
    renderer = EmailTemplateRenderer(environ={template_env_key("user-welcome"): "<p>Hello {{fullName}}</p>"})
    assert template_env_key("user-welcome") == "EMAIL_TEMPLATE_USER_WELCOME"
    assert renderer.render("user-welcome", {"fullName": "Ada"}) == "<p>Hello Ada</p>"
    assert renderer.compiled("user-welcome") is renderer.compiled("user-welcome")

    with pytest.raises(EmailDeliveryError, match="EMAIL_TEMPLATE_UNKNOWN"):
        renderer.render("unknown")


class FakeSMTP:
    instances: list["FakeSMTP"] = []

    def __init__(self, host: str, port: int, timeout: float) -> None:
        self.host = host
        self.port = port
        self.calls: list[str] = []
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self) -> "FakeSMTP":
        return self

    def __exit__(self, *exc_info) -> None:
        self.calls.append("quit")

    def starttls(self) -> None:
        self.calls.append("starttls")

    def login(self, username: str, password: str) -> None:
        self.calls.append(f"login:{username}")

    def send_message(self, message) -> None:
        self.calls.append("send")
        self.messages.append(message)


def test_email_service_sends_rendered_html():
    FakeSMTP.instances.clear()
    mailer = SmtpMailer("smtp.test", "mailer", "secret", port=2525, sender="Juzbuild <hi@juzbuild.test>", smtp_factory=FakeSMTP)
    service = EmailService(mailer)

    asyncio.run(
        service.send_website_creation_email(
            "owner@acme.test",
            {"companyName": "Acme Realty", "domain": "acme.onjuzbuild.com", "websiteUrl": "https://acme.onjuzbuild.com"},
        )
    )

    smtp = FakeSMTP.instances[0]
    assert (smtp.host, smtp.port) == ("smtp.test", 2525)
    assert smtp.calls == ["starttls", "login:mailer", "send", "quit"]
    message = smtp.messages[0]
    assert message["To"] == "owner@acme.test"
    assert message["From"] == "Juzbuild <hi@juzbuild.test>"
    assert "Acme Realty" in message["Subject"]
    html = message.get_body(preferencelist=("html",)).get_content()
    assert "acme.onjuzbuild.com" in html
