"""Unit tests for email template rendering.

Tests verify that the built-in templates render with Jinja2 variable
substitution, escape HTML only where needed and refuse missing variables.
"""

import pytest
from jinja2 import UndefinedError
from jinja2.exceptions import SecurityError

from identitycore.domain.ports import NotificationKind
from identitycore.infrastructure.services.email import EmailTemplate, TemplateRenderer


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


def test_render_simple_variable(renderer) -> None:
    assert renderer.render("Hello {{ name }}!", {"name": "World"}) == "Hello World!"


def test_render_verification_email(renderer) -> None:
    email = renderer.render_email(
        NotificationKind.EMAIL_VERIFICATION,
        {
            "app_name": "AI-Tutor",
            "first_name": "Ada",
            "verification_url": "http://localhost:3000/verify-email?token=abc123",
        },
    )

    assert email.subject == "Verify your email for AI-Tutor"
    assert "Hello Ada," in email.text_body
    assert "http://localhost:3000/verify-email?token=abc123" in email.text_body
    assert 'href="http://localhost:3000/verify-email?token=abc123"' in email.html_body


def test_render_reset_email_mentions_expiry(renderer) -> None:
    email = renderer.render_email(
        NotificationKind.PASSWORD_RESET,
        {
            "app_name": "AI-Tutor",
            "first_name": "Ada",
            "reset_url": "http://localhost:3000/reset-password?token=xyz",
            "expires_in_minutes": 10,
        },
    )

    assert email.subject == "Reset your AI-Tutor password"
    assert "expires in 10 minutes" in email.text_body
    assert "expires in 10 minutes" in email.html_body


def test_html_body_escaped_text_body_not(renderer) -> None:
    variables = {"app_name": "App", "first_name": "<b>Ada</b>", "verification_url": "http://x"}

    email = renderer.render_email(NotificationKind.EMAIL_VERIFICATION, variables)

    assert "&lt;b&gt;Ada&lt;/b&gt;" in email.html_body
    assert "<b>Ada</b>" in email.text_body


def test_missing_variable_raises(renderer) -> None:
    with pytest.raises(UndefinedError):
        renderer.render_email(NotificationKind.EMAIL_VERIFICATION, {"app_name": "App"})


def test_sandbox_blocks_attribute_escape(renderer) -> None:
    with pytest.raises(SecurityError):
        renderer.render("{{ name.__class__.__mro__ }}", {"name": "x"})


def test_custom_templates() -> None:
    renderer = TemplateRenderer(
        {
            NotificationKind.PASSWORD_RESET: EmailTemplate(
                subject="Reset", html_body="<p>{{ reset_url }}</p>", text_body="{{ reset_url }}"
            )
        }
    )

    email = renderer.render_email(NotificationKind.PASSWORD_RESET, {"reset_url": "http://r"})

    assert email.text_body == "http://r"
