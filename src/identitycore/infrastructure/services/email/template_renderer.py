"""Jinja2 template renderer for email templates.

Provides safe template rendering with HTML escaping and the built-in
templates for verification and password reset emails.
"""

from dataclasses import dataclass
from typing import Any

from jinja2 import StrictUndefined, TemplateSyntaxError, UndefinedError
from jinja2.sandbox import SandboxedEnvironment

from identitycore.core.logging import get_logger
from identitycore.domain.ports import NotificationKind

logger = get_logger(__name__)


@dataclass(frozen=True)
class EmailTemplate:
    """Subject and bodies of one email kind, as Jinja2 sources."""

    subject: str
    html_body: str
    text_body: str


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html_body: str
    text_body: str


DEFAULT_TEMPLATES: dict[NotificationKind, EmailTemplate] = {
    NotificationKind.EMAIL_VERIFICATION: EmailTemplate(
        subject="Verify your email for {{ app_name }}",
        html_body=(
            "<p>Hello {{ first_name }},</p>\n"
            "<p>Please confirm your email address by clicking the link below:</p>\n"
            '<p><a href="{{ verification_url }}">Verify email</a></p>\n'
            "<p>If you did not create an account, you can ignore this email.</p>"
        ),
        text_body=(
            "Hello {{ first_name }},\n\n"
            "Please confirm your email address by visiting:\n"
            "{{ verification_url }}\n\n"
            "If you did not create an account, you can ignore this email."
        ),
    ),
    NotificationKind.PASSWORD_RESET: EmailTemplate(
        subject="Reset your {{ app_name }} password",
        html_body=(
            "<p>Hello {{ first_name }},</p>\n"
            "<p>You requested a password reset. Click the link below to choose a new password:</p>\n"
            '<p><a href="{{ reset_url }}">Reset password</a></p>\n'
            "<p>This link expires in {{ expires_in_minutes }} minutes.</p>\n"
            "<p>If you did not request this, you can ignore this email.</p>"
        ),
        text_body=(
            "Hello {{ first_name }},\n\n"
            "You requested a password reset. Choose a new password at:\n"
            "{{ reset_url }}\n\n"
            "This link expires in {{ expires_in_minutes }} minutes.\n"
            "If you did not request this, you can ignore this email."
        ),
    ),
}


class TemplateRenderer:
    """Jinja2 template renderer with security features.

    Uses a sandboxed environment to prevent code execution in templates, and
    strict undefined handling so a missing variable fails instead of
    rendering blank.
    """

    def __init__(self, templates: dict[NotificationKind, EmailTemplate] | None = None) -> None:
        self.templates = templates or DEFAULT_TEMPLATES
        self.html_env = SandboxedEnvironment(
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self.text_env = SandboxedEnvironment(
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

    def render(self, template_string: str, variables: dict[str, Any], html: bool = True) -> str:
        """Render a template string with variables.

        Raises:
            TemplateSyntaxError: If template syntax is invalid.
            UndefinedError: If a required variable is missing.
        """
        env = self.html_env if html else self.text_env
        try:
            return env.from_string(template_string).render(**variables)
        except TemplateSyntaxError as e:
            logger.error("Template syntax error", error=str(e), line=e.lineno)
            raise
        except UndefinedError as e:
            logger.error("Undefined variable in template", error=str(e))
            raise

    def render_email(self, kind: NotificationKind, variables: dict[str, Any]) -> RenderedEmail:
        """Render the subject and both bodies of a notification kind."""
        template = self.templates[kind]
        return RenderedEmail(
            subject=self.render(template.subject, variables, html=False),
            html_body=self.render(template.html_body, variables),
            text_body=self.render(template.text_body, variables, html=False),
        )
