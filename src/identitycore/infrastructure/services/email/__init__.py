"""Email delivery: providers and template rendering."""

from identitycore.infrastructure.services.email.console_provider import ConsoleEmailProvider
from identitycore.infrastructure.services.email.email_provider import EmailProvider, OutgoingEmail
from identitycore.infrastructure.services.email.smtp_provider import SMTPProvider, SMTPSettings
from identitycore.infrastructure.services.email.template_renderer import (
    DEFAULT_TEMPLATES,
    EmailTemplate,
    RenderedEmail,
    TemplateRenderer,
)

__all__ = [
    "ConsoleEmailProvider",
    "DEFAULT_TEMPLATES",
    "EmailProvider",
    "EmailTemplate",
    "OutgoingEmail",
    "RenderedEmail",
    "SMTPProvider",
    "SMTPSettings",
    "TemplateRenderer",
]
