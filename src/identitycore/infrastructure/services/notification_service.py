"""Email-backed notification sender.

Renders the template for a notification kind and hands it to the configured
email provider. Any delivery or rendering failure is reported as
``NotificationFailureError``.
"""

from typing import Any

from identitycore.core.config import Settings, get_settings
from identitycore.core.logging import get_logger
from identitycore.domain.exceptions import NotificationFailureError
from identitycore.domain.ports import NotificationKind, NotificationSender
from identitycore.infrastructure.services.email import (
    ConsoleEmailProvider,
    EmailProvider,
    OutgoingEmail,
    SMTPProvider,
    SMTPSettings,
    TemplateRenderer,
)

logger = get_logger(__name__)


class EmailNotificationSender(NotificationSender):
    """Sends verification and reset notifications as emails."""

    def __init__(
        self,
        provider: EmailProvider,
        from_email: str,
        from_name: str,
        app_name: str = "identitycore",
        reset_token_ttl_minutes: int = 10,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.provider = provider
        self.from_email = from_email
        self.from_name = from_name
        self.app_name = app_name
        self.reset_token_ttl_minutes = reset_token_ttl_minutes
        self.renderer = renderer or TemplateRenderer()

    async def send(self, to: str, kind: NotificationKind, data: dict[str, Any]) -> None:
        variables = {
            "app_name": self.app_name,
            "expires_in_minutes": self.reset_token_ttl_minutes,
            **data,
        }
        try:
            email = self.renderer.render_email(kind, variables)
            await self.provider.send(
                OutgoingEmail(
                    to=to,
                    subject=email.subject,
                    html_body=email.html_body,
                    text_body=email.text_body,
                    from_email=self.from_email,
                    from_name=self.from_name,
                )
            )
        except Exception as e:
            logger.error("Notification delivery failed", kind=kind.value, error=str(e))
            raise NotificationFailureError() from e
        logger.info("Notification sent", kind=kind.value, provider=type(self.provider).__name__)


def build_email_provider(settings: Settings) -> EmailProvider:
    """Create the email provider selected by settings."""
    if settings.email_provider == "smtp":
        return SMTPProvider(
            SMTPSettings(
                host=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_username,
                password=settings.smtp_password,
                use_tls=settings.smtp_use_tls,
                use_ssl=settings.smtp_use_ssl,
                timeout=settings.smtp_timeout,
            )
        )
    return ConsoleEmailProvider()


def create_notification_sender(settings: Settings | None = None) -> EmailNotificationSender:
    """Create the notification sender configured by settings."""
    settings = settings or get_settings()
    return EmailNotificationSender(
        provider=build_email_provider(settings),
        from_email=settings.email_from_address,
        from_name=settings.email_from_name,
        app_name=settings.app_name,
        reset_token_ttl_minutes=settings.password_reset_token_expire_minutes,
    )
