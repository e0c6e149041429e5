"""Development email provider that writes messages to the log."""

from identitycore.core.logging import get_logger
from identitycore.infrastructure.services.email.email_provider import EmailProvider, OutgoingEmail

logger = get_logger(__name__)


class ConsoleEmailProvider(EmailProvider):
    """Logs outgoing emails instead of delivering them.

    The text body contains live verification and reset links, so this
    provider is for local development only.
    """

    async def send(self, message: OutgoingEmail) -> None:
        logger.info(
            "Email not delivered (console provider)",
            to=message.to,
            sender=message.sender,
            subject=message.subject,
            body=message.text_body,
        )
