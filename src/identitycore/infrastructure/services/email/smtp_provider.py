"""SMTP email provider backed by aiosmtplib."""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib
from pydantic import BaseModel

from identitycore.core.logging import get_logger
from identitycore.infrastructure.services.email.email_provider import EmailProvider, OutgoingEmail

logger = get_logger(__name__)


class SMTPSettings(BaseModel):
    """Connection settings for an SMTP relay.

    ``use_ssl`` opens an implicitly encrypted connection (usually port 465);
    otherwise ``use_tls`` upgrades a plain connection with STARTTLS.
    """

    host: str
    port: int = 587
    username: str | None = None
    password: str | None = None
    use_tls: bool = True
    use_ssl: bool = False
    timeout: int = 10

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)


def build_mime_message(message: OutgoingEmail) -> MIMEMultipart:
    """Build a multipart/alternative message with text and HTML parts."""
    mime = MIMEMultipart("alternative")
    mime["Subject"] = message.subject
    mime["From"] = message.sender
    mime["To"] = message.to
    mime.attach(MIMEText(message.text_body, "plain"))
    mime.attach(MIMEText(message.html_body, "html"))
    return mime


class SMTPProvider(EmailProvider):
    def __init__(self, settings: SMTPSettings) -> None:
        self.settings = settings

    async def send(self, message: OutgoingEmail) -> None:
        """Send one message over a fresh SMTP connection.

        Raises:
            aiosmtplib.SMTPException: If the handshake, login or delivery fails.
            OSError: If the relay cannot be reached.
        """
        settings = self.settings
        try:
            # aiosmtplib's use_tls is implicit TLS on connect
            async with aiosmtplib.SMTP(
                hostname=settings.host,
                port=settings.port,
                use_tls=settings.use_ssl,
                start_tls=False,
                timeout=settings.timeout,
            ) as smtp:
                if settings.use_tls and not settings.use_ssl:
                    await smtp.starttls()
                if settings.has_credentials:
                    await smtp.login(settings.username, settings.password)
                await smtp.send_message(build_mime_message(message))
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("SMTP delivery failed", host=settings.host, port=settings.port, error=str(e))
            raise
