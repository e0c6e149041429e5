"""Unit tests for the SMTP email provider."""

import unittest.mock as mock

import aiosmtplib
import pytest

from identitycore.infrastructure.services.email import OutgoingEmail, SMTPProvider, SMTPSettings


@pytest.fixture
def smtp_settings() -> SMTPSettings:
    """Fixture for SMTP settings."""
    return SMTPSettings(
        host="smtp.example.com",
        port=587,
        username="test_user",
        password="test_password",
    )


@pytest.fixture
def smtp_client():
    """Patch aiosmtplib.SMTP and yield the client used inside the context manager."""
    client = mock.AsyncMock()
    with mock.patch("aiosmtplib.SMTP") as smtp_class:
        smtp_class.return_value.__aenter__.return_value = client
        client.smtp_class = smtp_class
        yield client


async def send(provider: SMTPProvider) -> None:
    await provider.send(
        OutgoingEmail(
            to="recipient@example.com",
            subject="Test Subject",
            html_body="<p>HTML Body</p>",
            text_body="Text Body",
            from_email="sender@example.com",
            from_name="Sender Name",
        )
    )


@pytest.mark.asyncio
async def test_smtp_send_email_starttls(smtp_settings: SMTPSettings, smtp_client) -> None:
    await send(SMTPProvider(smtp_settings))

    smtp_client.smtp_class.assert_called_once_with(
        hostname="smtp.example.com",
        port=587,
        use_tls=False,
        start_tls=False,
        timeout=10,
    )
    smtp_client.starttls.assert_awaited_once()
    smtp_client.login.assert_awaited_once_with("test_user", "test_password")
    smtp_client.send_message.assert_awaited_once()

    sent_message = smtp_client.send_message.call_args[0][0]
    assert sent_message["Subject"] == "Test Subject"
    assert sent_message["To"] == "recipient@example.com"
    assert sent_message["From"] == "Sender Name <sender@example.com>"
    assert sent_message.is_multipart()


@pytest.mark.asyncio
async def test_smtp_send_email_implicit_ssl(smtp_settings: SMTPSettings, smtp_client) -> None:
    ssl_settings = smtp_settings.model_copy(update={"port": 465, "use_ssl": True, "use_tls": False})

    await send(SMTPProvider(ssl_settings))

    assert smtp_client.smtp_class.call_args.kwargs["use_tls"] is True
    smtp_client.starttls.assert_not_awaited()


@pytest.mark.asyncio
async def test_smtp_without_credentials_skips_login(smtp_client) -> None:
    await send(SMTPProvider(SMTPSettings(host="localhost", port=25, use_tls=False)))

    smtp_client.login.assert_not_awaited()
    smtp_client.send_message.assert_awaited_once()


@pytest.mark.asyncio
async def test_smtp_failure_propagates(smtp_settings: SMTPSettings, smtp_client) -> None:
    smtp_client.send_message.side_effect = aiosmtplib.SMTPException("Connection refused")

    with pytest.raises(aiosmtplib.SMTPException):
        await send(SMTPProvider(smtp_settings))
