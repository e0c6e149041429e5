"""Unit tests for the structlog processors."""

import structlog

from identitycore.core.logging import (
    add_correlation_id,
    bind_correlation_id,
    clear_context,
    redact_secrets,
    rename_message_field,
)


def test_redact_secrets_masks_sensitive_keys():
    event = {
        "event": "Login attempt",
        "email": "alice@example.com",
        "password": "hunter2",
        "token": "abc",
        "refresh_token": "def",
    }

    result = redact_secrets(None, "info", event)

    assert result["password"] == "[REDACTED]"
    assert result["token"] == "[REDACTED]"
    assert result["refresh_token"] == "[REDACTED]"
    assert result["email"] == "alice@example.com"


def test_correlation_id_kept_when_bound():
    event = add_correlation_id(None, "info", {"correlation_id": "cid_fixed"})

    assert event["correlation_id"] == "cid_fixed"


def test_correlation_id_generated_when_missing():
    event = add_correlation_id(None, "info", {})

    assert event["correlation_id"].startswith("cid_")


def test_rename_message_field():
    assert rename_message_field(None, "info", {"event": "hello"}) == {"message": "hello"}


def test_bind_and_clear_context():
    bind_correlation_id("cid_request")
    assert structlog.contextvars.get_contextvars()["correlation_id"] == "cid_request"

    clear_context()
    assert structlog.contextvars.get_contextvars() == {}
