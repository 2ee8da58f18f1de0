"""Tests for confirmation email rendering and dispatch."""

from unittest.mock import AsyncMock

import pytest

from registration_api.adapters.mail.base import AbstractMailClient, MailDeliveryError
from registration_api.adapters.mail.in_memory import InMemoryMailClient
from registration_api.core.config import settings
from registration_api.core.errors import (
    ConfigurationError,
    MissingTemplateFieldError,
    NotificationError,
    ValidationAppError,
)
from registration_api.services.notification_service import (
    NotificationSender,
    build_subject,
    render_confirmation,
)

FIELDS = {
    "name": "Alice",
    "event_name": "Codigo 4.0",
    "team_name": "Byte Me",
    "team_id": "C4-017",
}


def _html_part(message) -> str:
    return message.get_body(preferencelist=("html",)).get_content()


def _text_part(message) -> str:
    return message.get_body(preferencelist=("plain",)).get_content()


def test_subject_names_the_event() -> None:
    assert build_subject("Codigo 4.0") == "Registration Confirmed: Codigo 4.0"


def test_render_includes_all_fields() -> None:
    html_body, text_body = render_confirmation(FIELDS, year=2025)

    for body in (html_body, text_body):
        assert "Alice" in body
        assert "Codigo 4.0" in body
        assert "Byte Me" in body
        assert "C4-017" in body
        assert "Coding Club RSCOE" in body
    assert "2025" in html_body


def test_render_escapes_html_only_in_html_part() -> None:
    html_body, text_body = render_confirmation({**FIELDS, "team_name": "<b>Bold</b>"})

    assert "<b>Bold</b>" not in html_body
    assert "&lt;b&gt;Bold&lt;/b&gt;" in html_body
    assert "<b>Bold</b>" in text_body


@pytest.mark.asyncio
async def test_send_delivers_multipart_message() -> None:
    client = InMemoryMailClient()
    sender = NotificationSender(client=client)

    result = await sender.send("a@b.com", FIELDS)

    assert result.sent is True
    assert result.recipient_hash and "@" not in result.recipient_hash
    assert len(client.outbox) == 1
    message = client.outbox[0]
    assert message["To"] == "a@b.com"
    assert message["Subject"] == "Registration Confirmed: Codigo 4.0"
    assert "Codigo 4.0 Info" in message["From"]
    assert settings.mail.user in message["From"]
    assert "C4-017" in _text_part(message)
    assert "Byte Me" in _html_part(message)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "recipient,overrides,missing",
    [
        (None, {}, ["email"]),
        ("a@b.com", {"team_id": ""}, ["team_id"]),
        ("a@b.com", {"name": None, "event_name": "  "}, ["name", "event_name"]),
        ("", {"team_name": None}, ["email", "team_name"]),
    ],
)
async def test_missing_field_rejected_before_relay(recipient, overrides, missing) -> None:
    client = AsyncMock(spec=AbstractMailClient)
    sender = NotificationSender(client=client)

    with pytest.raises(MissingTemplateFieldError) as exc_info:
        await sender.send(recipient, {**FIELDS, **overrides})

    assert isinstance(exc_info.value, ValidationAppError)
    assert exc_info.value.code == "missing_required_fields"
    assert exc_info.value.message == "Please provide name, email, teamName, teamId, and eventName"
    assert exc_info.value.details["fields"] == missing
    client.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_credentials_is_configuration_error() -> None:
    client = AsyncMock(spec=AbstractMailClient)
    mail_settings = settings.mail.model_copy(update={"password": None})
    sender = NotificationSender(mail_settings, client=client)

    with pytest.raises(ConfigurationError) as exc_info:
        await sender.send("a@b.com", FIELDS)

    assert exc_info.value.code == "configuration_error"
    assert exc_info.value.message == "Email configuration missing"
    client.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_relay_failure_is_notification_error() -> None:
    client = AsyncMock(spec=AbstractMailClient)
    client.send.side_effect = MailDeliveryError("SMTP error: 535 authentication failed")
    sender = NotificationSender(client=client)

    with pytest.raises(NotificationError) as exc_info:
        await sender.send("a@b.com", FIELDS)

    assert exc_info.value.code == "notification_failed"
    assert exc_info.value.message == "Failed to send email"
    client.send.assert_awaited_once()


@pytest.mark.asyncio
async def test_client_built_lazily_from_settings() -> None:
    sender = NotificationSender()

    await sender.send("a@b.com", FIELDS)

    # EMAIL_BACKEND=memory in the test environment
    assert isinstance(sender._get_client(), InMemoryMailClient)
    assert len(sender._get_client().outbox) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "recipient,overrides,unsafe",
    [
        ("a@b.com", {"event_name": "Codigo\r\nBcc: x@y.com"}, ["event_name"]),
        ("a@b.com\nBcc: x@y.com", {}, ["email"]),
        ("a@b.com, x@y.com", {}, ["email"]),
        ("a@b.com;x@y.com", {"team_name": "Byte\nMe"}, ["email", "team_name"]),
    ],
)
async def test_header_unsafe_values_rejected_before_relay(recipient, overrides, unsafe) -> None:
    client = AsyncMock(spec=AbstractMailClient)
    sender = NotificationSender(client=client)

    with pytest.raises(ValidationAppError) as exc_info:
        await sender.send(recipient, {**FIELDS, **overrides})

    assert exc_info.value.code == "invalid_field_value"
    assert exc_info.value.details["fields"] == unsafe
    client.send.assert_not_awaited()
