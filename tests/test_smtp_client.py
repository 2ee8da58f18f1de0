"""Tests for the SMTP relay adapter with smtplib patched out."""

import smtplib
from email.message import EmailMessage
from unittest.mock import MagicMock, patch

import pytest

from registration_api.adapters.mail.base import MailDeliveryError
from registration_api.adapters.mail.smtp_client import SMTPMailClient


def _message() -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = "Registration Confirmed: Codigo 4.0"
    message["To"] = "a@b.com"
    message.set_content("hello")
    return message


def _client(port: int = 465) -> SMTPMailClient:
    return SMTPMailClient(
        host="smtp.gmail.com",
        port=port,
        username="info@codigo.test",
        password="app-password",
        timeout_seconds=5,
    )


@pytest.mark.asyncio
async def test_implicit_tls_login_and_send() -> None:
    message = _message()
    with patch("registration_api.adapters.mail.smtp_client.smtplib.SMTP_SSL") as smtp_ssl:
        session = smtp_ssl.return_value.__enter__.return_value

        await _client().send(message)

    assert smtp_ssl.call_args.args == ("smtp.gmail.com", 465)
    session.login.assert_called_once_with("info@codigo.test", "app-password")
    session.send_message.assert_called_once_with(message)


@pytest.mark.asyncio
async def test_other_ports_use_starttls() -> None:
    with patch("registration_api.adapters.mail.smtp_client.smtplib.SMTP") as smtp:
        session = smtp.return_value.__enter__.return_value

        await _client(port=587).send(_message())

    session.starttls.assert_called_once()
    session.login.assert_called_once()


@pytest.mark.asyncio
async def test_authentication_failure_becomes_delivery_error() -> None:
    with patch("registration_api.adapters.mail.smtp_client.smtplib.SMTP_SSL") as smtp_ssl:
        session = smtp_ssl.return_value.__enter__.return_value
        session.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")

        with pytest.raises(MailDeliveryError):
            await _client().send(_message())


@pytest.mark.asyncio
async def test_connection_error_becomes_delivery_error() -> None:
    with patch(
        "registration_api.adapters.mail.smtp_client.smtplib.SMTP_SSL",
        MagicMock(side_effect=ConnectionRefusedError("refused")),
    ):
        with pytest.raises(MailDeliveryError):
            await _client().send(_message())
