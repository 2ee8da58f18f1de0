"""Confirmation email rendering and dispatch.

Renders the fixed confirmation template (participant name, event name,
team name, team id) and hands it to the mail relay. Required fields and
relay credentials are checked before any network call.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from email.message import EmailMessage
from email.utils import formataddr
from pathlib import Path
from typing import Any, Mapping

from jinja2 import Environment, FileSystemLoader, select_autoescape

from registration_api.adapters.mail.base import AbstractMailClient, MailDeliveryError
from registration_api.adapters.mail.factory import create_mail_client, mail_credentials_configured
from registration_api.core.config import MailSettings, settings
from registration_api.core.errors import (
    ConfigurationError,
    MissingTemplateFieldError,
    NotificationError,
    ValidationAppError,
)
from registration_api.core.logging import hash_identifier

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"

REQUIRED_TEMPLATE_FIELDS = ("name", "event_name", "team_name", "team_id")

_LINE_BREAKS = re.compile(r"[\r\n]")
_ADDRESS_SEPARATORS = re.compile(r"[,;]")

_templates = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)


@dataclass(frozen=True)
class NotificationResult:
    sent: bool
    recipient_hash: str | None


def build_subject(event_name: str) -> str:
    return f"Registration Confirmed: {event_name}"


def render_confirmation(fields: Mapping[str, Any], *, year: int | None = None) -> tuple[str, str]:
    """Render the confirmation email bodies.

    Args:
        fields: Template fields (see REQUIRED_TEMPLATE_FIELDS).
        year: Copyright year; defaults to the current UTC year.

    Returns:
        Tuple of (html_body, text_body). Values are HTML-escaped in the HTML part.
    """
    context = {
        **fields,
        "organizer": settings.app.organizer_name,
        "year": year or datetime.now(timezone.utc).year,
    }
    html_body = _templates.get_template("confirmation.html").render(**context)
    text_body = _templates.get_template("confirmation.txt").render(**context)
    return html_body, text_body


class NotificationSender:
    """Sends registration confirmation emails.

    Attributes:
        mail: Mail relay settings (sender identity and credentials).
    """

    def __init__(
        self,
        mail_settings: MailSettings | None = None,
        client: AbstractMailClient | None = None,
    ) -> None:
        """Initialize the sender.

        Args:
            mail_settings: Mail relay settings; defaults to global settings.
            client: Mail client; built from settings on first send when omitted.
        """
        self.mail = mail_settings or settings.mail
        self._client = client

    def _missing_fields(self, recipient_email: str | None, fields: Mapping[str, Any]) -> list[str]:
        missing = [key for key in REQUIRED_TEMPLATE_FIELDS if not str(fields.get(key) or "").strip()]
        if not (recipient_email or "").strip():
            missing.insert(0, "email")
        return missing

    def _unsafe_fields(self, recipient_email: str, fields: Mapping[str, Any]) -> list[str]:
        # Values end up in Subject/To headers; a line break would inject headers.
        unsafe = [key for key in REQUIRED_TEMPLATE_FIELDS if _LINE_BREAKS.search(str(fields[key]))]
        if _LINE_BREAKS.search(recipient_email) or _ADDRESS_SEPARATORS.search(recipient_email):
            unsafe.insert(0, "email")
        return unsafe

    def _get_client(self) -> AbstractMailClient:
        if self._client is None:
            self._client = create_mail_client(self.mail)
        return self._client

    def build_message(self, recipient_email: str, fields: Mapping[str, Any]) -> EmailMessage:
        html_body, text_body = render_confirmation(fields)
        message = EmailMessage()
        message["Subject"] = build_subject(str(fields["event_name"]))
        message["From"] = formataddr((self.mail.from_name, self.mail.user or ""))
        message["To"] = recipient_email
        message.set_content(text_body)
        message.add_alternative(html_body, subtype="html")
        return message

    async def send(self, recipient_email: str | None, fields: Mapping[str, Any]) -> NotificationResult:
        """Render and dispatch a confirmation email to one recipient.

        Args:
            recipient_email: Recipient address.
            fields: Template fields: name, event_name, team_name, team_id.

        Returns:
            NotificationResult with sent=True.

        Raises:
            MissingTemplateFieldError: If a required field or the recipient is missing.
            ValidationAppError: If a value contains a line break or the
                recipient lists more than one address.
            ConfigurationError: If EMAIL_USER / EMAIL_PASS are not configured.
            NotificationError: If the relay fails to deliver the message.
        """
        missing = self._missing_fields(recipient_email, fields)
        if missing:
            raise MissingTemplateFieldError(
                code="missing_required_fields",
                message="Please provide name, email, teamName, teamId, and eventName",
                details={"fields": missing},
            )

        recipient = str(recipient_email).strip()
        unsafe = self._unsafe_fields(recipient, fields)
        if unsafe:
            raise ValidationAppError(
                code="invalid_field_value",
                message="Fields must be single-line values and email a single address",
                details={"fields": unsafe},
            )

        if not mail_credentials_configured(self.mail):
            logger.error(
                "notification.configuration_missing",
                extra={"hint": "Set EMAIL_USER and EMAIL_PASS"},
            )
            raise ConfigurationError(
                code="configuration_error",
                message="Email configuration missing",
            )

        recipient_hash = hash_identifier(recipient)
        message = self.build_message(recipient, fields)

        try:
            await self._get_client().send(message)
        except MailDeliveryError as exc:
            logger.error(
                "notification.send_failed",
                extra={"recipient_hash": recipient_hash, "error_msg": str(exc)},
            )
            raise NotificationError(
                code="notification_failed",
                message="Failed to send email",
                details={"hint": str(exc)},
            ) from exc

        logger.info(
            "notification.sent",
            extra={"recipient_hash": recipient_hash, "event_name": fields.get("event_name")},
        )
        return NotificationResult(sent=True, recipient_hash=recipient_hash)
