"""SMTP mail relay client adapter."""

from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from email.message import EmailMessage

from registration_api.adapters.mail.base import AbstractMailClient, MailDeliveryError

logger = logging.getLogger(__name__)


class SMTPMailClient(AbstractMailClient):
    """Client for an authenticated SMTP relay (e.g. Gmail with an app password).

    smtplib is blocking, so each dispatch runs in the default thread pool
    and is bounded by ``timeout_seconds``.
    """

    def __init__(
        self,
        *,
        host: str,
        port: int,
        username: str,
        password: str,
        timeout_seconds: float = 20.0,
    ) -> None:
        """Initialize the SMTP client.

        Args:
            host: Relay host name.
            port: Relay port; 465 uses implicit TLS, any other port STARTTLS.
            username: Login (also the sender address).
            password: Login credential.
            timeout_seconds: Upper bound for connect + login + send.
        """
        self.host = host
        self.port = port
        self._username = username
        self._password = password
        self.timeout_seconds = timeout_seconds

    def _send_blocking(self, message: EmailMessage) -> None:
        context = ssl.create_default_context()
        if self.port == 465:
            with smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout_seconds) as smtp:
                smtp.login(self._username, self._password)
                smtp.send_message(message)
        else:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds) as smtp:
                smtp.starttls(context=context)
                smtp.login(self._username, self._password)
                smtp.send_message(message)

    async def send(self, message: EmailMessage) -> None:
        loop = asyncio.get_event_loop()
        try:
            await asyncio.wait_for(
                loop.run_in_executor(None, self._send_blocking, message),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            logger.warning(
                "mail.send_timeout",
                extra={"smtp_host": self.host, "timeout_seconds": self.timeout_seconds},
            )
            raise MailDeliveryError(
                f"Mail relay did not respond within {self.timeout_seconds}s"
            ) from exc
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning(
                "mail.send_failed",
                extra={"smtp_host": self.host, "error_type": type(exc).__name__},
            )
            raise MailDeliveryError(f"SMTP error: {exc}") from exc
