"""In-memory mail client (local development and tests)."""

from __future__ import annotations

from email.message import EmailMessage

from registration_api.adapters.mail.base import AbstractMailClient


class InMemoryMailClient(AbstractMailClient):
    """Collects messages in ``outbox`` instead of sending them."""

    def __init__(self) -> None:
        self.outbox: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> None:
        self.outbox.append(message)
