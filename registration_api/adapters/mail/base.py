from abc import ABC, abstractmethod
from email.message import EmailMessage


class MailDeliveryError(RuntimeError):
    """Raised when the relay refuses or fails to deliver a message."""


class AbstractMailClient(ABC):
    """Interface for clients that hand a fully built message to a mail relay."""

    @abstractmethod
    async def send(self, message: EmailMessage) -> None:
        """Deliver a message.

        Args:
            message: Message with From/To/Subject headers and body parts set.

        Raises:
            MailDeliveryError: If the relay rejects the message or is unreachable.
        """
        ...
