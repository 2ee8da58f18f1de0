"""Mail relay adapters used to deliver confirmation emails."""

from registration_api.adapters.mail.base import AbstractMailClient, MailDeliveryError
from registration_api.adapters.mail.factory import create_mail_client
from registration_api.adapters.mail.smtp_client import SMTPMailClient

__all__ = [
    "AbstractMailClient",
    "MailDeliveryError",
    "SMTPMailClient",
    "create_mail_client",
]
