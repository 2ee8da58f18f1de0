"""Factory for the mail relay client."""

from registration_api.adapters.mail.base import AbstractMailClient
from registration_api.adapters.mail.in_memory import InMemoryMailClient
from registration_api.adapters.mail.smtp_client import SMTPMailClient
from registration_api.core.config import MailSettings, settings
from registration_api.core.errors import ConfigurationError


def mail_credentials_configured(cfg: MailSettings | None = None) -> bool:
    cfg = cfg or settings.mail
    return bool(cfg.user and cfg.password)


def create_mail_client(cfg: MailSettings | None = None) -> AbstractMailClient:
    """Instantiate the mail client for the configured backend.

    Raises:
        ConfigurationError: If EMAIL_USER / EMAIL_PASS are missing or the
            backend is unknown.
    """
    cfg = cfg or settings.mail
    backend = cfg.backend.lower()

    if not mail_credentials_configured(cfg):
        raise ConfigurationError(
            code="configuration_error",
            message="Email configuration missing",
            details={"hint": "Set EMAIL_USER and EMAIL_PASS"},
        )

    if backend == "memory":
        return InMemoryMailClient()

    if backend == "smtp":
        return SMTPMailClient(
            host=cfg.smtp_host,
            port=cfg.smtp_port,
            username=cfg.user,  # type: ignore[arg-type]
            password=cfg.password,  # type: ignore[arg-type]
            timeout_seconds=cfg.timeout_seconds,
        )

    raise ConfigurationError(
        code="configuration_error",
        message=f"Unknown mail backend: '{backend}'. Supported backends: smtp, memory",
    )
