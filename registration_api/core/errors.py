"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.

Every error carries a stable ``code`` (the ``error`` field of API
responses) and a human-readable ``message`` shown to the registrant.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    field: str
    fields: list[str]
    cause: str
    limit: int
    count: int
    max_bytes: int
    actual_bytes: int
    http_status: int
    retry_after: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when client input is missing or malformed."""


class MissingTemplateFieldError(ValidationAppError):
    """Raised when a confirmation email is requested without a required field."""


class ConfigurationError(AppError):
    """Raised when required configuration (credentials, URLs) is absent."""


class RateLimitExceededError(AppError):
    """Raised when an email already has the maximum registrations in the window."""


class RateLimitCheckFailedError(AppError):
    """Raised when the rate limiter cannot count prior registrations.

    Distinct from RateLimitExceededError: the limiter fails closed, so the
    submission is rejected even though no limit was proven to be hit.
    """


class PersistenceError(AppError):
    """Raised when the registration store rejects or fails an insert/query."""


class NotificationError(AppError):
    """Raised when the mail relay fails to deliver a confirmation."""


StorageFailureCause = Literal["bucket_missing", "access_policy_denied", "other"]


@dataclass
class StorageUploadError(AppError):
    """Raised when the payment-proof upload fails.

    Attributes:
        cause: Classified failure cause used to pick the user-facing message.
    """

    cause: StorageFailureCause = "other"
