"""Registration intake service.

Turns a raw submission into a persisted registration row. Each attempt is
one sequential pass through::

    RECEIVED -> VALIDATED -> RATE_CHECKED -> UPLOADED -> PERSISTED -> (NOTIFIED)

Any failure before PERSISTED ends the attempt in REJECTED with a specific
AppError and no row written. Store access only starts after validation, and
the insert only happens once the proof reference is known, so a row is
either complete or absent. The confirmation email after PERSISTED is
best-effort: its failure is logged and never changes the outcome.

Submissions are not idempotent. Each accepted call stores a new row, bounded
only by the per-email rolling limit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable

from registration_api.adapters.storage.base import (
    AbstractObjectStorage,
    StorageError,
    classify_storage_failure,
)
from registration_api.adapters.store.base import RegistrationTable, StoreError
from registration_api.core.config import settings
from registration_api.core.errors import (
    ConfigurationError,
    PersistenceError,
    RateLimitExceededError,
    StorageFailureCause,
    StorageUploadError,
    ValidationAppError,
)
from registration_api.core.file_validation import ProofFile, validate_proof_file
from registration_api.core.logging import hash_identifier
from registration_api.schemas.registration import RegistrationRecord, RegistrationSubmission
from registration_api.services.notification_service import NotificationSender
from registration_api.services.rate_limiter import RateLimitDecision, RegistrationRateLimiter
from registration_api.utils.storage_keys import build_proof_key

logger = logging.getLogger(__name__)

# Required on every path (the rate-limit key and the submitter).
CORE_REQUIRED_FIELDS = ("email", "name")
# Additionally required when the submission comes from the public form.
PUBLIC_FORM_REQUIRED_FIELDS = ("college", "phone", "member2_name", "upi_id")

FIELD_LABELS = {
    "email": "email",
    "name": "name",
    "college": "college",
    "phone": "phone",
    "member2_name": "member2Name",
    "upi_id": "upiId",
    "screenshot": "screenshot",
}


class IntakeState(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    RATE_CHECKED = "rate_checked"
    UPLOADED = "uploaded"
    PERSISTED = "persisted"
    NOTIFIED = "notified"
    REJECTED = "rejected"


@dataclass(frozen=True)
class IntakeResult:
    """Outcome of an accepted submission.

    Attributes:
        record: The stored registration.
        state: PERSISTED, or NOTIFIED when the confirmation email went out.
        notified: Whether the confirmation email was sent.
        rate_limit: Limiter decision that admitted the submission.
    """

    record: RegistrationRecord
    state: IntakeState
    notified: bool
    rate_limit: RateLimitDecision


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _storage_message(cause: StorageFailureCause, bucket: str | None, raw_message: str) -> str:
    if cause == "bucket_missing":
        return f'Storage setup required. Please create the "{bucket}" bucket in object storage.'
    if cause == "access_policy_denied":
        return "Storage permissions not configured. Please add upload policy to the bucket."
    return f"Failed to upload screenshot: {raw_message}"


class RegistrationIntakeService:
    """Single entry point for registration submissions.

    Attributes:
        table: Registration table (public view for inserts).
        storage: Object storage for payment proofs (None disables uploads).
        notifier: Confirmation email sender (None disables notification).
        limiter: Per-email rate limiter reading the privileged view.
    """

    def __init__(
        self,
        table: RegistrationTable,
        storage: AbstractObjectStorage | None = None,
        notifier: NotificationSender | None = None,
        *,
        limiter: RegistrationRateLimiter | None = None,
        default_event_name: str | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the intake service with its collaborators.

        Args:
            table: Registration table.
            storage: Object storage adapter for proof uploads.
            notifier: Notification sender for confirmation emails.
            limiter: Rate limiter; built from settings over the privileged
                view when omitted.
            default_event_name: Event name used when a submission omits one.
            clock: Time source for ``now`` when the caller does not pass it.
        """
        self.table = table
        self.storage = storage
        self.notifier = notifier
        self.limiter = limiter or RegistrationRateLimiter(
            table.privileged_view,
            limit=settings.app.registration_limit,
            window=timedelta(hours=settings.app.registration_window_hours),
        )
        self.default_event_name = default_event_name or settings.app.event_name
        self._clock = clock

    def _validate(
        self,
        submission: RegistrationSubmission,
        proof: ProofFile | None,
        public_form: bool,
    ) -> None:
        """Reject incomplete submissions before any store access.

        Raises:
            ValidationAppError: If a required field is missing or the proof
                file is empty / too large.
        """
        required = CORE_REQUIRED_FIELDS + (PUBLIC_FORM_REQUIRED_FIELDS if public_form else ())
        missing = [field for field in required if not getattr(submission, field)]
        if public_form and proof is None and not submission.screenshot_url:
            missing.append("screenshot")

        if missing:
            labels = [FIELD_LABELS[field] for field in missing]
            raise ValidationAppError(
                code="missing_required_fields",
                message=f"Missing required fields: {', '.join(labels)}",
                details={"fields": labels},
            )

        if proof is not None:
            validate_proof_file(proof)

    async def _upload_proof(self, name: str, proof: ProofFile, now: datetime) -> str:
        """Upload the proof file and return its stored path.

        Raises:
            StorageUploadError: With a classified cause if the upload fails.
            ConfigurationError: If no storage adapter is configured.
        """
        if self.storage is None:
            raise ConfigurationError(
                code="configuration_error",
                message="Object storage is not configured",
            )

        key = build_proof_key(name, now, proof.filename)
        bucket = getattr(self.storage, "bucket", None)
        try:
            return await self.storage.upload(key, proof.data, content_type=proof.content_type)
        except StorageError as exc:
            cause = classify_storage_failure(exc.message, exc.status_code)
            logger.error(
                "storage.upload_failed",
                extra={
                    "cause": cause,
                    "bucket": bucket,
                    "status_code": exc.status_code,
                    "error_msg": exc.message,
                },
            )
            raise StorageUploadError(
                code="storage_upload_failed",
                message=_storage_message(cause, bucket, exc.message),
                details={"cause": cause},
                cause=cause,
            ) from exc

    async def _discard_upload(self, key: str) -> None:
        """Best-effort removal of a proof object whose row was never stored."""
        if self.storage is None:
            return
        try:
            await self.storage.delete(key)
            logger.info("storage.orphan_removed", extra={"key_hash": hash_identifier(key)})
        except StorageError as exc:
            logger.warning(
                "storage.orphan_cleanup_failed",
                extra={"key_hash": hash_identifier(key), "error_msg": exc.message},
            )

    async def _notify(self, submission: RegistrationSubmission, record: RegistrationRecord) -> bool:
        """Send the confirmation email when team identifiers are known."""
        event_name = submission.event_name or self.default_event_name
        if self.notifier is None or not (record.team_name and record.team_id and event_name):
            return False

        try:
            await self.notifier.send(
                record.email,
                {
                    "name": record.name,
                    "event_name": event_name,
                    "team_name": record.team_name,
                    "team_id": record.team_id,
                },
            )
        except Exception as exc:
            logger.warning(
                "intake.notification_failed",
                extra={
                    "record_id": record.id,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            return False
        return True

    async def submit(
        self,
        submission: RegistrationSubmission,
        proof: ProofFile | None = None,
        *,
        public_form: bool = False,
        now: datetime | None = None,
    ) -> IntakeResult:
        """Validate, rate-check, upload, persist and (optionally) notify.

        Args:
            submission: Registration fields.
            proof: Payment-proof file, when uploaded as part of this request.
            public_form: Apply the public form's stricter required fields.
            now: Submission time; defaults to the service clock.

        Returns:
            IntakeResult for the stored record.

        Raises:
            ValidationAppError: Missing fields or invalid proof file.
            RateLimitExceededError: The email already has the maximum
                registrations inside the window.
            RateLimitCheckFailedError: Prior registrations could not be counted.
            StorageUploadError: The proof upload failed.
            PersistenceError: The insert failed.
        """
        now = now or self._clock()
        state = IntakeState.RECEIVED

        try:
            self._validate(submission, proof, public_form)
            state = IntakeState.VALIDATED
            email = submission.email or ""
            email_hash = hash_identifier(email)

            decision = await self.limiter.check_and_reserve(email, now)
            if not decision.allowed:
                window_hours = int(self.limiter.window.total_seconds() // 3600)
                raise RateLimitExceededError(
                    code="rate_limit_exceeded",
                    message=(
                        f"You have already submitted {decision.limit} registrations "
                        f"with this email in the last {window_hours} hours."
                    ),
                    details={
                        "limit": decision.limit,
                        "count": decision.count,
                        "retry_after": decision.retry_after_seconds or 0,
                    },
                )
            state = IntakeState.RATE_CHECKED

            row = submission.to_row()
            uploaded_key: str | None = None
            if proof is not None:
                uploaded_key = await self._upload_proof(submission.name or "", proof, now)
                row["screenshot_url"] = uploaded_key
                state = IntakeState.UPLOADED

            try:
                stored = await self.table.public_view.insert(row)
            except StoreError as exc:
                logger.error(
                    "intake.insert_failed",
                    extra={"email_hash": email_hash, "error_msg": exc.message},
                )
                if uploaded_key:
                    await self._discard_upload(uploaded_key)
                raise PersistenceError(
                    code="persistence_error",
                    message=exc.message,
                ) from exc
        except Exception as exc:
            failed_after, state = state, IntakeState.REJECTED
            logger.info(
                "intake.rejected",
                extra={
                    "state": state.value,
                    "failed_after": failed_after.value,
                    "error_code": getattr(exc, "code", type(exc).__name__),
                },
            )
            raise

        record = RegistrationRecord.from_row(stored)
        state = IntakeState.PERSISTED
        logger.info(
            "intake.persisted",
            extra={
                "record_id": record.id,
                "email_hash": email_hash,
                "has_proof_upload": uploaded_key is not None,
                "remaining": decision.remaining,
            },
        )

        notified = await self._notify(submission, record)
        if notified:
            state = IntakeState.NOTIFIED

        return IntakeResult(record=record, state=state, notified=notified, rate_limit=decision)
