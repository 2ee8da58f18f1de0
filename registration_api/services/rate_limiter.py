"""Per-email rolling-window registration limiter.

Counts registrations already stored for an email within the last W hours
and refuses a new one once N exist. The count is read through the store's
privileged view: the public view is subject to row-level security, which
returns an empty result instead of an error when it may not read, and that
would look exactly like "no prior registrations".

Known limit: check-then-insert is not atomic. Two concurrent submissions
for the same email can both observe ``count < N`` and both be stored, so
the limit is "approximately N per window".
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from registration_api.adapters.store.base import RegistrationStoreView, StoreError
from registration_api.core.errors import RateLimitCheckFailedError
from registration_api.core.logging import hash_identifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the registration may proceed.
        limit: Max registrations per window.
        count: Registrations found inside the window.
        remaining: Registrations still allowed (0 when denied).
        window_start: Exclusive lower bound of the window.
        retry_after_seconds: When denied, seconds until the oldest counted
            registration leaves the window.
        reason: "rate_limit_exceeded" when denied, otherwise None.
    """

    allowed: bool
    limit: int
    count: int
    remaining: int
    window_start: datetime
    retry_after_seconds: int | None = None
    reason: str | None = None


def _parse_created_at(value: object) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


class RegistrationRateLimiter:
    """Rate limiter keyed on registrant email."""

    def __init__(
        self,
        store: RegistrationStoreView,
        *,
        limit: int = 2,
        window: timedelta = timedelta(hours=24),
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Privileged view of the registrations table.
            limit: Maximum registrations per window.
            window: Rolling window length.

        Raises:
            ValueError: If limit or window are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window <= timedelta(0):
            raise ValueError("window must be positive")

        self._store = store
        self.limit = limit
        self.window = window

    def _retry_after(self, rows: list[dict], now: datetime) -> int | None:
        created = [c for c in (_parse_created_at(r.get("created_at")) for r in rows) if c]
        if not created:
            return None
        oldest = min(created)
        return max(0, int(math.ceil((oldest + self.window - now).total_seconds())))

    async def check_and_reserve(self, email: str, now: datetime) -> RateLimitDecision:
        """Decide whether ``email`` may register at ``now``.

        Nothing is written here; the "reservation" is the insert that follows
        an allowed decision.

        Args:
            email: Registrant email (already trimmed).
            now: Current time (timezone-aware).

        Returns:
            RateLimitDecision; ``allowed`` is False once ``count >= limit``.

        Raises:
            RateLimitCheckFailedError: If the store query fails. The caller
                must reject the submission (fail closed).
        """
        window_start = now - self.window
        email_hash = hash_identifier(email)

        try:
            rows = await self._store.select_by_email_since(email, window_start)
        except StoreError as exc:
            logger.error(
                "rate_limit.check_failed",
                extra={"email_hash": email_hash, "error_msg": exc.message},
            )
            raise RateLimitCheckFailedError(
                code="rate_limit_check_failed",
                message="Failed to validate registration rate limit",
            ) from exc

        count = len(rows)
        if count >= self.limit:
            retry_after = self._retry_after(rows, now)
            logger.warning(
                "rate_limit.exceeded",
                extra={
                    "email_hash": email_hash,
                    "limit": self.limit,
                    "count": count,
                    "retry_after_s": retry_after,
                },
            )
            return RateLimitDecision(
                allowed=False,
                limit=self.limit,
                count=count,
                remaining=0,
                window_start=window_start,
                retry_after_seconds=retry_after,
                reason="rate_limit_exceeded",
            )

        logger.info(
            "rate_limit.allowed",
            extra={"email_hash": email_hash, "limit": self.limit, "count": count},
        )
        return RateLimitDecision(
            allowed=True,
            limit=self.limit,
            count=count,
            # This attempt consumes one slot once it is stored.
            remaining=self.limit - count - 1,
            window_start=window_start,
        )
