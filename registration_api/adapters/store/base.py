"""Registration store interfaces.

The hosted table is reached through two capability-scoped views over the
same rows:

- ``public_view``: restricted credential, subject to row-level security.
  Used for inserts. The insert asks for the stored row back, so the
  public key needs a SELECT policy next to its INSERT policy; without one
  the insert is rejected. Reads outside that policy come back empty.
- ``privileged_view``: elevated credential. Used only for the rate-limit
  count so that "no rows" really means "no prior registrations".
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any

StoredRow = dict[str, Any]


class StoreError(RuntimeError):
    """Raised by store adapters when a query or insert fails.

    Attributes:
        message: Message reported by the store (passed through to clients
            on insert failures).
        status_code: HTTP status returned by the store, when known.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class RegistrationStoreView(ABC):
    """Interface for one credential tier of the registrations table."""

    @abstractmethod
    async def select_by_email_since(self, email: str, since: datetime) -> list[StoredRow]:
        """Return rows with ``email == email`` and ``created_at > since``.

        Args:
            email: Exact email to match.
            since: Exclusive lower bound on ``created_at``.

        Returns:
            One row per match, projected to ``created_at``; registrant
            columns are never fetched for counting.

        Raises:
            StoreError: If the query fails.
        """
        raise NotImplementedError

    @abstractmethod
    async def insert(self, row: StoredRow) -> StoredRow:
        """Insert a row and return it as stored (with ``id``/``created_at``).

        Raises:
            StoreError: If the insert is rejected or fails.
        """
        raise NotImplementedError

    @abstractmethod
    async def get(self, record_id: Any) -> StoredRow | None:
        """Fetch one row by id, or None when it is absent (or not visible)."""
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release network resources held by the view."""
        return None


@dataclass(frozen=True)
class RegistrationTable:
    """Both credential tiers of the registrations table."""

    public_view: RegistrationStoreView
    privileged_view: RegistrationStoreView

    async def aclose(self) -> None:
        await self.public_view.aclose()
        await self.privileged_view.aclose()
