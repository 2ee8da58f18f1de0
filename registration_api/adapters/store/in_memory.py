"""In-memory registration table (local development and tests).

Notes:
- Per-process only: rows disappear on restart.
- Thread-safe: uses a lock around shared state.
- Mirrors the hosted table's row-level security: a view without read
  access cannot see rows, and an insert through it fails because the
  inserted row cannot be returned (PostgREST answers 42501 in that case).
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any, Callable

from registration_api.adapters.store.base import (
    RegistrationStoreView,
    RegistrationTable,
    StoredRow,
    StoreError,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryRegistrationRows:
    """Shared row storage behind both views."""

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._rows: list[StoredRow] = []
        self._next_id = 1

    def insert(self, row: StoredRow) -> StoredRow:
        with self._lock:
            stored = {
                **row,
                "id": self._next_id,
                # Store-assigned; any client-supplied value is ignored.
                "created_at": self._clock(),
            }
            self._next_id += 1
            self._rows.append(stored)
            return dict(stored)

    def add_existing(self, row: StoredRow) -> StoredRow:
        """Seed a row with an explicit ``created_at`` (fixtures only)."""
        with self._lock:
            stored = {**row, "id": self._next_id}
            self._next_id += 1
            self._rows.append(stored)
            return dict(stored)

    def select_by_email_since(self, email: str, since: datetime) -> list[StoredRow]:
        with self._lock:
            return [
                dict(row)
                for row in self._rows
                if row.get("email") == email and row["created_at"] > since
            ]

    def get(self, record_id: Any) -> StoredRow | None:
        with self._lock:
            for row in self._rows:
                if row["id"] == record_id:
                    return dict(row)
        return None

    def all(self) -> list[StoredRow]:
        with self._lock:
            return [dict(row) for row in self._rows]


class InMemoryStoreView(RegistrationStoreView):
    """A credential tier over InMemoryRegistrationRows."""

    def __init__(self, rows: InMemoryRegistrationRows, *, can_read: bool) -> None:
        self.rows = rows
        self._can_read = can_read

    async def select_by_email_since(self, email: str, since: datetime) -> list[StoredRow]:
        if not self._can_read:
            return []
        return [
            {"created_at": row["created_at"]}
            for row in self.rows.select_by_email_since(email, since)
        ]

    async def insert(self, row: StoredRow) -> StoredRow:
        if not self._can_read:
            raise StoreError(
                'new row violates row-level security policy for table "registrations"',
                status_code=401,
            )
        return self.rows.insert(row)

    async def get(self, record_id: Any) -> StoredRow | None:
        if not self._can_read:
            return None
        return self.rows.get(record_id)


def create_in_memory_table(
    *,
    clock: Callable[[], datetime] = _utcnow,
    public_can_read: bool = True,
) -> RegistrationTable:
    """Build a RegistrationTable whose two views share one row list.

    ``public_can_read=False`` models an insert-only policy for the public
    key, under which inserts through the public view are rejected.
    """
    rows = InMemoryRegistrationRows(clock=clock)
    return RegistrationTable(
        public_view=InMemoryStoreView(rows, can_read=public_can_read),
        privileged_view=InMemoryStoreView(rows, can_read=True),
    )
