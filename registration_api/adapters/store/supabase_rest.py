"""Registration store adapter for a Supabase (PostgREST) table."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx

from registration_api.adapters.store.base import RegistrationStoreView, StoredRow, StoreError

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Extract PostgREST's error message from a failed response."""
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("error") or payload)
    return str(payload)


class SupabaseRestView(RegistrationStoreView):
    """One credential tier of a PostgREST table.

    A view constructed without an API key is a configured-but-unusable tier:
    every call raises StoreError, so callers that need the elevated tier
    fail closed instead of silently reading through row-level security.
    """

    def __init__(
        self,
        *,
        base_url: str,
        table: str,
        api_key: str | None,
        tier: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the view.

        Args:
            base_url: Project URL (``https://<project>.supabase.co``).
            table: Table name.
            api_key: Credential for this tier, or None when not configured.
            tier: Tier label used in logs and errors ("public"/"privileged").
            timeout_seconds: Per-request timeout.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self._table = table
        self._api_key = api_key
        self.tier = tier
        headers = {}
        if api_key:
            headers = {"apikey": api_key, "Authorization": f"Bearer {api_key}"}
        self.client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers=headers,
            timeout=timeout_seconds,
            transport=transport,
        )

    def _require_key(self) -> None:
        if not self._api_key:
            raise StoreError(f"{self.tier} credential for the registrations table is not configured")

    async def _request(self, method: str, **kwargs: Any) -> httpx.Response:
        self._require_key()
        try:
            response = await self.client.request(method, f"/{self._table}", **kwargs)
        except httpx.HTTPError as exc:
            logger.error(
                "store.request_failed",
                extra={"tier": self.tier, "method": method, "error_type": type(exc).__name__},
            )
            raise StoreError(f"Registration store unreachable: {exc}") from exc

        if response.is_error:
            message = _error_message(response)
            logger.error(
                "store.request_rejected",
                extra={
                    "tier": self.tier,
                    "method": method,
                    "status_code": response.status_code,
                    "error_msg": message,
                },
            )
            raise StoreError(message, status_code=response.status_code)
        return response

    async def select_by_email_since(self, email: str, since: datetime) -> list[StoredRow]:
        response = await self._request(
            "GET",
            params={
                "select": "created_at",
                "email": f"eq.{email}",
                "created_at": f"gt.{since.isoformat()}",
            },
        )
        return list(response.json())

    async def insert(self, row: StoredRow) -> StoredRow:
        response = await self._request(
            "POST",
            json=[row],
            headers={"Prefer": "return=representation"},
        )
        rows = response.json()
        if not rows:
            # RLS can accept the insert but hide the returned representation.
            raise StoreError("Registration store did not return the inserted row")
        return rows[0]

    async def get(self, record_id: Any) -> StoredRow | None:
        response = await self._request(
            "GET",
            params={"select": "*", "id": f"eq.{record_id}"},
        )
        rows = response.json()
        return rows[0] if rows else None

    async def aclose(self) -> None:
        await self.client.aclose()
