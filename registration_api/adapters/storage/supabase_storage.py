"""Object storage adapter for a Supabase Storage bucket."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from registration_api.adapters.storage.base import AbstractObjectStorage, StorageError
from registration_api.core.logging import hash_identifier

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("error") or payload)
    return str(payload)


class SupabaseObjectStorage(AbstractObjectStorage):
    """Client for uploading objects into one Supabase Storage bucket.

    Uploads are sent with ``x-upsert: false`` so an existing key is never
    overwritten.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        bucket: str,
        timeout_seconds: float = 10.0,
        cache_control_seconds: int = 3600,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.bucket = bucket
        self._cache_control_seconds = cache_control_seconds
        self.client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/storage/v1",
            headers={"apikey": api_key, "Authorization": f"Bearer {api_key}"},
            timeout=timeout_seconds,
            transport=transport,
        )

    def _object_path(self, key: str) -> str:
        return f"/object/{quote(self.bucket)}/{quote(key)}"

    async def upload(self, key: str, data: bytes, *, content_type: str | None = None) -> str:
        headers = {
            "x-upsert": "false",
            "cache-control": f"max-age={self._cache_control_seconds}",
            "content-type": content_type or "application/octet-stream",
        }
        try:
            response = await self.client.post(self._object_path(key), content=data, headers=headers)
        except httpx.HTTPError as exc:
            logger.error(
                "storage.request_failed",
                extra={"bucket": self.bucket, "error_type": type(exc).__name__},
            )
            raise StorageError(f"Object storage unreachable: {exc}") from exc

        if response.is_error:
            message = _error_message(response)
            raise StorageError(message, status_code=response.status_code)

        logger.info(
            "storage.uploaded",
            extra={"bucket": self.bucket, "key_hash": hash_identifier(key), "size_bytes": len(data)},
        )
        # Same shape as the JS client's ``data.path``: the key inside the bucket.
        return key

    async def delete(self, key: str) -> None:
        try:
            response = await self.client.delete(self._object_path(key))
        except httpx.HTTPError as exc:
            raise StorageError(f"Object storage unreachable: {exc}") from exc
        if response.is_error:
            raise StorageError(_error_message(response), status_code=response.status_code)

    async def aclose(self) -> None:
        await self.client.aclose()
