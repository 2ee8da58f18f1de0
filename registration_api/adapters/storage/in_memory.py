"""In-memory object storage (local development and tests)."""

from __future__ import annotations

import threading

from registration_api.adapters.storage.base import AbstractObjectStorage, StorageError


class InMemoryObjectStorage(AbstractObjectStorage):
    """Dictionary-backed bucket with the same "fail if exists" policy."""

    def __init__(self, *, bucket: str = "codigo-registrations", bucket_exists: bool = True) -> None:
        self.bucket = bucket
        self.bucket_exists = bucket_exists
        self._lock = threading.Lock()
        self.objects: dict[str, tuple[bytes, str | None]] = {}

    async def upload(self, key: str, data: bytes, *, content_type: str | None = None) -> str:
        if not self.bucket_exists:
            raise StorageError("Bucket not found", status_code=404)
        with self._lock:
            if key in self.objects:
                raise StorageError("The resource already exists", status_code=409)
            self.objects[key] = (data, content_type)
        return key

    async def delete(self, key: str) -> None:
        with self._lock:
            if self.objects.pop(key, None) is None:
                raise StorageError("Object not found", status_code=404)
