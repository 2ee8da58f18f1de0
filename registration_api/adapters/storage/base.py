"""Object storage interfaces for payment-proof uploads."""

from __future__ import annotations

from abc import ABC, abstractmethod

from registration_api.core.errors import StorageFailureCause


class StorageError(RuntimeError):
    """Raised by storage adapters when an upload or delete fails."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def classify_storage_failure(message: str, status_code: int | None = None) -> StorageFailureCause:
    """Map a storage failure to a user-facing cause.

    Args:
        message: Error message reported by the storage backend.
        status_code: HTTP status code, when known.

    Returns:
        "bucket_missing", "access_policy_denied" or "other".
    """
    text = (message or "").lower()
    if "bucket not found" in text:
        return "bucket_missing"
    if "row-level security" in text or "rls" in text.split() or status_code == 403:
        return "access_policy_denied"
    return "other"


class AbstractObjectStorage(ABC):
    """Interface for a named-bucket object store."""

    @abstractmethod
    async def upload(self, key: str, data: bytes, *, content_type: str | None = None) -> str:
        """Store ``data`` under ``key``, failing if the key already exists.

        Args:
            key: Object key inside the configured bucket.
            data: Object content.
            content_type: MIME type to record with the object.

        Returns:
            Stable path string referencing the stored object.

        Raises:
            StorageError: If the upload fails.
        """
        raise NotImplementedError

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove an object.

        Raises:
            StorageError: If the delete fails.
        """
        raise NotImplementedError

    async def aclose(self) -> None:
        return None
