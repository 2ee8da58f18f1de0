"""Object storage adapters for payment-proof screenshots."""

from registration_api.adapters.storage.base import (
    AbstractObjectStorage,
    StorageError,
    classify_storage_failure,
)
from registration_api.adapters.storage.factory import create_object_storage

__all__ = [
    "AbstractObjectStorage",
    "StorageError",
    "classify_storage_failure",
    "create_object_storage",
]
