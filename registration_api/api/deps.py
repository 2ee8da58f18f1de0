"""FastAPI dependencies wiring adapters into the registration services.

Adapters are built lazily, once per process, from the global settings so
that a missing backend credential only affects the endpoints that need it
(preflights and health checks keep working).
"""

from __future__ import annotations

import logging

from fastapi import Depends

from registration_api.adapters.storage import AbstractObjectStorage, create_object_storage
from registration_api.adapters.store import RegistrationTable, create_registration_table
from registration_api.services.intake_service import RegistrationIntakeService
from registration_api.services.notification_service import NotificationSender

logger = logging.getLogger(__name__)


_table: RegistrationTable | None = None
_storage: AbstractObjectStorage | None = None
_notifier: NotificationSender | None = None


def get_registration_table() -> RegistrationTable:
    """Return the process-wide registration table adapter."""
    global _table
    if _table is None:
        _table = create_registration_table()
    return _table


def get_object_storage() -> AbstractObjectStorage:
    """Return the process-wide object storage adapter."""
    global _storage
    if _storage is None:
        _storage = create_object_storage()
    return _storage


def get_notification_sender() -> NotificationSender:
    """Return the process-wide notification sender.

    The mail client itself is created on first send, so configuration
    errors surface as a 500 on that send and never block registration.
    """
    global _notifier
    if _notifier is None:
        _notifier = NotificationSender()
    return _notifier


def get_intake_service(
    table: RegistrationTable = Depends(get_registration_table),
    storage: AbstractObjectStorage = Depends(get_object_storage),
    notifier: NotificationSender = Depends(get_notification_sender),
) -> RegistrationIntakeService:
    return RegistrationIntakeService(table, storage, notifier)


async def close_dependencies() -> None:
    """Close network clients held by cached adapters and forget them."""
    global _table, _storage, _notifier
    if _table is not None:
        await _table.aclose()
    if _storage is not None:
        await _storage.aclose()
    _table = _storage = _notifier = None
    logger.info("deps.closed")
