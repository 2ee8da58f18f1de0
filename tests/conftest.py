"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It points every backend at its in-memory implementation before settings
are imported, so no test can reach the hosted database, storage bucket
or mail relay.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

# Set default env vars that all tests might need
os.environ.setdefault("SUPABASE_BACKEND", "memory")
os.environ.setdefault("EMAIL_BACKEND", "memory")
os.environ.setdefault("EMAIL_USER", "info@codigo.test")
os.environ.setdefault("EMAIL_PASS", "test-app-password")
os.environ.setdefault("APP_EVENT_NAME", "Codigo 4.0")
os.environ.setdefault("LOG_FORMAT", "json")

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi import Depends, FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from registration_api.adapters.mail.in_memory import InMemoryMailClient  # noqa: E402
from registration_api.adapters.storage.in_memory import InMemoryObjectStorage  # noqa: E402
from registration_api.adapters.store.base import RegistrationTable  # noqa: E402
from registration_api.adapters.store.in_memory import create_in_memory_table  # noqa: E402
from registration_api.api.deps import (  # noqa: E402
    get_intake_service,
    get_notification_sender,
    get_object_storage,
    get_registration_table,
)
from registration_api.core.app_factory import create_app  # noqa: E402
from registration_api.services.intake_service import RegistrationIntakeService  # noqa: E402
from registration_api.services.notification_service import NotificationSender  # noqa: E402

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def table() -> RegistrationTable:
    """Registrations table whose store clock is frozen at NOW."""
    return create_in_memory_table(clock=lambda: NOW)


@pytest.fixture
def storage() -> InMemoryObjectStorage:
    return InMemoryObjectStorage(bucket="codigo-registrations")


@pytest.fixture
def mail_client() -> InMemoryMailClient:
    return InMemoryMailClient()


@pytest.fixture
def notifier(mail_client: InMemoryMailClient) -> NotificationSender:
    return NotificationSender(client=mail_client)


@pytest.fixture
def intake(
    table: RegistrationTable,
    storage: InMemoryObjectStorage,
    notifier: NotificationSender,
) -> RegistrationIntakeService:
    return RegistrationIntakeService(table, storage, notifier, clock=lambda: NOW)


def _frozen_intake_service(
    table: RegistrationTable = Depends(get_registration_table),
    storage: InMemoryObjectStorage = Depends(get_object_storage),
    notifier: NotificationSender = Depends(get_notification_sender),
) -> RegistrationIntakeService:
    return RegistrationIntakeService(table, storage, notifier, clock=lambda: NOW)


@pytest.fixture
def app(
    table: RegistrationTable,
    storage: InMemoryObjectStorage,
    notifier: NotificationSender,
) -> FastAPI:
    """Application wired to the in-memory adapters above.

    Individual tests may replace any of the adapter overrides; the intake
    service override resolves them through Depends, so it follows along.
    """
    application = create_app()
    application.dependency_overrides[get_registration_table] = lambda: table
    application.dependency_overrides[get_object_storage] = lambda: storage
    application.dependency_overrides[get_notification_sender] = lambda: notifier
    application.dependency_overrides[get_intake_service] = _frozen_intake_service
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    # Unhandled errors must reach the generic 500 handler, not the test.
    return TestClient(app, raise_server_exceptions=False)
