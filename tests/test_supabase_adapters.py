"""Tests for the hosted table and bucket adapters against a mocked HTTP transport."""

import json
import logging
from datetime import datetime, timezone

import httpx
import pytest

from registration_api.adapters.storage.base import StorageError, classify_storage_failure
from registration_api.adapters.storage.supabase_storage import SupabaseObjectStorage
from registration_api.adapters.store.base import StoreError
from registration_api.adapters.store.supabase_rest import SupabaseRestView
from registration_api.core.logging import hash_identifier

BASE_URL = "https://project.supabase.co"
SINCE = datetime(2025, 2, 28, 12, 0, tzinfo=timezone.utc)


def _view(handler, api_key: str | None = "service-key", tier: str = "privileged") -> SupabaseRestView:
    return SupabaseRestView(
        base_url=BASE_URL,
        table="registrations",
        api_key=api_key,
        tier=tier,
        transport=httpx.MockTransport(handler),
    )


def _storage(handler) -> SupabaseObjectStorage:
    return SupabaseObjectStorage(
        base_url=BASE_URL,
        api_key="anon-key",
        bucket="codigo-registrations",
        transport=httpx.MockTransport(handler),
    )


class TestSupabaseRestView:
    @pytest.mark.asyncio
    async def test_select_filters_by_email_and_window(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"created_at": "2025-03-01T11:00:00+00:00"}])

        view = _view(handler)
        rows = await view.select_by_email_since("a@b.com", SINCE)
        await view.aclose()

        assert rows == [{"created_at": "2025-03-01T11:00:00+00:00"}]
        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/rest/v1/registrations"
        assert request.url.params["select"] == "created_at"
        assert request.url.params["email"] == "eq.a@b.com"
        assert request.url.params["created_at"] == "gt.2025-02-28T12:00:00+00:00"
        assert request.headers["apikey"] == "service-key"
        assert request.headers["Authorization"] == "Bearer service-key"

    @pytest.mark.asyncio
    async def test_insert_requests_representation(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            body = json.loads(request.content)
            return httpx.Response(
                201,
                json=[{**body[0], "id": 7, "created_at": "2025-03-01T12:00:00+00:00"}],
            )

        view = _view(handler, api_key="anon-key", tier="public")
        stored = await view.insert({"email": "a@b.com", "name": "Alice"})

        assert stored["id"] == 7
        assert seen[0].method == "POST"
        assert seen[0].headers["Prefer"] == "return=representation"
        assert json.loads(seen[0].content) == [{"email": "a@b.com", "name": "Alice"}]

    @pytest.mark.asyncio
    async def test_insert_without_returned_row_fails(self) -> None:
        view = _view(lambda request: httpx.Response(201, json=[]), api_key="anon-key")

        with pytest.raises(StoreError):
            await view.insert({"email": "a@b.com", "name": "Alice"})

    @pytest.mark.asyncio
    async def test_error_response_carries_store_message(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400,
                json={"code": "23502", "message": 'null value in column "name" violates not-null constraint'},
            )

        view = _view(handler, api_key="anon-key")

        with pytest.raises(StoreError) as exc_info:
            await view.insert({"email": "a@b.com"})

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == 'null value in column "name" violates not-null constraint'

    @pytest.mark.asyncio
    async def test_missing_key_fails_without_request(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        view = _view(handler, api_key=None)

        with pytest.raises(StoreError) as exc_info:
            await view.select_by_email_since("a@b.com", SINCE)

        assert "privileged credential" in exc_info.value.message
        assert seen == []

    @pytest.mark.asyncio
    async def test_transport_error_becomes_store_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        view = _view(handler)

        with pytest.raises(StoreError) as exc_info:
            await view.select_by_email_since("a@b.com", SINCE)

        assert "unreachable" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_get_returns_none_when_absent(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["id"] == "eq.42"
            return httpx.Response(200, json=[])

        assert await _view(handler).get(42) is None


class TestSupabaseObjectStorage:
    @pytest.mark.asyncio
    async def test_upload_never_overwrites(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Key": "codigo-registrations/screenshot-a.png"})

        storage = _storage(handler)
        path = await storage.upload("screenshot-a.png", b"png-bytes", content_type="image/png")
        await storage.aclose()

        assert path == "screenshot-a.png"
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/storage/v1/object/codigo-registrations/screenshot-a.png"
        assert request.headers["x-upsert"] == "false"
        assert request.headers["content-type"] == "image/png"
        assert request.headers["cache-control"] == "max-age=3600"
        assert request.content == b"png-bytes"

    @pytest.mark.asyncio
    async def test_upload_log_carries_key_hash_only(self, caplog) -> None:
        caplog.set_level(logging.INFO)
        storage = _storage(lambda request: httpx.Response(200, json={"Key": "x"}))

        await storage.upload("screenshot-Alice-1740830400000.png", b"png", content_type="image/png")

        record = next(r for r in caplog.records if r.getMessage() == "storage.uploaded")
        assert record.bucket == "codigo-registrations"
        assert record.key_hash == hash_identifier("screenshot-Alice-1740830400000.png")
        assert not hasattr(record, "key")
        assert all("Alice" not in str(value) for value in vars(record).values())

    @pytest.mark.asyncio
    async def test_missing_bucket_reported(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                404,
                json={"statusCode": "404", "error": "Bucket not found", "message": "Bucket not found"},
            )

        with pytest.raises(StorageError) as exc_info:
            await _storage(handler).upload("k.png", b"x", content_type="image/png")

        assert exc_info.value.status_code == 404
        assert classify_storage_failure(exc_info.value.message, exc_info.value.status_code) == "bucket_missing"

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        await _storage(handler).delete("screenshot-a.png")

        assert seen[0].method == "DELETE"
        assert seen[0].url.path.endswith("/codigo-registrations/screenshot-a.png")


@pytest.mark.parametrize(
    "message,status,cause",
    [
        ("Bucket not found", 404, "bucket_missing"),
        ("new row violates row-level security policy", 400, "access_policy_denied"),
        ("Unauthorized", 403, "access_policy_denied"),
        ("The resource already exists", 409, "other"),
        ("", None, "other"),
    ],
)
def test_classify_storage_failure(message: str, status: int | None, cause: str) -> None:
    assert classify_storage_failure(message, status) == cause
