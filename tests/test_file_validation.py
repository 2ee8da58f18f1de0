"""Tests for payment-proof upload handling and object key construction."""

import io
import re
from datetime import datetime, timezone

import pytest
from fastapi import UploadFile

from registration_api.core.errors import ValidationAppError
from registration_api.core.file_validation import (
    ProofFile,
    max_proof_bytes,
    read_upload_file_limited,
    validate_proof_file,
)
from registration_api.utils.storage_keys import (
    build_proof_key,
    file_extension,
    sanitize_key_segment,
)


def _upload(data: bytes, size: int | None = None) -> UploadFile:
    return UploadFile(file=io.BytesIO(data), filename="pay.png", size=size)


@pytest.mark.asyncio
async def test_reads_file_within_limit() -> None:
    proof = await read_upload_file_limited(_upload(b"abc" * 1000))

    assert proof.size == 3000
    assert proof.filename == "pay.png"


@pytest.mark.asyncio
async def test_rejects_by_declared_size() -> None:
    with pytest.raises(ValidationAppError) as exc_info:
        await read_upload_file_limited(_upload(b"", size=max_proof_bytes() + 1))

    assert exc_info.value.code == "proof_file_too_large"


@pytest.mark.asyncio
async def test_rejects_by_chunked_read_when_size_unknown() -> None:
    with pytest.raises(ValidationAppError) as exc_info:
        await read_upload_file_limited(_upload(b"0" * (max_proof_bytes() + 1)))

    assert exc_info.value.details["max_bytes"] == 5 * 1024 * 1024


def test_file_at_limit_accepted() -> None:
    validate_proof_file(ProofFile("pay.png", "image/png", b"0" * max_proof_bytes()))


def test_empty_file_rejected() -> None:
    with pytest.raises(ValidationAppError) as exc_info:
        validate_proof_file(ProofFile("pay.png", "image/png", b""))

    assert exc_info.value.message == "Please select a transaction screenshot to upload."


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Alice Smith", "Alice-Smith"),
        ("  a   b  ", "a-b"),
        ("../../etc/passwd", "etcpasswd"),
        ("Renée", "Rene"),
        ("///", "registrant"),
    ],
)
def test_sanitize_key_segment(raw: str, expected: str) -> None:
    assert sanitize_key_segment(raw) == expected


@pytest.mark.parametrize(
    "filename,expected",
    [("pay.PNG", "png"), ("scan.final.jpeg", "jpeg"), ("noext", "jpg"), (None, "jpg")],
)
def test_file_extension(filename, expected: str) -> None:
    assert file_extension(filename) == expected


def test_proof_keys_are_unique_within_one_millisecond() -> None:
    at = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

    first = build_proof_key("Alice", at, "pay.png")
    second = build_proof_key("Alice", at, "pay.png")

    assert first != second
    assert re.fullmatch(r"screenshot-Alice-1740830400000-[0-9a-f]{8}\.png", first)
