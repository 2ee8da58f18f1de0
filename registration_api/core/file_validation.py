"""Payment-proof upload validation."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import UploadFile

from registration_api.core.config import settings
from registration_api.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProofFile:
    """An uploaded proof-of-payment file held in memory."""

    filename: str | None
    content_type: str | None
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def max_proof_bytes() -> int:
    return settings.app.max_proof_size_mb * 1024 * 1024


def _too_large(size: int, max_bytes: int) -> ValidationAppError:
    return ValidationAppError(
        code="proof_file_too_large",
        message=f"File size must be less than {settings.app.max_proof_size_mb}MB.",
        details={"max_bytes": max_bytes, "actual_bytes": size},
    )


def validate_proof_file(proof: ProofFile) -> None:
    """Check that a proof file is non-empty and within the size limit.

    Raises:
        ValidationAppError: If the file is empty or too large.
    """
    max_bytes = max_proof_bytes()
    if proof.size == 0:
        raise ValidationAppError(
            code="proof_file_missing",
            message="Please select a transaction screenshot to upload.",
        )
    if proof.size > max_bytes:
        raise _too_large(proof.size, max_bytes)


async def read_upload_file_limited(file: UploadFile) -> ProofFile:
    """Read an uploaded file in chunks enforcing the max size limit.

    Uses file.size if available (multipart headers), falls back to chunked
    reading with enforcement so an oversized body is never fully buffered.

    Args:
        file: FastAPI upload file instance.

    Returns:
        ProofFile with the file content.

    Raises:
        ValidationAppError: If the file exceeds the configured size limit.
    """
    max_bytes = max_proof_bytes()

    # Check size from multipart headers if available
    file_size = getattr(file, "size", None)

    if file_size is not None and file_size > max_bytes:
        logger.warning(
            "file_validation.rejected_by_header",
            extra={"file_size": file_size, "max_bytes": max_bytes},
        )
        raise _too_large(file_size, max_bytes)

    # Chunked reading with secondary enforcement
    size = 0
    chunks: list[bytes] = []

    while True:
        chunk = await file.read(8192)
        if not chunk:
            break

        size += len(chunk)
        if size > max_bytes:
            logger.warning(
                "file_validation.rejected_by_chunked_read",
                extra={"size": size, "max_bytes": max_bytes},
            )
            raise _too_large(size, max_bytes)
        chunks.append(chunk)

    return ProofFile(
        filename=file.filename,
        content_type=file.content_type,
        data=b"".join(chunks),
    )
