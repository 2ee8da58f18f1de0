import re
import uuid
from datetime import datetime

_WHITESPACE = re.compile(r"\s+")
_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_key_segment(value: str, *, fallback: str = "registrant") -> str:
    """Make a string safe to embed in an object key.

    Collapses whitespace runs into a single hyphen, then strips anything
    outside ``[A-Za-z0-9._-]`` (slashes included, so a name can never add
    path segments).

    Args:
        value: Raw text (e.g. submitter name).
        fallback: Returned when nothing usable is left.

    Returns:
        str: Sanitized segment.
    """
    segment = _WHITESPACE.sub("-", value.strip())
    segment = _UNSAFE.sub("", segment).strip(".-")
    return segment or fallback


def file_extension(filename: str | None, default: str = "jpg") -> str:
    if not filename or "." not in filename:
        return default
    ext = _UNSAFE.sub("", filename.rsplit(".", 1)[-1].lower())
    return ext or default


def build_proof_key(name: str, submitted_at: datetime, filename: str | None) -> str:
    """Build the object key for a payment-proof screenshot.

    Format: ``screenshot-<name>-<epoch ms>-<8 hex>.<ext>``. The random
    suffix keeps two same-name uploads in one millisecond apart.
    """
    epoch_ms = int(submitted_at.timestamp() * 1000)
    return (
        f"screenshot-{sanitize_key_segment(name)}-{epoch_ms}-"
        f"{uuid.uuid4().hex[:8]}.{file_extension(filename)}"
    )
