"""Read file contents as text for export and token accounting."""

from __future__ import annotations

import logging
from pathlib import Path

from ..errors import (
    AskRepoError,
    EncodingFailureError,
    InvalidPathError,
    classify_os_error,
)

logger = logging.getLogger(__name__)

# Single-byte fallback; unlike latin-1 it rejects a few undefined bytes.
FALLBACK_ENCODING = "cp1252"


def decode_text(data: bytes, path: str = "") -> str:
    """Decode ``data`` as UTF-8, then the single-byte fallback.

    NUL bytes mark binary content and are rejected outright.
    """
    if b"\x00" in data:
        raise EncodingFailureError(path)
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        pass
    try:
        return data.decode(FALLBACK_ENCODING)
    except UnicodeDecodeError as exc:
        raise EncodingFailureError(path) from exc


def read_file_text(path: str) -> str:
    """Return the decoded content of ``path`` or raise a typed ``AskRepoError``."""
    if not path:
        raise InvalidPathError(path)
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise classify_os_error(exc, path) from exc
    return decode_text(data, path)


def try_read_file_text(path: str) -> str | None:
    """``read_file_text`` that logs and returns ``None`` on failure."""
    try:
        return read_file_text(path)
    except AskRepoError as exc:
        logger.debug("skipping %s: %s", path, exc.message)
        return None


__all__ = [
    "FALLBACK_ENCODING",
    "decode_text",
    "read_file_text",
    "try_read_file_text",
]
