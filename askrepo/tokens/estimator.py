"""Token estimates for prompt text and file contents.

``estimate_tokens`` is the cheap character heuristic. ``count_tokens`` uses the
``cl100k_base`` byte-pair encoding from ``tiktoken``; the encoder is built
lazily once per process and any failure falls back to the heuristic.
"""

from __future__ import annotations

import asyncio
import logging
import threading

import tiktoken

logger = logging.getLogger(__name__)

TOKEN_ENCODING_NAME = "cl100k_base"
CHARS_PER_TOKEN = 4

_ENCODING: tiktoken.Encoding | None = None
_ENCODING_LOCK = threading.Lock()


def estimate_tokens(text: str) -> int:
    """Return 0 for empty text, otherwise ``max(1, len(text) // 4)``."""
    if not text:
        return 0
    return max(1, len(text) // CHARS_PER_TOKEN)


def get_encoding() -> tiktoken.Encoding:
    """Return the process-wide encoder, constructing it on first use."""
    global _ENCODING
    if _ENCODING is not None:
        return _ENCODING
    with _ENCODING_LOCK:
        if _ENCODING is None:
            _ENCODING = tiktoken.get_encoding(TOKEN_ENCODING_NAME)
        return _ENCODING


def reset_encoding() -> None:
    """Forget the cached encoder so the next count rebuilds it."""
    global _ENCODING
    with _ENCODING_LOCK:
        _ENCODING = None


def count_tokens(text: str) -> int:
    """Return the precise token count, or the heuristic if encoding fails."""
    if not text:
        return 0
    try:
        encoding = get_encoding()
        return len(encoding.encode(text, disallowed_special=()))
    except Exception as exc:
        logger.warning("token encoder unavailable, using estimate: %s", exc)
    return estimate_tokens(text)


async def count_tokens_async(text: str) -> int:
    """Awaitable ``count_tokens`` that runs the encoder off the event loop."""
    return await asyncio.to_thread(count_tokens, text)


__all__ = [
    "TOKEN_ENCODING_NAME",
    "CHARS_PER_TOKEN",
    "estimate_tokens",
    "get_encoding",
    "reset_encoding",
    "count_tokens",
    "count_tokens_async",
]
