"""Token estimation, per-file token cache, and prompt debounce."""

from __future__ import annotations

from .accounting import (
    DEFAULT_BATCH_SIZE,
    TokenAccountant,
    TokenAccountingCache,
    TokenBatchResult,
    chunked,
    count_file_tokens,
    iter_token_batches,
)
from .debounce import DEFAULT_DEBOUNCE_SECONDS, DebounceState, PromptTokenDebouncer
from .estimator import count_tokens, count_tokens_async, estimate_tokens, get_encoding, reset_encoding

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "TokenAccountant",
    "TokenAccountingCache",
    "TokenBatchResult",
    "chunked",
    "count_file_tokens",
    "iter_token_batches",
    "DEFAULT_DEBOUNCE_SECONDS",
    "DebounceState",
    "PromptTokenDebouncer",
    "count_tokens",
    "count_tokens_async",
    "estimate_tokens",
    "get_encoding",
    "reset_encoding",
]
