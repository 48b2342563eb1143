"""Selected-file listing helpers: search filter, ordering, count formatting."""

from __future__ import annotations

import functools
import os
from collections.abc import Callable, Iterable
from enum import Enum


class FileSortOption(Enum):
    HIERARCHICAL = "structure"
    TOKENS = "tokens"


def format_token_count(count: int) -> str:
    """Compact count label: ``999``, ``1.5K``, ``2.3M``."""
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M"
    if count >= 1_000:
        return f"{count / 1_000:.1f}K"
    return str(count)


def _compare_hierarchical(left: str, right: str) -> int:
    left_parts = left.split(os.sep)
    right_parts = right.split(os.sep)
    # Shared directory levels first, then shallower paths, then file name.
    for idx in range(min(len(left_parts), len(right_parts)) - 1):
        a = left_parts[idx].casefold()
        b = right_parts[idx].casefold()
        if a != b:
            return -1 if a < b else 1
    if len(left_parts) != len(right_parts):
        return -1 if len(left_parts) < len(right_parts) else 1
    a = left_parts[-1].casefold()
    b = right_parts[-1].casefold()
    if a == b:
        return 0
    return -1 if a < b else 1


def matches_search(path: str, display_path: str, query: str) -> bool:
    if not query:
        return True
    needle = query.casefold()
    return needle in os.path.basename(path).casefold() or needle in display_path.casefold()


def filter_and_sort_files(
    paths: Iterable[str],
    *,
    query: str = "",
    sort: FileSortOption = FileSortOption.HIERARCHICAL,
    display_path_for: Callable[[str], str] = os.path.basename,
    token_count_for: Callable[[str], int] | None = None,
) -> list[str]:
    """Return selected paths matching ``query`` in the requested order."""
    filtered = [path for path in paths if matches_search(path, display_path_for(path), query)]
    if sort is FileSortOption.TOKENS:
        counts = token_count_for or (lambda _path: 0)
        return sorted(filtered, key=lambda path: (-counts(path), path))
    return sorted(filtered, key=functools.cmp_to_key(_compare_hierarchical))


__all__ = [
    "FileSortOption",
    "format_token_count",
    "matches_search",
    "filter_and_sort_files",
]
