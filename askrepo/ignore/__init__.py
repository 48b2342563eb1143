"""Ignore-rule compilation and the two independent ignore layers."""

from __future__ import annotations

from .gitignore import (
    GITIGNORE_FILENAME,
    GitIgnoreChain,
    GitIgnorePolicy,
    clear_gitignore_cache,
    is_gitignored_under_root,
    load_gitignore,
    relative_posix,
)
from .patterns import Dialect, IgnorePattern, compile_pattern, rule_lines
from .system import DEFAULT_SYSTEM_IGNORES, SystemIgnorePolicy

__all__ = [
    "Dialect",
    "IgnorePattern",
    "compile_pattern",
    "rule_lines",
    "GITIGNORE_FILENAME",
    "GitIgnoreChain",
    "GitIgnorePolicy",
    "clear_gitignore_cache",
    "is_gitignored_under_root",
    "load_gitignore",
    "relative_posix",
    "DEFAULT_SYSTEM_IGNORES",
    "SystemIgnorePolicy",
]
