"""Global, user-configured ignore list applied to every root.

Unlike gitignore rules there is no negation and no ordering: any matching
pattern excludes the path. Matching is case-insensitive and segment based, and
a path is also excluded when one of its ancestor directories (below the scan
root) would have been.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .gitignore import relative_posix
from .patterns import Dialect, IgnorePattern, compile_pattern

DEFAULT_SYSTEM_IGNORES: tuple[str, ...] = (
    ".DS_Store",
    "Thumbs.db",
    "*.log",
    "*.tmp",
    "*.temp",
    ".git/",
    ".svn/",
    ".hg/",
    "node_modules/",
    ".vscode/",
    ".idea/",
    "*.xcworkspace/",
    "*.xcodeproj/",
    "build/",
    "dist/",
    "target/",
    "*.class",
    "*.jar",
    "*.war",
    "*.exe",
    "*.dll",
    "*.so",
    "*.dylib",
)


@dataclass(frozen=True)
class SystemIgnorePolicy:
    patterns: tuple[IgnorePattern, ...] = ()

    @classmethod
    def from_patterns(cls, raw_patterns: Iterable[str]) -> "SystemIgnorePolicy":
        compiled = (compile_pattern(raw, Dialect.SYSTEM_GLOB) for raw in raw_patterns)
        return cls(patterns=tuple(pattern for pattern in compiled if pattern is not None))

    @property
    def raw_patterns(self) -> list[str]:
        return [pattern.raw for pattern in self.patterns]

    def _matches(self, relative_path: str, is_directory: bool) -> bool:
        return any(pattern.matches(relative_path, is_directory) for pattern in self.patterns)

    def is_ignored(self, path: str | Path, is_directory: bool, root: str | Path | None = None) -> bool:
        """Return whether ``path`` is excluded.

        With ``root`` only the segments below it are considered; without it
        only the entry's own name is matched.
        """
        if not self.patterns:
            return False
        if root is None:
            relative = Path(os.fspath(path)).name
        else:
            relative = relative_posix(path, root)
        if not relative:
            return False

        parts = relative.split("/")
        for idx in range(1, len(parts)):
            if self._matches("/".join(parts[:idx]), True):
                return True
        return self._matches(relative, is_directory)

    def __bool__(self) -> bool:
        return bool(self.patterns)


__all__ = [
    "DEFAULT_SYSTEM_IGNORES",
    "SystemIgnorePolicy",
]
