"""Domain datatypes for scanned file trees."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from ..errors import AskRepoError


class IgnoreReason(Enum):
    NONE = "none"
    GITIGNORE = "gitignore"
    SYSTEM = "system"


@dataclass(frozen=True)
class FileTreeNode:
    """One scanned filesystem entry.

    ``children`` is ordered directories first, then files. A gitignored
    directory keeps an empty ``children`` tuple because it is never descended
    into. ``scan_error`` is set on a directory whose listing failed.
    """

    name: str
    path: str
    is_directory: bool
    children: tuple["FileTreeNode", ...] = ()
    ignore_reason: IgnoreReason = IgnoreReason.NONE
    scan_error: AskRepoError | None = None

    @property
    def is_ignored(self) -> bool:
        return self.ignore_reason is not IgnoreReason.NONE

    def walk(self) -> Iterator["FileTreeNode"]:
        """Yield this node and all descendants depth-first in display order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def file_paths(self, include_ignored: bool = False) -> list[str]:
        """Return descendant file paths, skipping ignored files unless asked."""
        return [
            node.path
            for node in self.walk()
            if not node.is_directory and (include_ignored or not node.is_ignored)
        ]

    def find(self, path: str) -> "FileTreeNode | None":
        for node in self.walk():
            if node.path == path:
                return node
        return None


__all__ = [
    "IgnoreReason",
    "FileTreeNode",
]
