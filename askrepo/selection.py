"""Selection set of absolute file paths across all loaded roots.

Only file paths are ever stored. Directory selection is derived on demand
from the directory's eligible (non-ignored) descendant files.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Iterator
from enum import Enum

from .file_tree_model import FileTreeNode


class DirectorySelectionState(Enum):
    NONE = "none"
    PARTIAL = "partial"
    FULL = "full"


def is_within_root(path: str, root: str) -> bool:
    """Return whether ``path`` equals ``root`` or lies below it on a segment boundary."""
    if path == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return path.startswith(prefix)


class SelectionModel:
    def __init__(self, selected: Iterable[str] = ()) -> None:
        self._selected: set[str] = set(selected)

    @property
    def paths(self) -> frozenset[str]:
        return frozenset(self._selected)

    def __contains__(self, path: object) -> bool:
        return path in self._selected

    def __len__(self) -> int:
        return len(self._selected)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._selected))

    def is_selected(self, path: str) -> bool:
        return path in self._selected

    def select(self, paths: Iterable[str]) -> set[str]:
        """Insert ``paths``; return the ones that were not already selected."""
        added = set(paths) - self._selected
        self._selected |= added
        return added

    def deselect(self, paths: Iterable[str]) -> set[str]:
        """Remove ``paths``; return the ones that were actually selected."""
        removed = self._selected & set(paths)
        self._selected -= removed
        return removed

    def clear(self) -> None:
        self._selected.clear()

    def toggle_file(self, node: FileTreeNode, confirm: Callable[[str], bool] | None = None) -> bool:
        """Flip one file's membership and return whether it is now selected.

        Selecting an ignored file needs ``confirm(path)`` to return ``True``;
        without a confirmation callback the file stays deselected.
        """
        if node.is_directory:
            raise ValueError(f"not a file node: {node.path}")
        if node.path in self._selected:
            self._selected.discard(node.path)
            return False
        if node.is_ignored and (confirm is None or not confirm(node.path)):
            return False
        self._selected.add(node.path)
        return True

    def directory_state(self, node: FileTreeNode) -> DirectorySelectionState:
        eligible = node.file_paths()
        if not eligible:
            return DirectorySelectionState.NONE
        selected_count = sum(1 for path in eligible if path in self._selected)
        if selected_count == 0:
            return DirectorySelectionState.NONE
        if selected_count == len(eligible):
            return DirectorySelectionState.FULL
        return DirectorySelectionState.PARTIAL

    def set_directory_selected(self, node: FileTreeNode, selected: bool) -> set[str]:
        """Batch-select or deselect every non-ignored file below ``node``.

        Returns the paths whose membership changed.
        """
        eligible = node.file_paths()
        if selected:
            return self.select(eligible)
        return self.deselect(eligible)

    def toggle_directory(self, node: FileTreeNode) -> DirectorySelectionState:
        """Fully select a not-fully-selected directory, otherwise clear it."""
        fully_selected = self.directory_state(node) is DirectorySelectionState.FULL
        self.set_directory_selected(node, not fully_selected)
        return self.directory_state(node)

    def remove_root(self, root: str) -> set[str]:
        """Drop every selected path under ``root`` and return them."""
        removed = {path for path in self._selected if is_within_root(path, root)}
        self._selected -= removed
        return removed

    def reconcile(self, keep: Callable[[str], bool]) -> set[str]:
        """Keep only paths for which ``keep(path)`` holds; return the dropped ones."""
        dropped = {path for path in self._selected if not keep(path)}
        self._selected -= dropped
        return dropped


__all__ = [
    "DirectorySelectionState",
    "SelectionModel",
    "is_within_root",
]
