"""Workspace coordinator: roots, trees, selection, token totals, export.

A ``Workspace`` is owned by one thread (the coordination thread). Directory
scans, token accounting and prompt counting run on background workers that
only return values; ``poll`` drains their result queues and commits them
here, so the tree, the selection set and the token cache are only ever
mutated from the owning thread.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable, Iterable
from concurrent.futures import Future
from pathlib import Path

from .errors import AskRepoError
from .export import ExportFile, assemble_export, submit_export, write_export
from .file_tree_model import (
    FileTreeNode,
    WorkspaceScanResult,
    WorkspaceScanScheduler,
    validate_directory_path,
)
from .ignore import DEFAULT_SYSTEM_IGNORES, SystemIgnorePolicy, clear_gitignore_cache, is_gitignored_under_root
from .listing import FileSortOption, filter_and_sort_files
from .selection import DirectorySelectionState, SelectionModel, is_within_root
from .tokens import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_DEBOUNCE_SECONDS,
    PromptTokenDebouncer,
    TokenAccountant,
    count_file_tokens,
    count_tokens,
)

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.01


class Workspace:
    def __init__(
        self,
        system_ignores: Iterable[str] | None = None,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        count_file: Callable[[str], int | None] = count_file_tokens,
        count_text: Callable[[str], int] = count_tokens,
        persist_roots: Callable[[list[str]], None] | None = None,
        track_tokens: bool = True,
    ) -> None:
        patterns = DEFAULT_SYSTEM_IGNORES if system_ignores is None else system_ignores
        self.system_policy = SystemIgnorePolicy.from_patterns(patterns)
        self.roots: list[str] = []
        self.trees: dict[str, FileTreeNode] = {}
        self.scan_errors: dict[str, AskRepoError] = {}
        self.selection = SelectionModel()
        self.tokens = TokenAccountant(batch_size=batch_size, count_file=count_file)
        self.prompt = PromptTokenDebouncer(debounce_seconds, count_text)
        self.prompt_text = ""
        self._scanner = WorkspaceScanScheduler()
        self._awaiting_auto_select: set[str] = set()
        self._reconcile_on_commit = False
        self._persist_roots = persist_roots
        self.track_tokens = track_tokens

    # roots

    def _save_roots(self) -> None:
        if self._persist_roots is not None:
            self._persist_roots(list(self.roots))

    def _schedule_scan(self) -> int:
        return self._scanner.schedule(list(self.roots), self.system_policy)

    def add_directory(self, path: str | os.PathLike[str]) -> AskRepoError | None:
        """Validate and add a root; its files are auto-selected once scanned.

        Returns the validation error instead of raising, leaving the workspace
        untouched.
        """
        try:
            root = validate_directory_path(path)
        except AskRepoError as exc:
            logger.info("rejected root %s: %s", os.fspath(path), exc.message)
            return exc
        if root in self.roots:
            return None
        self.roots.append(root)
        self._awaiting_auto_select.add(root)
        self._save_roots()
        self._schedule_scan()
        return None

    def restore_directories(self, paths: Iterable[str]) -> list[AskRepoError]:
        """Re-add persisted roots, skipping ones that no longer exist."""
        errors: list[AskRepoError] = []
        for path in paths:
            if not os.path.isdir(path):
                logger.info("skipping missing saved root %s", path)
                continue
            error = self.add_directory(path)
            if error is not None:
                errors.append(error)
        return errors

    def remove_directory(self, root: str, confirm: Callable[[str], bool] | None = None) -> bool:
        """Remove a root and every selected path below it."""
        if root not in self.roots:
            return False
        if confirm is not None and not confirm(root):
            return False
        self.roots.remove(root)
        self.trees.pop(root, None)
        self.scan_errors.pop(root, None)
        self._awaiting_auto_select.discard(root)
        self.selection.remove_root(root)
        self._save_roots()
        self._selection_changed()
        return True

    def clear_all(self) -> None:
        self.roots.clear()
        self.trees.clear()
        self.scan_errors.clear()
        self._awaiting_auto_select.clear()
        self.selection.clear()
        self.tokens.cache.clear()
        self._save_roots()
        self._selection_changed()

    def refresh(self) -> int:
        """Rescan every root; surviving selections are reconciled on commit."""
        self._reconcile_on_commit = True
        self.tokens.cancel()
        self.tokens.cache.clear()
        return self._schedule_scan()

    def on_ignore_policy_changed(self, system_ignores: Iterable[str]) -> int:
        """Adopt a new system-ignore list and rescan."""
        self.system_policy = SystemIgnorePolicy.from_patterns(system_ignores)
        clear_gitignore_cache()
        return self.refresh()

    # lookup

    def owning_root(self, path: str) -> str | None:
        candidates = [root for root in self.roots if is_within_root(path, root)]
        if not candidates:
            return None
        return max(candidates, key=len)

    def find_node(self, path: str) -> FileTreeNode | None:
        root = self.owning_root(path)
        if root is None or root not in self.trees:
            return None
        return self.trees[root].find(path)

    def display_path(self, path: str) -> str:
        """Path relative to its root, prefixed by the root name with several roots."""
        root = self.owning_root(path)
        if root is None:
            return os.path.basename(path)
        relative = Path(os.path.relpath(path, root)).as_posix()
        if len(self.roots) > 1:
            return f"{os.path.basename(root.rstrip(os.sep))}/{relative}"
        return relative

    # selection

    def _selection_changed(self) -> None:
        if self.track_tokens:
            self.tokens.schedule(self.selection.paths)

    def toggle_file(self, path: str, confirm: Callable[[str], bool] | None = None) -> bool:
        """Toggle one file; ignored files need ``confirm`` to be selected."""
        node = self.find_node(path)
        if node is None or node.is_directory:
            return False
        selected = self.selection.toggle_file(node, confirm)
        self._selection_changed()
        return selected

    def request_include_ignored(self, path: str, confirm: Callable[[str], bool]) -> bool:
        """Select an ignored file after ``confirm(path)`` agrees."""
        node = self.find_node(path)
        if node is None or node.is_directory or not node.is_ignored:
            return False
        if self.selection.is_selected(path):
            return True
        if not confirm(path):
            return False
        self.selection.select([path])
        self._selection_changed()
        return True

    def toggle_directory(self, path: str) -> DirectorySelectionState:
        node = self.find_node(path)
        if node is None or not node.is_directory:
            return DirectorySelectionState.NONE
        state = self.selection.toggle_directory(node)
        self._selection_changed()
        return state

    def directory_state(self, path: str) -> DirectorySelectionState:
        node = self.find_node(path)
        if node is None or not node.is_directory:
            return DirectorySelectionState.NONE
        return self.selection.directory_state(node)

    def _is_still_eligible(self, path: str, previously_ignored: set[str]) -> bool:
        if not os.path.isfile(path):
            return False
        root = self.owning_root(path)
        if root is None:
            return False
        if self.system_policy.is_ignored(path, False, root):
            return False
        if path in previously_ignored:
            return True
        return not is_gitignored_under_root(path, root)

    # background results

    def _commit_scan(self, result: WorkspaceScanResult) -> None:
        previously_ignored = {
            node.path
            for tree in self.trees.values()
            for node in tree.walk()
            if not node.is_directory and node.is_ignored
        }
        for outcome in result.outcomes:
            if outcome.root not in self.roots:
                continue
            if outcome.tree is not None:
                self.trees[outcome.root] = outcome.tree
                self.scan_errors.pop(outcome.root, None)
                if outcome.root in self._awaiting_auto_select:
                    self.selection.select(outcome.tree.file_paths())
            else:
                self.trees.pop(outcome.root, None)
                if outcome.error is not None:
                    self.scan_errors[outcome.root] = outcome.error
            self._awaiting_auto_select.discard(outcome.root)

        if self._reconcile_on_commit:
            self._reconcile_on_commit = False
            dropped = self.selection.reconcile(lambda path: self._is_still_eligible(path, previously_ignored))
            if dropped:
                logger.debug("refresh dropped %d selected paths", len(dropped))
        self._selection_changed()

    def poll(self) -> bool:
        """Commit finished background work; return whether anything changed."""
        changed = False
        latest_scan = self._scanner.latest_request_id
        for result in self._scanner.drain_results():
            if result.request.request_id != latest_scan:
                continue
            self._commit_scan(result)
            changed = True
        changed = self.tokens.commit_results() or changed
        changed = self.prompt.poll() or changed
        return changed

    @property
    def busy(self) -> bool:
        return self._scanner.busy or self.tokens.busy or self.prompt.pending

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Poll until all background work has committed; ``False`` on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            self.poll()
            if not self.busy:
                return True
            if deadline is not None and time.monotonic() >= deadline:
                return False
            time.sleep(POLL_INTERVAL_SECONDS)

    # tokens

    def set_prompt(self, text: str) -> None:
        self.prompt_text = text
        self.prompt.update(text)

    def file_token_count(self, path: str) -> int:
        return self.tokens.cache.get(path) or 0

    @property
    def total_tokens(self) -> int:
        return self.prompt.token_count + self.tokens.total(self.selection.paths)

    def selected_files(self, query: str = "", sort: FileSortOption = FileSortOption.HIERARCHICAL) -> list[str]:
        return filter_and_sort_files(
            self.selection.paths,
            query=query,
            sort=sort,
            display_path_for=self.display_path,
            token_count_for=self.file_token_count,
        )

    # export

    def export_files(self) -> list[ExportFile]:
        return [
            ExportFile(absolute_path=path, display_path=self.display_path(path))
            for path in sorted(self.selection.paths)
        ]

    def build_export(self) -> Future[str]:
        """Assemble the export document in the background."""
        return submit_export(self.prompt_text, self.export_files())

    def export_text(self) -> str:
        return assemble_export(self.prompt_text, self.export_files())

    def save_export(self, destination: str | os.PathLike[str]) -> Path:
        """Write the export as UTF-8; raises ``UnknownFileSystemError`` on failure."""
        return write_export(destination, self.export_text())


__all__ = [
    "POLL_INTERVAL_SECONDS",
    "Workspace",
]
