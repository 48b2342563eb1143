"""Tests for file selection and derived directory state."""

from __future__ import annotations

import unittest

from askrepo.file_tree_model import FileTreeNode, IgnoreReason
from askrepo.selection import DirectorySelectionState, SelectionModel, is_within_root


def _file(path: str, ignored: bool = False) -> FileTreeNode:
    reason = IgnoreReason.GITIGNORE if ignored else IgnoreReason.NONE
    return FileTreeNode(name=path.rsplit("/", 1)[-1], path=path, is_directory=False, ignore_reason=reason)


def _directory(path: str, *children: FileTreeNode) -> FileTreeNode:
    return FileTreeNode(name=path.rsplit("/", 1)[-1], path=path, is_directory=True, children=children)


class SelectionModelTests(unittest.TestCase):
    def setUp(self) -> None:
        self.ignored = _file("/repo/src/debug.log", ignored=True)
        self.src = _directory(
            "/repo/src",
            _file("/repo/src/a.py"),
            _file("/repo/src/b.py"),
            _file("/repo/src/c.py"),
            self.ignored,
        )

    def test_directory_selection_skips_ignored_files(self) -> None:
        selection = SelectionModel()
        changed = selection.set_directory_selected(self.src, True)

        self.assertEqual(len(changed), 3)
        self.assertEqual(len(selection), 3)
        self.assertNotIn(self.ignored.path, selection)
        self.assertIs(selection.directory_state(self.src), DirectorySelectionState.FULL)

    def test_directory_state_is_partial_with_some_files(self) -> None:
        selection = SelectionModel(["/repo/src/a.py"])
        self.assertIs(selection.directory_state(self.src), DirectorySelectionState.PARTIAL)

    def test_directory_without_eligible_files_is_none(self) -> None:
        only_ignored = _directory("/repo/logs", _file("/repo/logs/x.log", ignored=True))
        selection = SelectionModel(["/repo/logs/x.log"])
        self.assertIs(selection.directory_state(only_ignored), DirectorySelectionState.NONE)

    def test_toggle_directory_twice_restores_empty_selection(self) -> None:
        selection = SelectionModel()
        self.assertIs(selection.toggle_directory(self.src), DirectorySelectionState.FULL)
        self.assertIs(selection.toggle_directory(self.src), DirectorySelectionState.NONE)
        self.assertEqual(len(selection), 0)

    def test_toggle_partial_directory_selects_all(self) -> None:
        selection = SelectionModel(["/repo/src/a.py"])
        self.assertIs(selection.toggle_directory(self.src), DirectorySelectionState.FULL)

    def test_ignored_file_needs_confirmation(self) -> None:
        selection = SelectionModel()
        self.assertFalse(selection.toggle_file(self.ignored))
        self.assertFalse(selection.toggle_file(self.ignored, confirm=lambda _path: False))
        self.assertTrue(selection.toggle_file(self.ignored, confirm=lambda _path: True))
        self.assertIn(self.ignored.path, selection)

    def test_toggle_file_flips_membership(self) -> None:
        node = _file("/repo/src/a.py")
        selection = SelectionModel()
        self.assertTrue(selection.toggle_file(node))
        self.assertFalse(selection.toggle_file(node))
        self.assertFalse(selection.is_selected(node.path))

    def test_toggle_file_rejects_directories(self) -> None:
        with self.assertRaises(ValueError):
            SelectionModel().toggle_file(self.src)

    def test_remove_root_only_drops_paths_below_it(self) -> None:
        selection = SelectionModel(["/repo/a.py", "/repo/sub/b.py", "/repo2/c.py"])
        removed = selection.remove_root("/repo")

        self.assertEqual(removed, {"/repo/a.py", "/repo/sub/b.py"})
        self.assertEqual(list(selection), ["/repo2/c.py"])

    def test_reconcile_keeps_only_accepted_paths(self) -> None:
        selection = SelectionModel(["/repo/a.py", "/repo/gone.py"])
        dropped = selection.reconcile(lambda path: not path.endswith("gone.py"))
        self.assertEqual(dropped, {"/repo/gone.py"})
        self.assertEqual(selection.paths, frozenset({"/repo/a.py"}))


class WithinRootTests(unittest.TestCase):
    def test_prefix_must_end_on_segment_boundary(self) -> None:
        self.assertTrue(is_within_root("/repo/a.py", "/repo"))
        self.assertTrue(is_within_root("/repo", "/repo"))
        self.assertFalse(is_within_root("/repo2/a.py", "/repo"))


if __name__ == "__main__":
    unittest.main()
