"""Tests for selected-file search, ordering and count labels."""

from __future__ import annotations

import unittest

from askrepo.listing import FileSortOption, filter_and_sort_files, format_token_count, matches_search


class FormatTokenCountTests(unittest.TestCase):
    def test_compact_labels(self) -> None:
        self.assertEqual(format_token_count(0), "0")
        self.assertEqual(format_token_count(999), "999")
        self.assertEqual(format_token_count(1500), "1.5K")
        self.assertEqual(format_token_count(2_300_000), "2.3M")


class FilterAndSortTests(unittest.TestCase):
    def setUp(self) -> None:
        self.paths = [
            "/repo/src/b.py",
            "/repo/README.md",
            "/repo/src/util/a.py",
            "/repo/src/A.py",
        ]

    def test_hierarchical_order(self) -> None:
        self.assertEqual(
            filter_and_sort_files(self.paths),
            ["/repo/README.md", "/repo/src/A.py", "/repo/src/b.py", "/repo/src/util/a.py"],
        )

    def test_token_order_is_descending(self) -> None:
        counts = {"/repo/src/b.py": 50, "/repo/README.md": 10, "/repo/src/util/a.py": 99, "/repo/src/A.py": 0}
        ordered = filter_and_sort_files(self.paths, sort=FileSortOption.TOKENS, token_count_for=counts.__getitem__)
        self.assertEqual(ordered[0], "/repo/src/util/a.py")
        self.assertEqual(ordered[-1], "/repo/src/A.py")

    def test_search_matches_name_or_display_path(self) -> None:
        def display(path: str) -> str:
            return path.removeprefix("/repo/")

        self.assertEqual(filter_and_sort_files(self.paths, query="UTIL", display_path_for=display), ["/repo/src/util/a.py"])
        self.assertTrue(matches_search("/repo/README.md", "README.md", "readme"))
        self.assertFalse(matches_search("/repo/README.md", "README.md", "src"))


if __name__ == "__main__":
    unittest.main()
