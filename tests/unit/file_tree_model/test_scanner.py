"""Tests for background and awaitable scanning plus the rescan scheduler."""

from __future__ import annotations

import asyncio
import tempfile
import threading
import time
import unittest
from pathlib import Path
from unittest import mock

from askrepo.errors import FileMissingError, NotDirectoryError, UnknownFileSystemError
from askrepo.file_tree_model import (
    WorkspaceScanScheduler,
    scan_directory_async,
    scan_roots,
    submit_scan,
)
from askrepo.ignore import SystemIgnorePolicy


def _drain_until(scheduler: WorkspaceScanScheduler, timeout: float = 5.0):
    deadline = time.monotonic() + timeout
    results = []
    while time.monotonic() < deadline:
        results.extend(scheduler.drain_results())
        if not scheduler.busy:
            results.extend(scheduler.drain_results())
            return results
        time.sleep(0.01)
    raise AssertionError("scan scheduler did not go idle")


class BackgroundScanTests(unittest.TestCase):
    def test_submit_scan_resolves_to_tree(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            (root / "a.py").write_text("x", encoding="utf-8")

            tree = submit_scan(root).result(timeout=5)
            self.assertEqual([child.name for child in tree.children], ["a.py"])

    def test_submit_scan_carries_validation_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            future = submit_scan(Path(tmp) / "missing")
            with self.assertRaises(FileMissingError):
                future.result(timeout=5)

    def test_scan_directory_async_awaits_tree(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            (root / "b.py").write_text("x", encoding="utf-8")

            tree = asyncio.run(scan_directory_async(root))
            self.assertEqual(tree.file_paths(), [str(root / "b.py")])

    def test_scan_roots_keeps_root_order_and_isolates_failures(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp).resolve()
            first = base / "one"
            second = base / "two"
            first.mkdir()
            second.write_text("not a dir", encoding="utf-8")

            outcomes = scan_roots((str(first), str(second)), SystemIgnorePolicy())

            self.assertEqual([outcome.root for outcome in outcomes], [str(first), str(second)])
            self.assertIsNotNone(outcomes[0].tree)
            self.assertIsNone(outcomes[1].tree)
            self.assertIsInstance(outcomes[1].error, NotDirectoryError)


class WorkspaceScanSchedulerTests(unittest.TestCase):
    def test_pending_requests_collapse_to_latest(self) -> None:
        release = threading.Event()
        started = threading.Event()
        scanned: list[tuple[str, ...]] = []

        def fake_scan_roots(roots, system_policy):
            scanned.append(tuple(roots))
            started.set()
            release.wait(5)
            return ()

        scheduler = WorkspaceScanScheduler()
        with mock.patch("askrepo.file_tree_model.scanner.scan_roots", side_effect=fake_scan_roots):
            scheduler.schedule(["/first"], SystemIgnorePolicy())
            self.assertTrue(started.wait(5))
            scheduler.schedule(["/second"], SystemIgnorePolicy())
            latest = scheduler.schedule(["/third"], SystemIgnorePolicy())
            release.set()
            results = _drain_until(scheduler)

        self.assertEqual(scanned, [("/first",), ("/third",)])
        self.assertEqual(scheduler.latest_request_id, latest)
        self.assertEqual(results[-1].request.request_id, latest)

    def test_failed_pass_reports_errors_and_scheduler_keeps_working(self) -> None:
        scheduler = WorkspaceScanScheduler()
        with mock.patch(
            "askrepo.file_tree_model.scanner.scan_roots",
            side_effect=[RecursionError("too deep"), ()],
        ):
            with self.assertLogs("askrepo.file_tree_model.scanner", level="WARNING"):
                scheduler.schedule(["/a", "/b"], SystemIgnorePolicy())
                failed = _drain_until(scheduler)
            scheduler.schedule(["/a"], SystemIgnorePolicy())
            recovered = _drain_until(scheduler)

        self.assertEqual(len(failed), 1)
        self.assertEqual([outcome.root for outcome in failed[0].outcomes], ["/a", "/b"])
        for outcome in failed[0].outcomes:
            self.assertIsNone(outcome.tree)
            self.assertIsInstance(outcome.error, UnknownFileSystemError)
            self.assertIsInstance(outcome.error.original, RecursionError)
        self.assertEqual(len(recovered), 1)
        self.assertFalse(scheduler.busy)


if __name__ == "__main__":
    unittest.main()
