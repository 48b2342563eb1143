"""Tests for debounced prompt token counting."""

from __future__ import annotations

import threading
import time
import unittest

from askrepo.tokens import DebounceState, PromptTokenDebouncer


def _poll_until_committed(debouncer: PromptTokenDebouncer, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        debouncer.poll()
        if not debouncer.pending:
            return
        time.sleep(0.005)
    raise AssertionError("debouncer did not settle")


class PromptTokenDebouncerTests(unittest.TestCase):
    def test_rapid_edits_only_count_the_last_text(self) -> None:
        counted: list[str] = []

        def count(text: str) -> int:
            counted.append(text)
            return len(text)

        debouncer = PromptTokenDebouncer(delay_seconds=0.2, count=count)
        debouncer.update("F")
        debouncer.update("Fi")
        last = debouncer.update("Fix")
        _poll_until_committed(debouncer)

        self.assertEqual(counted, ["Fix"])
        self.assertEqual(debouncer.token_count, 3)
        self.assertEqual(debouncer.generation, last)
        self.assertIs(debouncer.state, DebounceState.COMMITTED)

    def test_superseded_computation_is_not_committed(self) -> None:
        release = threading.Event()
        first_started = threading.Event()

        def count(text: str) -> int:
            if text == "old":
                first_started.set()
                release.wait(5)
            return len(text)

        debouncer = PromptTokenDebouncer(delay_seconds=0.0, count=count)
        debouncer.update("old")
        self.assertTrue(first_started.wait(5))
        debouncer.update("newer")
        release.set()
        _poll_until_committed(debouncer)

        self.assertEqual(debouncer.token_count, 5)

    def test_cancel_discards_pending_update(self) -> None:
        debouncer = PromptTokenDebouncer(delay_seconds=0.2, count=len)
        debouncer.update("ignored")
        debouncer.cancel()

        self.assertIs(debouncer.state, DebounceState.CANCELLED)
        time.sleep(0.3)
        self.assertFalse(debouncer.poll())
        self.assertEqual(debouncer.token_count, 0)

    def test_compute_now_commits_synchronously(self) -> None:
        debouncer = PromptTokenDebouncer(delay_seconds=10.0, count=len)
        debouncer.update("slow path")
        self.assertEqual(debouncer.compute_now("fast"), 4)
        self.assertEqual(debouncer.token_count, 4)
        self.assertFalse(debouncer.pending)

    def test_failing_count_returns_to_idle(self) -> None:
        def count(text: str) -> int:
            raise ValueError("tokenizer exploded")

        debouncer = PromptTokenDebouncer(delay_seconds=0.0, count=count)
        with self.assertLogs("askrepo.tokens.debounce", level="WARNING"):
            debouncer.update("anything")
            _poll_until_committed(debouncer)

        self.assertIs(debouncer.state, DebounceState.IDLE)
        self.assertEqual(debouncer.token_count, 0)


if __name__ == "__main__":
    unittest.main()
