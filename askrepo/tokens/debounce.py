"""Debounced token counting for free-form prompt text.

Each edit bumps a generation counter and restarts a quiet-period timer. A
worker may only publish a count if its generation is still current when it
finishes, and ``poll`` re-checks the generation before committing, so a
superseded computation never becomes visible.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import Enum
from queue import Empty, Queue

from .estimator import count_tokens

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3


class DebounceState(Enum):
    IDLE = "idle"
    PENDING = "pending"
    COMPUTING = "computing"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


class PromptTokenDebouncer:
    def __init__(
        self,
        delay_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        count: Callable[[str], int] = count_tokens,
    ) -> None:
        self.delay_seconds = delay_seconds
        self._count = count
        self._lock = threading.Lock()
        self._generation = 0
        self._timer: threading.Timer | None = None
        self._state = DebounceState.IDLE
        self._results: Queue[tuple[int, int]] = Queue()
        self.token_count = 0

    @property
    def state(self) -> DebounceState:
        with self._lock:
            return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending(self) -> bool:
        with self._lock:
            busy = self._state in (DebounceState.PENDING, DebounceState.COMPUTING)
        return busy or not self._results.empty()

    def _run(self, generation: int, text: str) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._state = DebounceState.COMPUTING
        try:
            count = self._count(text)
        except Exception as exc:
            logger.warning("prompt token count failed: %r", exc)
            with self._lock:
                if generation == self._generation:
                    self._state = DebounceState.IDLE
                    self._timer = None
            return
        with self._lock:
            if generation != self._generation:
                return
            self._results.put((generation, count))

    def update(self, text: str) -> int:
        """Restart the quiet period for ``text``; return the new generation."""
        with self._lock:
            self._generation += 1
            generation = self._generation
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(self.delay_seconds, self._run, args=(generation, text))
            timer.daemon = True
            self._timer = timer
            self._state = DebounceState.PENDING
        timer.start()
        return generation

    def cancel(self) -> None:
        """Drop any scheduled or running computation without committing it."""
        with self._lock:
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if self._state in (DebounceState.PENDING, DebounceState.COMPUTING):
                self._state = DebounceState.CANCELLED

    def compute_now(self, text: str) -> int:
        """Count synchronously, superseding anything in flight."""
        self.cancel()
        count = self._count(text)
        with self._lock:
            self.token_count = count
            self._state = DebounceState.COMMITTED
        return count

    def poll(self) -> bool:
        """Commit a finished current-generation count; return whether it changed."""
        committed = False
        while True:
            try:
                generation, count = self._results.get_nowait()
            except Empty:
                break
            with self._lock:
                if generation != self._generation:
                    continue
                self.token_count = count
                self._state = DebounceState.COMMITTED
                self._timer = None
            committed = True
        return committed


__all__ = [
    "DEFAULT_DEBOUNCE_SECONDS",
    "DebounceState",
    "PromptTokenDebouncer",
]
