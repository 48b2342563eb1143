"""Per-file token cache and batched background recomputation.

A bulk pass splits the paths without a cached count into fixed-size batches.
Batches run strictly one after another; inside a batch every file is read and
encoded concurrently. Each finished batch is queued for the owning thread,
which merges it into the cache on ``commit_results`` so a polled total grows
batch by batch. Workers never touch the cache themselves.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from queue import Empty, Queue

from ..errors import AskRepoError
from ..export.text import read_file_text
from .estimator import count_tokens

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10


def count_file_tokens(path: str) -> int | None:
    """Read ``path`` and return its precise token count, ``None`` if unreadable."""
    try:
        content = read_file_text(path)
    except AskRepoError as exc:
        logger.debug("no token count for %s: %s", path, exc.message)
        return None
    return count_tokens(content)


def chunked(items: Sequence[str], size: int) -> list[list[str]]:
    if size <= 0:
        raise ValueError("batch size must be >= 1")
    return [list(items[idx : idx + size]) for idx in range(0, len(items), size)]


def iter_token_batches(
    paths: Sequence[str],
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    count_file: Callable[[str], int | None] = count_file_tokens,
    should_stop: Callable[[], bool] | None = None,
) -> Iterator[dict[str, int | None]]:
    """Yield one ``{path: count}`` mapping per batch, in batch order.

    The next batch is only started after every file of the previous one has
    finished. ``should_stop`` is checked between batches.
    """
    batches = chunked(paths, batch_size)
    if not batches:
        return
    with ThreadPoolExecutor(max_workers=batch_size, thread_name_prefix="askrepo-tokens") as executor:
        for batch in batches:
            if should_stop is not None and should_stop():
                return
            futures = {path: executor.submit(count_file, path) for path in batch}
            counts: dict[str, int | None] = {}
            for path, future in futures.items():
                try:
                    counts[path] = future.result()
                except Exception as exc:
                    logger.warning("token count failed for %s: %s", path, exc)
                    counts[path] = None
            yield counts


class TokenAccountingCache:
    """Mapping of file path to last computed token count."""

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}

    def get(self, path: str) -> int | None:
        return self._counts.get(path)

    def __contains__(self, path: object) -> bool:
        return path in self._counts

    def __len__(self) -> int:
        return len(self._counts)

    def missing(self, paths: Iterable[str]) -> list[str]:
        """Return ``paths`` lacking an entry, sorted for stable batching."""
        return sorted(path for path in set(paths) if path not in self._counts)

    def merge(self, counts: dict[str, int | None]) -> set[str]:
        """Store computed counts; unreadable files count as 0."""
        changed: set[str] = set()
        for path, count in counts.items():
            value = 0 if count is None else count
            if self._counts.get(path) != value:
                changed.add(path)
            self._counts[path] = value
        return changed

    def invalidate(self, path: str) -> None:
        self._counts.pop(path, None)

    def clear(self) -> None:
        self._counts.clear()

    def prune(self, keep: Iterable[str]) -> set[str]:
        """Drop entries whose path is not in ``keep``; return the dropped paths."""
        keep_set = set(keep)
        dropped = {path for path in self._counts if path not in keep_set}
        for path in dropped:
            del self._counts[path]
        return dropped

    def total(self, paths: Iterable[str]) -> int:
        return sum(self._counts.get(path, 0) for path in set(paths))


@dataclass(frozen=True)
class TokenBatchResult:
    generation: int
    batch_index: int
    counts: dict[str, int | None]
    final: bool = False


class TokenAccountant:
    """Owns a ``TokenAccountingCache`` and runs bulk passes in the background.

    ``schedule`` supersedes any pass in flight: the old worker stops at its
    next batch boundary and its queued batches are discarded on commit.
    """

    def __init__(
        self,
        cache: TokenAccountingCache | None = None,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        count_file: Callable[[str], int | None] = count_file_tokens,
    ) -> None:
        self.cache = cache if cache is not None else TokenAccountingCache()
        self.batch_size = batch_size
        self._count_file = count_file
        self._lock = threading.Lock()
        self._generation = 0
        self._active_workers = 0
        self._tracked: frozenset[str] = frozenset()
        self._extra: frozenset[str] = frozenset()
        self._results: Queue[TokenBatchResult] = Queue()
        self._listeners: list[Callable[[set[str]], None]] = []

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._active_workers > 0 or not self._results.empty()

    def subscribe(self, listener: Callable[[set[str]], None]) -> None:
        """Call ``listener(changed_paths)`` after each committed batch."""
        self._listeners.append(listener)

    def _is_stale(self, generation: int) -> bool:
        with self._lock:
            return generation != self._generation

    def _worker(self, generation: int, paths: list[str]) -> None:
        try:
            batch_index = -1
            for batch_index, counts in enumerate(
                iter_token_batches(
                    paths,
                    batch_size=self.batch_size,
                    count_file=self._count_file,
                    should_stop=lambda: self._is_stale(generation),
                )
            ):
                self._results.put(TokenBatchResult(generation, batch_index, counts))
            self._results.put(TokenBatchResult(generation, batch_index + 1, {}, final=True))
        finally:
            with self._lock:
                self._active_workers -= 1

    def schedule(self, selected: Iterable[str], extra: Iterable[str] = ()) -> int:
        """Start a bulk pass for ``selected`` paths lacking a cached count.

        ``extra`` paths are counted and kept in the cache but stay out of
        ``total``.
        """
        tracked = frozenset(selected)
        extra_paths = frozenset(extra) - tracked
        pending = self.cache.missing(tracked | extra_paths)
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._tracked = tracked
            self._extra = extra_paths
            self._active_workers += 1

        worker = threading.Thread(
            target=self._worker,
            args=(generation, pending),
            name="askrepo-token-accounting",
            daemon=True,
        )
        worker.start()
        return generation

    def cancel(self) -> None:
        """Supersede the pass in flight without starting a new one."""
        with self._lock:
            self._generation += 1

    def get_or_compute(self, path: str) -> int | None:
        """Return a cached count, or schedule computation and return ``None``."""
        cached = self.cache.get(path)
        if cached is not None:
            return cached
        self.schedule(self._tracked, extra=self._extra | {path})
        return None

    def invalidate(self, path: str) -> None:
        """Forget ``path`` after its content changed; the next pass recounts it."""
        self.cache.invalidate(path)

    def drain_results(self) -> list[TokenBatchResult]:
        out: list[TokenBatchResult] = []
        while True:
            try:
                out.append(self._results.get_nowait())
            except Empty:
                break
        return out

    def commit_results(self) -> bool:
        """Merge finished batches of the current pass; return whether anything changed.

        Must be called from the thread that owns the cache.
        """
        changed: set[str] = set()
        pruned = False
        for result in self.drain_results():
            if result.generation != self._generation:
                continue
            changed |= self.cache.merge(result.counts)
            if result.final:
                pruned = bool(self.cache.prune(self._tracked | self._extra)) or pruned
        if changed:
            for listener in list(self._listeners):
                listener(changed)
        return bool(changed) or pruned

    def total(self, selected: Iterable[str] | None = None) -> int:
        return self.cache.total(self._tracked if selected is None else selected)


__all__ = [
    "DEFAULT_BATCH_SIZE",
    "count_file_tokens",
    "chunked",
    "iter_token_batches",
    "TokenAccountingCache",
    "TokenBatchResult",
    "TokenAccountant",
]
