"""Non-blocking forms of directory scanning.

``submit_scan`` runs one scan on a daemon thread and hands back a
``concurrent.futures.Future``; ``scan_directory_async`` awaits the same work
from asyncio code. ``WorkspaceScanScheduler`` rescans a whole list of roots in
the background, collapsing pending requests to the newest one; the owning
thread collects finished passes with ``drain_results``.
"""

from __future__ import annotations

import asyncio
import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from queue import Empty, Queue

from ..errors import AskRepoError, UnknownFileSystemError
from ..ignore import SystemIgnorePolicy
from .fs import scan_directory
from .types import FileTreeNode

logger = logging.getLogger(__name__)

SCAN_MAX_WORKERS = 8


def submit_scan(
    root: str | os.PathLike[str],
    system_policy: SystemIgnorePolicy | None = None,
) -> Future[FileTreeNode]:
    """Start scanning ``root`` on a background thread and return its future."""
    future: Future[FileTreeNode] = Future()

    def worker() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            tree = scan_directory(root, system_policy)
        except BaseException as exc:
            future.set_exception(exc)
        else:
            future.set_result(tree)

    threading.Thread(target=worker, name="askrepo-scan", daemon=True).start()
    return future


async def scan_directory_async(
    root: str | os.PathLike[str],
    system_policy: SystemIgnorePolicy | None = None,
) -> FileTreeNode:
    """Awaitable scan that keeps the event loop free while the tree is built."""
    return await asyncio.wrap_future(submit_scan(root, system_policy))


@dataclass(frozen=True)
class RootScanOutcome:
    """Result for one root: exactly one of ``tree`` and ``error`` is set."""

    root: str
    tree: FileTreeNode | None
    error: AskRepoError | None


@dataclass(frozen=True)
class WorkspaceScanRequest:
    request_id: int
    roots: tuple[str, ...]
    system_policy: SystemIgnorePolicy


@dataclass(frozen=True)
class WorkspaceScanResult:
    request: WorkspaceScanRequest
    outcomes: tuple[RootScanOutcome, ...]


def _scan_root(root: str, system_policy: SystemIgnorePolicy) -> RootScanOutcome:
    try:
        tree = scan_directory(root, system_policy)
    except AskRepoError as exc:
        return RootScanOutcome(root=root, tree=None, error=exc)
    except OSError as exc:
        return RootScanOutcome(root=root, tree=None, error=UnknownFileSystemError(root, exc))
    return RootScanOutcome(root=root, tree=tree, error=None)


def scan_roots(roots: tuple[str, ...], system_policy: SystemIgnorePolicy) -> tuple[RootScanOutcome, ...]:
    """Scan several roots in parallel, keeping outcomes in root order."""
    if not roots:
        return ()
    if len(roots) == 1:
        return (_scan_root(roots[0], system_policy),)

    max_workers = min(SCAN_MAX_WORKERS, len(roots))
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="askrepo-scan") as executor:
        futures = [executor.submit(_scan_root, root, system_policy) for root in roots]
        return tuple(future.result() for future in futures)


class WorkspaceScanScheduler:
    """Single-worker, latest-request-wins rescan of all workspace roots."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: WorkspaceScanRequest | None = None
        self._running = False
        self._next_request_id = 1
        self._latest_request_id = 0
        self._results: Queue[WorkspaceScanResult] = Queue()

    @property
    def latest_request_id(self) -> int:
        return self._latest_request_id

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._running or self._pending is not None or not self._results.empty()

    def _worker(self) -> None:
        try:
            while True:
                with self._lock:
                    request = self._pending
                    self._pending = None
                    if request is None:
                        self._running = False
                        return

                try:
                    outcomes = scan_roots(request.roots, request.system_policy)
                except Exception as exc:
                    logger.warning("workspace scan %d failed: %r", request.request_id, exc)
                    outcomes = tuple(
                        RootScanOutcome(root=root, tree=None, error=UnknownFileSystemError(root, exc))
                        for root in request.roots
                    )
                self._results.put(WorkspaceScanResult(request=request, outcomes=outcomes))
        except BaseException:
            with self._lock:
                self._running = False
            raise

    def schedule(
        self,
        roots: list[str],
        system_policy: SystemIgnorePolicy,
    ) -> int:
        """Queue/replace pending scan work and return its request id."""
        with self._lock:
            request_id = self._next_request_id
            self._next_request_id += 1
            self._pending = WorkspaceScanRequest(
                request_id=request_id,
                roots=tuple(roots),
                system_policy=system_policy,
            )
            self._latest_request_id = request_id
            if self._running:
                return request_id
            self._running = True

        worker = threading.Thread(
            target=self._worker,
            name="askrepo-workspace-scan",
            daemon=True,
        )
        worker.start()
        return request_id

    def drain_results(self) -> list[WorkspaceScanResult]:
        """Drain all completed scan passes, oldest first."""
        out: list[WorkspaceScanResult] = []
        while True:
            try:
                out.append(self._results.get_nowait())
            except Empty:
                break
        return out


__all__ = [
    "submit_scan",
    "scan_directory_async",
    "scan_roots",
    "RootScanOutcome",
    "WorkspaceScanRequest",
    "WorkspaceScanResult",
    "WorkspaceScanScheduler",
]
