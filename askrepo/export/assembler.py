"""Assemble the prompt plus selected file contents into one export document.

Document layout::

    <prompt>
    {prompt}
    </prompt>

    <codebase>
    ## {display path}

    ```
    {content}
    ```

    </codebase>

The prompt block is emitted only for non-blank prompts and the codebase block
only for a non-empty file list. Files are read concurrently, but sections are
always written in the caller's order; unreadable files are left out.
"""

from __future__ import annotations

import asyncio
import logging
import os
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from ..errors import UnknownFileSystemError
from .text import try_read_file_text

logger = logging.getLogger(__name__)

EXPORT_MAX_WORKERS = 8
SUGGESTED_EXPORT_FILENAME = "askrepo-export.txt"


@dataclass(frozen=True)
class ExportFile:
    absolute_path: str
    display_path: str


def read_contents(
    files: Sequence[ExportFile],
    read: Callable[[str], str | None] = try_read_file_text,
) -> dict[str, str]:
    """Read every file concurrently; return contents keyed by absolute path."""
    unique_paths = list(dict.fromkeys(file.absolute_path for file in files))
    if not unique_paths:
        return {}

    contents: dict[str, str] = {}
    max_workers = min(EXPORT_MAX_WORKERS, len(unique_paths))
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="askrepo-export") as executor:
        futures = {path: executor.submit(read, path) for path in unique_paths}
        for path, future in futures.items():
            try:
                content = future.result()
            except Exception as exc:
                logger.warning("omitting %s from export: %s", path, exc)
                continue
            if content is not None:
                contents[path] = content
    return contents


def printable(text: str) -> str:
    """Make ``text`` UTF-8 encodable; undecodable filename bytes become U+FFFD."""
    try:
        return text.encode("utf-8", "surrogateescape").decode("utf-8", "replace")
    except UnicodeEncodeError:
        return text.encode("utf-8", "replace").decode("utf-8")


def render_document(prompt: str, files: Sequence[ExportFile], contents: dict[str, str]) -> str:
    """Render the document from already-loaded ``contents``."""
    parts: list[str] = []
    if prompt.strip():
        parts.append(f"<prompt>\n{printable(prompt)}\n</prompt>\n\n")
    if files:
        parts.append("<codebase>\n")
        for file in files:
            content = contents.get(file.absolute_path)
            if content is None:
                continue
            parts.append(f"## {printable(file.display_path)}\n\n```\n{content}\n```\n\n")
        parts.append("</codebase>")
    return "".join(parts)


def assemble_export(
    prompt: str,
    files: Sequence[ExportFile],
    read: Callable[[str], str | None] = try_read_file_text,
) -> str:
    """Blocking assembly: concurrent reads, deterministic output order."""
    return render_document(prompt, files, read_contents(files, read))


def submit_export(
    prompt: str,
    files: Sequence[ExportFile],
    read: Callable[[str], str | None] = try_read_file_text,
) -> Future[str]:
    """Assemble on a background thread and return the future document."""
    future: Future[str] = Future()
    snapshot = tuple(files)

    def worker() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            document = assemble_export(prompt, snapshot, read)
        except BaseException as exc:
            future.set_exception(exc)
        else:
            future.set_result(document)

    threading.Thread(target=worker, name="askrepo-export", daemon=True).start()
    return future


async def assemble_export_async(
    prompt: str,
    files: Sequence[ExportFile],
    read: Callable[[str], str | None] = try_read_file_text,
) -> str:
    return await asyncio.wrap_future(submit_export(prompt, files, read))


def write_export(destination: str | os.PathLike[str], document: str) -> Path:
    """Write ``document`` as UTF-8; any failure is an ``UnknownFileSystemError``."""
    target = Path(destination)
    try:
        target.write_text(document, encoding="utf-8")
    except (OSError, UnicodeError) as exc:
        raise UnknownFileSystemError(os.fspath(target), exc) from exc
    return target


__all__ = [
    "EXPORT_MAX_WORKERS",
    "SUGGESTED_EXPORT_FILENAME",
    "ExportFile",
    "printable",
    "read_contents",
    "render_document",
    "assemble_export",
    "submit_export",
    "assemble_export_async",
    "write_export",
]
