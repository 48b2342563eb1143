"""Path validation and eager recursive directory scanning."""

from __future__ import annotations

import locale
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from ..errors import (
    AskRepoError,
    FileMissingError,
    InvalidPathError,
    NotDirectoryError,
    classify_os_error,
)
from ..ignore import GitIgnoreChain, SystemIgnorePolicy, load_gitignore
from .types import FileTreeNode, IgnoreReason

logger = logging.getLogger(__name__)

# Not meaningful in a text export, dropped regardless of ignore rules.
BINARY_EXTENSIONS = frozenset(
    {
        ".exe",
        ".dll",
        ".so",
        ".dylib",
        ".a",
        ".o",
        ".obj",
        ".bin",
        ".class",
        ".jar",
        ".pyc",
        ".pyo",
    }
)


@dataclass(frozen=True)
class DirectoryChild:
    """One listed directory entry that survived system-ignore filtering."""

    name: str
    path: str
    is_dir: bool
    ignore_reason: IgnoreReason = IgnoreReason.NONE


def _has_control_characters(text: str) -> bool:
    return any(ord(ch) < 32 or ord(ch) == 127 for ch in text)


def validate_path(path: str | os.PathLike[str]) -> str:
    """Return ``path`` as an absolute normalized string or raise a typed error.

    Rejects empty paths, ``..`` segments and control characters before touching
    the filesystem, then requires the path to exist.
    """
    text = os.fspath(path)
    if not text or not text.strip():
        raise InvalidPathError(text)
    if _has_control_characters(text):
        raise InvalidPathError(text.encode("unicode_escape").decode("ascii"))
    if os.pardir in Path(text).parts:
        raise InvalidPathError(text)
    absolute = os.path.abspath(os.path.expanduser(text))
    if not os.path.exists(absolute):
        raise FileMissingError(absolute)
    return absolute


def validate_directory_path(path: str | os.PathLike[str]) -> str:
    """Like ``validate_path`` but additionally require a directory."""
    absolute = validate_path(path)
    if not os.path.isdir(absolute):
        raise NotDirectoryError(absolute)
    return absolute


def is_binary_name(name: str) -> bool:
    return os.path.splitext(name)[1].lower() in BINARY_EXTENSIONS


def _sort_key(child: DirectoryChild) -> tuple[bool, str, str]:
    folded = child.name.casefold()
    try:
        collated = locale.strxfrm(folded)
    except (ValueError, OSError):
        collated = folded
    return (not child.is_dir, collated, child.name)


def list_directory_children(
    directory: str,
    root: str,
    system_policy: SystemIgnorePolicy | None,
    gitignore_chain: GitIgnoreChain,
) -> tuple[list[DirectoryChild], AskRepoError | None]:
    """List one directory level with ignore decisions applied.

    Returns ``(children, scan_error)``. System-ignored entries, binaries,
    symlinks and special files are dropped; gitignored entries are kept but
    tagged.
    """
    children: list[DirectoryChild] = []
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                try:
                    if entry.is_symlink():
                        continue
                    is_dir = entry.is_dir(follow_symlinks=False)
                    is_file = not is_dir and entry.is_file(follow_symlinks=False)
                except OSError as exc:
                    logger.debug("skipping %s: %s", entry.path, exc)
                    continue
                if not is_dir and not is_file:
                    continue

                if system_policy and system_policy.is_ignored(entry.path, is_dir, root):
                    continue
                if is_file and is_binary_name(entry.name):
                    continue

                reason = IgnoreReason.NONE
                if gitignore_chain and gitignore_chain.is_ignored(entry.path, is_dir):
                    reason = IgnoreReason.GITIGNORE
                children.append(
                    DirectoryChild(name=entry.name, path=entry.path, is_dir=is_dir, ignore_reason=reason)
                )
    except OSError as exc:
        error = classify_os_error(exc, directory)
        logger.warning("cannot list %s: %s", directory, error.message)
        return [], error

    children.sort(key=_sort_key)
    return children, None


def build_file_tree(root: str, system_policy: SystemIgnorePolicy | None = None) -> FileTreeNode:
    """Build the full tree under an already-validated ``root``.

    Every non-ignored subdirectory is materialized eagerly. A listing failure
    only empties the failing directory (recorded on its ``scan_error``).
    """

    def build_directory(directory: str, name: str, chain: GitIgnoreChain, reason: IgnoreReason) -> FileTreeNode:
        chain = chain.extended(load_gitignore(directory))
        children, scan_error = list_directory_children(directory, root, system_policy, chain)
        nodes: list[FileTreeNode] = []
        for child in children:
            if not child.is_dir:
                nodes.append(
                    FileTreeNode(
                        name=child.name,
                        path=child.path,
                        is_directory=False,
                        ignore_reason=child.ignore_reason,
                    )
                )
                continue
            if child.ignore_reason is IgnoreReason.GITIGNORE:
                nodes.append(
                    FileTreeNode(
                        name=child.name,
                        path=child.path,
                        is_directory=True,
                        ignore_reason=IgnoreReason.GITIGNORE,
                    )
                )
                continue
            nodes.append(build_directory(child.path, child.name, chain, child.ignore_reason))
        return FileTreeNode(
            name=name,
            path=directory,
            is_directory=True,
            children=tuple(nodes),
            ignore_reason=reason,
            scan_error=scan_error,
        )

    root_name = os.path.basename(root.rstrip(os.sep)) or root
    return build_directory(root, root_name, GitIgnoreChain(), IgnoreReason.NONE)


def scan_directory(root: str | os.PathLike[str], system_policy: SystemIgnorePolicy | None = None) -> FileTreeNode:
    """Validate ``root`` and return its fully materialized tree.

    Raises ``InvalidPathError``, ``FileMissingError`` or ``NotDirectoryError``
    before any listing happens.
    """
    validated = validate_directory_path(root)
    return build_file_tree(validated, system_policy)


__all__ = [
    "BINARY_EXTENSIONS",
    "DirectoryChild",
    "validate_path",
    "validate_directory_path",
    "is_binary_name",
    "list_directory_children",
    "build_file_tree",
    "scan_directory",
]
