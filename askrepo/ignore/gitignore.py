"""Per-directory ``.gitignore`` policies.

A ``GitIgnorePolicy`` holds the compiled rules of one ``.gitignore`` file and
evaluates them in file order with last-match-wins semantics, so a later
``!pattern`` re-includes an earlier match. ``GitIgnoreChain`` stacks the
policies found from a scan root down to the current directory; deeper files
override shallower ones.

Loaded policies are cached per directory keyed by the ``.gitignore`` stat
signature, so repeated rescans do not re-read unchanged files.
"""

from __future__ import annotations

import logging
import os
import threading
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path

from .patterns import Dialect, IgnorePattern, compile_pattern, rule_lines

logger = logging.getLogger(__name__)

GITIGNORE_FILENAME = ".gitignore"
GITIGNORE_POLICY_CACHE_MAX = 256


def relative_posix(path: str | Path, base: str | Path) -> str | None:
    """Return ``path`` relative to ``base`` as POSIX text, or ``None`` if outside."""
    try:
        relative = os.path.relpath(os.fspath(path), os.fspath(base))
    except ValueError:
        return None
    if relative == os.curdir:
        return ""
    if relative == os.pardir or relative.startswith(os.pardir + os.sep):
        return None
    return Path(relative).as_posix()


@dataclass(frozen=True)
class GitIgnorePolicy:
    """Compiled rules of one ``.gitignore`` file rooted at ``base``."""

    base: Path
    patterns: tuple[IgnorePattern, ...]

    @classmethod
    def from_lines(cls, base: Path, content: str) -> "GitIgnorePolicy":
        compiled = (compile_pattern(line, Dialect.GITIGNORE) for line in rule_lines(content))
        return cls(base=base, patterns=tuple(pattern for pattern in compiled if pattern is not None))

    def match(self, relative_path: str, is_directory: bool) -> bool | None:
        """Return the verdict of the last matching rule, ``None`` when nothing matched."""
        verdict: bool | None = None
        for pattern in self.patterns:
            if pattern.is_directory_only and not is_directory:
                continue
            if pattern.matches(relative_path, is_directory):
                verdict = not pattern.is_negation
        return verdict

    def is_ignored(self, path: str | Path, is_directory: bool, relative_to: str | Path | None = None) -> bool:
        """Return whether ``path`` is ignored when evaluated relative to ``relative_to``."""
        relative = relative_posix(path, relative_to if relative_to is not None else self.base)
        if not relative:
            return False
        return bool(self.match(relative, is_directory))


@dataclass(frozen=True)
class _PolicyCacheEntry:
    policy: GitIgnorePolicy | None
    signature: tuple[int, int] | None


_GITIGNORE_POLICY_CACHE: OrderedDict[str, _PolicyCacheEntry] = OrderedDict()
_GITIGNORE_POLICY_CACHE_LOCK = threading.RLock()


def clear_gitignore_cache() -> None:
    """Clear cached gitignore policies."""
    with _GITIGNORE_POLICY_CACHE_LOCK:
        _GITIGNORE_POLICY_CACHE.clear()


def _gitignore_signature(gitignore_path: Path) -> tuple[int, int] | None:
    try:
        stat = gitignore_path.stat()
    except OSError:
        return None
    return int(stat.st_mtime_ns), int(stat.st_size)


def _read_policy(directory: Path) -> GitIgnorePolicy | None:
    gitignore_path = directory / GITIGNORE_FILENAME
    try:
        content = gitignore_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("ignoring unreadable %s: %s", gitignore_path, exc)
        return None
    policy = GitIgnorePolicy.from_lines(directory, content)
    if not policy.patterns:
        return None
    return policy


def load_gitignore(directory: str | Path) -> GitIgnorePolicy | None:
    """Return the policy for ``<directory>/.gitignore`` or ``None``.

    A missing, unreadable, or rule-less file is not an error; the caller just
    proceeds without gitignore filtering for that directory.
    """
    directory = Path(directory)
    key = os.fspath(directory)
    signature = _gitignore_signature(directory / GITIGNORE_FILENAME)
    if signature is None:
        with _GITIGNORE_POLICY_CACHE_LOCK:
            _GITIGNORE_POLICY_CACHE.pop(key, None)
        return None

    with _GITIGNORE_POLICY_CACHE_LOCK:
        cached = _GITIGNORE_POLICY_CACHE.get(key)
        if cached is not None and cached.signature == signature:
            _GITIGNORE_POLICY_CACHE.move_to_end(key)
            return cached.policy

    policy = _read_policy(directory)
    with _GITIGNORE_POLICY_CACHE_LOCK:
        _GITIGNORE_POLICY_CACHE[key] = _PolicyCacheEntry(policy=policy, signature=signature)
        _GITIGNORE_POLICY_CACHE.move_to_end(key)
        while len(_GITIGNORE_POLICY_CACHE) > GITIGNORE_POLICY_CACHE_MAX:
            _GITIGNORE_POLICY_CACHE.popitem(last=False)
    return policy


@dataclass(frozen=True)
class GitIgnoreChain:
    """Ordered stack of policies from a scan root down to one directory."""

    policies: tuple[GitIgnorePolicy, ...] = ()

    def extended(self, policy: GitIgnorePolicy | None) -> "GitIgnoreChain":
        if policy is None:
            return self
        return GitIgnoreChain(self.policies + (policy,))

    def is_ignored(self, path: str | Path, is_directory: bool) -> bool:
        verdict: bool | None = None
        for policy in self.policies:
            relative = relative_posix(path, policy.base)
            if not relative:
                continue
            result = policy.match(relative, is_directory)
            if result is not None:
                verdict = result
        return bool(verdict)

    def __bool__(self) -> bool:
        return bool(self.policies)


def is_gitignored_under_root(path: str | Path, root: str | Path, is_directory: bool = False) -> bool:
    """Return whether ``path`` or any ancestor below ``root`` is gitignored.

    Walks from ``root`` down, loading each directory's ``.gitignore``, so the
    result matches what a fresh scan of ``root`` would decide.
    """
    root = Path(root)
    relative = relative_posix(path, root)
    if not relative:
        return False
    parts = relative.split("/")
    chain = GitIgnoreChain().extended(load_gitignore(root))
    current = root
    for idx, part in enumerate(parts):
        current = current / part
        is_last = idx == len(parts) - 1
        entry_is_directory = is_directory if is_last else True
        if chain and chain.is_ignored(current, entry_is_directory):
            return True
        if not is_last:
            chain = chain.extended(load_gitignore(current))
    return False


__all__ = [
    "GITIGNORE_FILENAME",
    "GitIgnorePolicy",
    "GitIgnoreChain",
    "clear_gitignore_cache",
    "load_gitignore",
    "is_gitignored_under_root",
    "relative_posix",
]
