"""Compile single ignore-rule lines into matchers.

Two dialects are supported:

- ``Dialect.GITIGNORE``: full gitignore wildmatch syntax (negation, ``**``,
  anchoring with a leading ``/``, basename-anywhere when the pattern has no
  ``/``). Translation to a regex is delegated to ``pathspec``.
- ``Dialect.SYSTEM_GLOB``: the user-configured global ignore list. Only ``*``
  and ``?`` wildcards plus a trailing ``/`` directory marker; matching is
  case-insensitive and always against single path segments.

Matchers take POSIX-style paths relative to the directory the rule belongs to.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from pathspec.patterns import GitWildMatchPattern


class Dialect(Enum):
    GITIGNORE = "gitignore"
    SYSTEM_GLOB = "system"


@dataclass(frozen=True)
class IgnorePattern:
    """One compiled ignore rule.

    ``regex`` is matched against the relative path (gitignore) or against a
    single path segment (system glob).
    """

    raw: str
    dialect: Dialect
    is_negation: bool
    is_directory_only: bool
    regex: re.Pattern[str]

    def matches(self, relative_path: str, is_directory: bool) -> bool:
        """Return whether this rule applies to ``relative_path``."""
        relative_path = relative_path.strip("/")
        if not relative_path:
            return False
        if self.dialect is Dialect.GITIGNORE:
            if self.is_directory_only and not is_directory:
                return False
            candidate = f"{relative_path}/" if is_directory else relative_path
            return self.regex.match(candidate) is not None

        segments = relative_path.split("/")
        name = segments[-1]
        if self.is_directory_only:
            if is_directory and self.regex.fullmatch(name) is not None:
                return True
            return any(self.regex.fullmatch(segment) is not None for segment in segments[:-1])
        return self.regex.fullmatch(name) is not None


def _glob_to_regex(glob: str) -> str:
    out: list[str] = []
    for ch in glob:
        if ch == "*":
            out.append(".*")
        elif ch == "?":
            out.append(".")
        else:
            out.append(re.escape(ch))
    return "".join(out)


def _trim_rule(line: str) -> str:
    """Drop unescaped trailing spaces; leading whitespace is significant."""
    trimmed = line.rstrip(" ")
    if len(trimmed) == len(line):
        return line
    backslashes = len(trimmed) - len(trimmed.rstrip("\\"))
    if backslashes % 2:
        return trimmed + " "
    return trimmed


def _compile_gitignore(raw: str, text: str) -> IgnorePattern | None:
    # pathspec strips both ends, so leading spaces go in escaped.
    indent = len(text) - len(text.lstrip(" "))
    text = "\\ " * indent + text[indent:]
    try:
        compiled = GitWildMatchPattern(text)
    except ValueError:
        return None
    if compiled.include is None or compiled.regex is None:
        return None
    is_negation = not compiled.include
    body = text[1:] if is_negation else text
    return IgnorePattern(
        raw=raw,
        dialect=Dialect.GITIGNORE,
        is_negation=is_negation,
        is_directory_only=body.endswith("/"),
        regex=compiled.regex,
    )


def _compile_system_glob(raw: str, text: str) -> IgnorePattern | None:
    is_directory_only = text.endswith("/")
    body = text.rstrip("/") if is_directory_only else text
    # Only segment-level globs; separators inside the pattern cannot match a segment.
    body = body.lstrip("/")
    if not body:
        return None
    return IgnorePattern(
        raw=raw,
        dialect=Dialect.SYSTEM_GLOB,
        is_negation=False,
        is_directory_only=is_directory_only,
        regex=re.compile(_glob_to_regex(body), re.IGNORECASE),
    )


def compile_pattern(pattern: str, dialect: Dialect) -> IgnorePattern | None:
    """Compile one rule line, returning ``None`` for empty or unusable lines.

    Comment and blank-line filtering is the caller's job; an empty pattern
    after trimming is still skipped here.
    """
    if dialect is Dialect.GITIGNORE:
        text = _trim_rule(pattern.rstrip("\r\n"))
        if not text.strip():
            return None
        return _compile_gitignore(pattern, text)
    text = pattern.strip()
    if not text:
        return None
    return _compile_system_glob(pattern, text)


def rule_lines(content: str) -> list[str]:
    """Return non-blank, non-comment lines of an ignore file in order.

    Unescaped trailing spaces are trimmed; leading whitespace is kept.
    """
    lines: list[str] = []
    for line in content.splitlines():
        if not line.strip() or line.startswith("#"):
            continue
        lines.append(_trim_rule(line))
    return lines


__all__ = [
    "Dialect",
    "IgnorePattern",
    "compile_pattern",
    "rule_lines",
]
