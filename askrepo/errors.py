"""Typed filesystem errors shared by scanning, token accounting and export.

Every error carries an ``ErrorKind`` plus the offending path so callers can
report it without string matching.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    INVALID_PATH = "invalid_path"
    ACCESS_DENIED = "access_denied"
    FILE_NOT_FOUND = "file_not_found"
    NOT_A_DIRECTORY = "not_a_directory"
    UNREADABLE_FILE = "unreadable_file"
    ENCODING_FAILURE = "encoding_failure"
    UNKNOWN = "unknown"


_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_PATH: "Invalid file path: {path}",
    ErrorKind.ACCESS_DENIED: "Access denied to: {path}",
    ErrorKind.FILE_NOT_FOUND: "File not found: {path}",
    ErrorKind.NOT_A_DIRECTORY: "Path is not a directory: {path}",
    ErrorKind.UNREADABLE_FILE: "Cannot read file: {path}",
    ErrorKind.ENCODING_FAILURE: "Text encoding failed for: {path}",
    ErrorKind.UNKNOWN: "Unknown error for {path}: {detail}",
}

_RECOVERY: dict[ErrorKind, str] = {
    ErrorKind.INVALID_PATH: "Check that the path is valid and does not contain illegal characters.",
    ErrorKind.ACCESS_DENIED: "Check file permissions or select a different location.",
    ErrorKind.FILE_NOT_FOUND: "The file may have been moved or deleted. Refresh and try again.",
    ErrorKind.NOT_A_DIRECTORY: "Select a directory instead of a file.",
    ErrorKind.UNREADABLE_FILE: "The file may be corrupted or in a binary format.",
    ErrorKind.ENCODING_FAILURE: "The file contains bytes that cannot be decoded as text.",
    ErrorKind.UNKNOWN: "Try again; a manual refresh re-reads the filesystem.",
}


class AskRepoError(Exception):
    """Base error: one filesystem failure tied to ``path``."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, path: str, detail: str = "") -> None:
        self.path = path
        self.detail = detail
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return _MESSAGES[self.kind].format(path=self.path, detail=self.detail)

    @property
    def recovery_suggestion(self) -> str:
        return _RECOVERY[self.kind]


class InvalidPathError(AskRepoError):
    kind = ErrorKind.INVALID_PATH


class AccessDeniedError(AskRepoError):
    kind = ErrorKind.ACCESS_DENIED


class FileMissingError(AskRepoError):
    kind = ErrorKind.FILE_NOT_FOUND


class NotDirectoryError(AskRepoError):
    kind = ErrorKind.NOT_A_DIRECTORY


class UnreadableFileError(AskRepoError):
    kind = ErrorKind.UNREADABLE_FILE


class EncodingFailureError(AskRepoError):
    kind = ErrorKind.ENCODING_FAILURE


class UnknownFileSystemError(AskRepoError):
    """Wraps an unclassified ``OSError`` (kept on ``original``)."""

    kind = ErrorKind.UNKNOWN

    def __init__(self, path: str, original: BaseException | None = None) -> None:
        self.original = original
        super().__init__(path, str(original) if original is not None else "")


def classify_os_error(exc: OSError, path: str) -> AskRepoError:
    """Map a raw ``OSError`` onto the typed taxonomy."""
    if isinstance(exc, PermissionError):
        error: AskRepoError = AccessDeniedError(path)
    elif isinstance(exc, FileNotFoundError):
        error = FileMissingError(path)
    elif isinstance(exc, NotADirectoryError):
        error = NotDirectoryError(path)
    elif isinstance(exc, IsADirectoryError):
        error = UnreadableFileError(path, "is a directory")
    else:
        error = UnknownFileSystemError(path, exc)
    error.__cause__ = exc
    return error


__all__ = [
    "ErrorKind",
    "AskRepoError",
    "InvalidPathError",
    "AccessDeniedError",
    "FileMissingError",
    "NotDirectoryError",
    "UnreadableFileError",
    "EncodingFailureError",
    "UnknownFileSystemError",
    "classify_os_error",
]
