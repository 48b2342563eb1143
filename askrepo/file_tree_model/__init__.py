"""Domain model for scanned file trees.

This package contains non-UI tree primitives:
- node datatypes with the tri-state ignore tag
- path validation and eager recursive scanning
- background/awaitable scan forms and the workspace rescan scheduler
"""

from __future__ import annotations

from .types import FileTreeNode, IgnoreReason
from .fs import (
    BINARY_EXTENSIONS,
    DirectoryChild,
    build_file_tree,
    is_binary_name,
    list_directory_children,
    scan_directory,
    validate_directory_path,
    validate_path,
)
from .scanner import (
    RootScanOutcome,
    WorkspaceScanRequest,
    WorkspaceScanResult,
    WorkspaceScanScheduler,
    scan_directory_async,
    scan_roots,
    submit_scan,
)

__all__ = [
    "FileTreeNode",
    "IgnoreReason",
    "BINARY_EXTENSIONS",
    "DirectoryChild",
    "build_file_tree",
    "is_binary_name",
    "list_directory_children",
    "scan_directory",
    "validate_directory_path",
    "validate_path",
    "RootScanOutcome",
    "WorkspaceScanRequest",
    "WorkspaceScanResult",
    "WorkspaceScanScheduler",
    "scan_directory_async",
    "scan_roots",
    "submit_scan",
]
