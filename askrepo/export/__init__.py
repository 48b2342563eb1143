"""Export document assembly and text decoding."""

from __future__ import annotations

from .assembler import (
    SUGGESTED_EXPORT_FILENAME,
    ExportFile,
    assemble_export,
    assemble_export_async,
    printable,
    read_contents,
    render_document,
    submit_export,
    write_export,
)
from .text import FALLBACK_ENCODING, decode_text, read_file_text, try_read_file_text

__all__ = [
    "SUGGESTED_EXPORT_FILENAME",
    "ExportFile",
    "assemble_export",
    "assemble_export_async",
    "printable",
    "read_contents",
    "render_document",
    "submit_export",
    "write_export",
    "FALLBACK_ENCODING",
    "decode_text",
    "read_file_text",
    "try_read_file_text",
]
