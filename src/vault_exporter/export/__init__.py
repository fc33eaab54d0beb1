"""Copying selected documents into an export directory."""

from .copier import CopyReport, ExportError, copy_documents, resolve_destination

__all__ = [
    "CopyReport",
    "ExportError",
    "copy_documents",
    "resolve_destination",
]
