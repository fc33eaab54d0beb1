"""Vault Exporter: export tagged notes and the files they link to."""

from .selection.tags import decompose, expand_tags, parse_tag_query
from .selection.selector import DocumentSelector, SelectionCriteria, SelectionResult, select_documents
from .vault.models import Document
from .vault.index import InMemoryVault, VaultError, VaultIndex
from .vault.filesystem import FileSystemVault
from .export.copier import CopyReport, ExportError, copy_documents

__version__ = "0.1.0"

__all__ = [
    "decompose",
    "expand_tags",
    "parse_tag_query",
    "DocumentSelector",
    "SelectionCriteria",
    "SelectionResult",
    "select_documents",
    "Document",
    "InMemoryVault",
    "VaultError",
    "VaultIndex",
    "FileSystemVault",
    "CopyReport",
    "ExportError",
    "copy_documents",
]
