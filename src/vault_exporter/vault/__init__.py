"""
Vault Package

Document model, the lookup interface the selector relies on, and its
in-memory and filesystem backends.
"""

from .models import Document
from .index import InMemoryVault, VaultError, VaultIndex
from .parser import NoteParser, ParsedNote
from .filesystem import FileSystemVault, VaultStats

__all__ = [
    'Document',
    'InMemoryVault',
    'VaultError',
    'VaultIndex',
    'NoteParser',
    'ParsedNote',
    'FileSystemVault',
    'VaultStats'
]
