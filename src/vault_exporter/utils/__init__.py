"""
Utility functions and helpers for Vault Exporter
"""

from .file_utils import safe_file_read, get_file_hash, ensure_directory

__all__ = [
    'safe_file_read',
    'get_file_hash',
    'ensure_directory'
]
