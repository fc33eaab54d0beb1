"""File operation utilities."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Optional


FALLBACK_ENCODINGS = ('utf-8-sig', 'cp1252', 'latin-1')


def safe_file_read(file_path: Path, encoding: str = 'utf-8') -> Optional[str]:
    """Read a text file, trying fallback encodings; None if it cannot be read."""
    try:
        return file_path.read_text(encoding=encoding)
    except UnicodeDecodeError:
        pass
    except OSError:
        return None

    for fallback_encoding in FALLBACK_ENCODINGS:
        if fallback_encoding == encoding:
            continue
        try:
            return file_path.read_text(encoding=fallback_encoding)
        except (OSError, UnicodeDecodeError):
            continue
    return None


def get_file_hash(file_path: Path, algorithm: str = 'sha256') -> Optional[str]:
    """Calculate file hash."""
    try:
        hash_obj = hashlib.new(algorithm)
        with open(file_path, 'rb') as f:
            for chunk in iter(lambda: f.read(65536), b""):
                hash_obj.update(chunk)
        return hash_obj.hexdigest()
    except (OSError, ValueError):
        return None


def ensure_directory(dir_path: Path) -> bool:
    """Ensure directory exists, create if necessary."""
    try:
        dir_path.mkdir(parents=True, exist_ok=True)
        return True
    except OSError:
        return False
