"""Value types for documents held in a vault."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Final, FrozenSet


NOTE_SUFFIXES: Final[FrozenSet[str]] = frozenset({'.md', '.markdown'})


@dataclass(frozen=True)
class Document:
    """A file in the vault, identified by its vault-relative POSIX path.

    Immutable; tags and links live in the vault index, not on the document.
    """
    path: str

    def __post_init__(self) -> None:
        """Validate the document path."""
        if not self.path.strip():
            raise ValueError("Document path cannot be empty")

    @property
    def name(self) -> str:
        return PurePosixPath(self.path).name

    @property
    def stem(self) -> str:
        return PurePosixPath(self.path).stem

    @property
    def suffix(self) -> str:
        return PurePosixPath(self.path).suffix.lower()

    @property
    def is_note(self) -> bool:
        """Whether this document is a markdown note rather than an attachment."""
        return self.suffix in NOTE_SUFFIXES

    def __str__(self) -> str:
        return self.path
