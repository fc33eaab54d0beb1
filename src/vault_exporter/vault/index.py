"""Capability interface the selector needs from a vault, plus an in-memory backend."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

from loguru import logger

from .models import Document


class VaultError(Exception):
    """Base exception for vault access problems."""
    pass


class VaultIndex(Protocol):
    """Lookups a storage backend provides to the document selector.

    Implementations own the documents; the selector only reads them.
    A backend may also offer ``get_unresolved_links(path)``, mapping link
    targets it could not resolve to their counts; the selector reports them.
    """

    def list_documents(self) -> List[Document]:
        """Enumerate the notes that are candidates for selection."""
        ...

    def get_tags(self, document: Document) -> Optional[List[str]]:
        """Literal tags of a document, without the leading ``#``.

        Returns None when the document has no retrievable metadata.
        """
        ...

    def get_outbound_links(self, path: str) -> Mapping[str, int]:
        """Map each path the document links to onto its link count."""
        ...

    def resolve(self, path: str) -> Optional[Document]:
        """Return the document stored at ``path``, or None if unknown."""
        ...


class InMemoryVault:
    """VaultIndex over metadata the host already holds in memory.

    Args:
        tags: Document path to literal tags. Paths listed here are notes.
        links: Document path to the paths it links to. A sequence of paths or
            a mapping of path to link count.
        files: Extra resolvable paths, e.g. attachments that carry no tags.
    """

    def __init__(
        self,
        tags: Mapping[str, Optional[Sequence[str]]],
        links: Optional[Mapping[str, Iterable[str]]] = None,
        files: Iterable[str] = ()
    ) -> None:
        self._tags: Dict[str, Optional[List[str]]] = {
            path: list(values) if values is not None else None
            for path, values in tags.items()
        }
        self._links: Dict[str, Dict[str, int]] = {}
        for source, targets in (links or {}).items():
            if isinstance(targets, Mapping):
                self._links[source] = {str(t): int(count) for t, count in targets.items()}
            else:
                counts: Dict[str, int] = {}
                for target in targets:
                    counts[target] = counts.get(target, 0) + 1
                self._links[source] = counts

        self._known: Dict[str, Document] = {path: Document(path) for path in self._tags}
        for path in files:
            self._known.setdefault(path, Document(path))

        logger.debug(f"InMemoryVault initialized with {len(self._known)} documents")

    def list_documents(self) -> List[Document]:
        return [self._known[path] for path in self._tags]

    def get_tags(self, document: Document) -> Optional[List[str]]:
        tags = self._tags.get(document.path)
        return list(tags) if tags is not None else None

    def get_outbound_links(self, path: str) -> Mapping[str, int]:
        return dict(self._links.get(path, {}))

    def resolve(self, path: str) -> Optional[Document]:
        return self._known.get(path)
