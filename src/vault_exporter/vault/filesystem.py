"""
Filesystem Vault

Provides the vault index over a directory on disk: enumerates notes and
attachments, parses note metadata lazily and resolves internal links to
vault-relative paths.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from loguru import logger

from ..utils.file_utils import safe_file_read
from .index import VaultError
from .models import NOTE_SUFFIXES, Document
from .parser import NoteParser, ParsedNote


@dataclass
class VaultStats:
    """Statistics from indexing a vault directory."""
    total_files: int = 0
    notes: int = 0
    attachments: int = 0
    ignored_files: int = 0
    unreadable_notes: int = 0
    scan_duration_seconds: float = 0.0


@dataclass(frozen=True)
class NoteMetadata:
    """Parsed and link-resolved metadata of one note."""
    parsed: ParsedNote
    resolved_links: Dict[str, int] = field(default_factory=lambda: {})
    unresolved_links: Dict[str, int] = field(default_factory=lambda: {})


class FileSystemVault:
    """Vault index backed by a directory of markdown notes and attachments."""

    def __init__(
        self,
        root: Union[str, Path],
        ignore_paths: Iterable[str] = (),
        include_hidden: bool = False,
        follow_symlinks: bool = False
    ) -> None:
        """Initialize the vault.

        Args:
            root: Vault root directory.
            ignore_paths: Vault-relative directories to leave out, e.g. the
                export folder.
            include_hidden: Index dot-directories such as ``.obsidian``.
            follow_symlinks: Index symlinked files.

        Raises:
            VaultError: If the root is missing or not a directory.
        """
        self.root: Path = Path(root).expanduser().resolve()
        if not self.root.exists():
            raise VaultError(f"Vault not found: {self.root}")
        if not self.root.is_dir():
            raise VaultError(f"Vault path is not a directory: {self.root}")

        self.ignore_paths: Set[str] = {
            posixpath.normpath(p.replace('\\', '/')).strip('/') for p in ignore_paths if p.strip()
        }
        self.include_hidden = include_hidden
        self.follow_symlinks = follow_symlinks
        self.parser = NoteParser()

        self.stats = VaultStats()
        self._files: Optional[Dict[str, Document]] = None
        self._lower_paths: Dict[str, List[str]] = {}
        self._metadata: Dict[str, Optional[NoteMetadata]] = {}

        logger.info(f"FileSystemVault opened at {self.root}")

    def refresh(self) -> None:
        """Drop cached file listing and metadata so the next lookup rescans."""
        self._files = None
        self._lower_paths = {}
        self._metadata = {}

    def list_documents(self) -> List[Document]:
        """All markdown notes in the vault, sorted by path."""
        return [doc for doc in self._get_files().values() if doc.is_note]

    def list_files(self) -> List[Document]:
        """Every indexed file, notes and attachments alike."""
        return list(self._get_files().values())

    def get_tags(self, document: Document) -> Optional[List[str]]:
        metadata = self._get_metadata(document.path)
        if metadata is None:
            return None
        return list(metadata.parsed.tags)

    def get_outbound_links(self, path: str) -> Mapping[str, int]:
        metadata = self._get_metadata(path)
        if metadata is None:
            return {}
        return dict(metadata.resolved_links)

    def get_unresolved_links(self, path: str) -> Mapping[str, int]:
        """Link targets in a note that match no file in the vault."""
        metadata = self._get_metadata(path)
        if metadata is None:
            return {}
        return dict(metadata.unresolved_links)

    def resolve(self, path: str) -> Optional[Document]:
        return self._get_files().get(path)

    def resolve_link(self, target: str, source_path: str) -> Optional[str]:
        """Resolve a link target written in ``source_path`` to a vault path.

        Tries, in order: the target as a vault path, relative to the linking
        note's folder, then the shallowest path ending in the target. Targets
        written as ``./x`` or ``../x`` try the note's folder first.
        A ``.md`` suffix is implied when the target has none.

        Args:
            target: Link target as written, e.g. ``"Some Note"``.
            source_path: Vault path of the note containing the link.

        Returns:
            Vault-relative path, or None if nothing matches.
        """
        files = self._get_files()
        normalized = target.replace('\\', '/').strip()
        explicit_relative = normalized.startswith(('./', '../'))
        if normalized.startswith('./'):
            normalized = normalized[2:]
        normalized = normalized.lstrip('/')
        if not normalized:
            return None

        variants: List[str] = [normalized]
        if not normalized.lower().endswith(tuple(NOTE_SUFFIXES)):
            variants.append(f"{normalized}.md")

        source_dir = posixpath.dirname(source_path)
        relative_candidates: List[str] = []
        for variant in variants:
            relative = posixpath.normpath(posixpath.join(source_dir, variant))
            if not relative.startswith('..'):
                relative_candidates.append(relative)

        # ./x and ../x are relative to the linking note before the vault root
        if explicit_relative:
            candidates = relative_candidates + variants
        else:
            candidates = variants + relative_candidates

        for candidate in candidates:
            if candidate in files:
                return candidate
        for candidate in candidates:
            matches = self._lower_paths.get(candidate.lower())
            if matches:
                return matches[0]

        # [[Note]] and [[folder/Note]] match by trailing path components
        for variant in variants:
            suffix = '/' + variant.lower()
            matches = [p for p in files if p.lower().endswith(suffix)]
            if matches:
                return min(matches, key=lambda p: (p.count('/'), p))

        return None

    def _get_files(self) -> Dict[str, Document]:
        if self._files is None:
            self._files = self._collect_files()
        return self._files

    def _collect_files(self) -> Dict[str, Document]:
        """Index files under the root."""
        start_time = datetime.now()
        stats = VaultStats()
        files: Dict[str, Document] = {}
        lower_paths: Dict[str, List[str]] = {}

        for path in sorted(self.root.glob("**/*")):
            if not path.is_file():
                continue
            if path.is_symlink() and not self.follow_symlinks:
                continue

            stats.total_files += 1
            relative = path.relative_to(self.root).as_posix()
            if self._is_ignored(relative):
                stats.ignored_files += 1
                continue

            document = Document(relative)
            files[relative] = document
            lower_paths.setdefault(relative.lower(), []).append(relative)
            if document.is_note:
                stats.notes += 1
            else:
                stats.attachments += 1

        stats.scan_duration_seconds = (datetime.now() - start_time).total_seconds()
        self.stats = stats
        self._lower_paths = lower_paths

        logger.info(
            "Vault indexed: {notes} notes, {attachments} attachments, {ignored} ignored",
            notes=stats.notes,
            attachments=stats.attachments,
            ignored=stats.ignored_files
        )
        return files

    def _is_ignored(self, relative: str) -> bool:
        parts: Tuple[str, ...] = tuple(relative.split('/'))
        if not self.include_hidden and any(part.startswith('.') for part in parts):
            return True
        for ignored in self.ignore_paths:
            if relative == ignored or relative.startswith(ignored + '/'):
                return True
        return False

    def _get_metadata(self, path: str) -> Optional[NoteMetadata]:
        """Parse a note on first access; unreadable notes cache as None."""
        if path in self._metadata:
            return self._metadata[path]

        document = self.resolve(path)
        if document is None or not document.is_note:
            return None

        content = safe_file_read(self.root / path)
        if content is None:
            logger.warning(f"Could not read note {path}, treating it as untagged")
            self.stats.unreadable_notes += 1
            self._metadata[path] = None
            return None

        parsed = self.parser.parse(content)
        resolved: Dict[str, int] = {}
        unresolved: Dict[str, int] = {}
        for target in parsed.links:
            resolved_path = self.resolve_link(target, path)
            if resolved_path is None:
                unresolved[target] = unresolved.get(target, 0) + 1
            elif resolved_path != path:
                resolved[resolved_path] = resolved.get(resolved_path, 0) + 1

        metadata = NoteMetadata(parsed=parsed, resolved_links=resolved, unresolved_links=unresolved)
        self._metadata[path] = metadata
        return metadata
