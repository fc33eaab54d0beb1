"""
Main Application Entry Point for Vault Exporter

Ties the vault index, document selector and copier together for one export.
"""

from __future__ import annotations

import sys
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from loguru import logger

from .config.logging_config import LoggedOperation, StructuredLogger, get_logger
from .config.settings import ExporterSettings
from .export.copier import CopyReport, ExportError, copy_documents, resolve_destination
from .selection.selector import DocumentSelector, SelectionCriteria, SelectionResult
from .selection.tags import expand_tags
from .vault.filesystem import FileSystemVault


@dataclass(frozen=True)
class ExportSummary:
    """What an export invocation selected and copied."""
    criteria: SelectionCriteria
    destination: Path
    selection: SelectionResult
    report: Optional[CopyReport]
    dry_run: bool

    @property
    def copied(self) -> bool:
        return self.report is not None and self.report.success and bool(self.report.copied)


class VaultExportApplication:
    """Main application class that coordinates all components."""

    def __init__(
        self,
        vault_root: Union[str, Path],
        settings: Optional[ExporterSettings] = None,
        structured_logger: Optional[StructuredLogger] = None
    ) -> None:
        """Initialize the application.

        Args:
            vault_root: Root directory of the vault to export from.
            settings: Exporter settings; defaults if None.
            structured_logger: Logger for operation timing; the shared
                default instance if None.

        Raises:
            VaultError: If the vault root is missing or not a directory.
        """
        self.settings: ExporterSettings = settings or ExporterSettings()
        self.structured_logger: StructuredLogger = structured_logger or get_logger()
        self.vault_root: Path = Path(vault_root).expanduser().resolve()
        self.default_destination: Path = resolve_destination(self.vault_root, self.settings.export_folder)
        self.vault: FileSystemVault = FileSystemVault(
            self.vault_root,
            ignore_paths=self._export_folder_ignores(self.default_destination)
        )

        logger.info(f"Vault Exporter initialized for {self.vault_root} (profile: {self.settings.profile})")

    def select(self, criteria: SelectionCriteria, vault: Optional[FileSystemVault] = None) -> SelectionResult:
        """Run the document selector over every note in the vault."""
        vault = vault or self.vault
        documents = vault.list_documents()
        result = DocumentSelector(vault).select(documents, criteria)

        self.structured_logger.log_selection(
            candidates=len(documents),
            matched=len(result.matched),
            linked=len(result.linked),
            unresolved=len(result.unresolved),
            include=criteria.include
        )
        return result

    def export(
        self,
        criteria: SelectionCriteria,
        destination: Optional[Union[str, Path]] = None,
        dry_run: bool = False,
        workers: Optional[int] = None,
        verify: bool = False
    ) -> ExportSummary:
        """Select documents and copy them to the export destination.

        Args:
            criteria: Selection criteria for this export.
            destination: Export directory; relative paths are taken relative to
                the vault root. Defaults to the configured export folder.
            dry_run: Select only, copy nothing.
            workers: Parallel copy threads; the configured value if None.
            verify: Verify copies by checksum.

        Returns:
            ExportSummary of the run. An empty selection copies nothing.

        Raises:
            ExportError: If any file failed to copy.
        """
        target = resolve_destination(self.vault_root, destination) if destination else self.default_destination
        vault = self.vault
        if target != self.default_destination:
            # Per-call index that also hides this destination
            vault = FileSystemVault(
                self.vault_root,
                ignore_paths=self._export_folder_ignores(self.default_destination) + self._export_folder_ignores(target)
            )

        with LoggedOperation(
            self.structured_logger,
            "vault_export",
            vault=str(self.vault_root),
            destination=str(target),
            profile=self.settings.profile
        ):
            selection = self.select(criteria, vault)

            if selection.is_empty:
                logger.warning("No documents matched, nothing to export")
                return ExportSummary(criteria, target, selection, None, dry_run)

            if dry_run:
                logger.info(f"Dry run: {len(selection.documents)} documents would be exported to {target}")
                return ExportSummary(criteria, target, selection, None, dry_run)

            report = copy_documents(
                selection.documents,
                self.vault_root,
                target,
                workers=workers or self.settings.copy_workers,
                verify=verify
            )

            self.structured_logger.log_copy_operation(
                destination=str(target),
                success=report.success,
                files_copied=len(report.copied),
                files_failed=len(report.failed),
                total_bytes=report.total_bytes
            )

            if not report.success:
                raise ExportError(
                    f"{len(report.failed)} of {len(report.failed) + len(report.copied)} files failed to copy",
                    report
                )

            return ExportSummary(criteria, target, selection, report, dry_run)

    def tag_counts(self) -> Dict[str, int]:
        """Number of notes carrying each tag, ancestors included."""
        counts: Counter[str] = Counter()
        for document in self.vault.list_documents():
            tags = self.vault.get_tags(document) or []
            counts.update(set(expand_tags(tags)))
        return dict(sorted(counts.items()))

    def unresolved_links(self) -> Dict[str, List[str]]:
        """Link targets per note that match no file in the vault."""
        unresolved: Dict[str, List[str]] = {}
        for document in self.vault.list_documents():
            targets = list(self.vault.get_unresolved_links(document.path))
            if targets:
                unresolved[document.path] = targets
        return unresolved

    def _export_folder_ignores(self, destination: Path) -> List[str]:
        """Vault-relative path of an export folder inside the vault, if any."""
        try:
            relative = destination.resolve().relative_to(self.vault_root)
        except ValueError:
            return []
        # Exporting into the vault root itself must not hide the whole vault
        if not relative.parts:
            return []
        return [relative.as_posix()]


def main() -> int:
    """Main entry point when run as script."""
    from .cli import app

    try:
        app()
        return 0
    except KeyboardInterrupt:
        logger.info("Export interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
