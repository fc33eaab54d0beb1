"""
Export Copier

Materializes a selection into an export directory, recreating each document's
vault-relative path under the destination root.
"""

from __future__ import annotations

import shutil
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from loguru import logger

from ..utils.file_utils import ensure_directory, get_file_hash
from ..vault.models import Document


class ExportError(Exception):
    """Raised when an export could not be completed."""

    def __init__(self, message: str, report: Optional[CopyReport] = None) -> None:
        super().__init__(message)
        self.report = report


@dataclass
class CopyReport:
    """Outcome of copying a set of documents."""
    destination_root: Path
    copied: List[str] = field(default_factory=lambda: [])
    failed: Dict[str, str] = field(default_factory=lambda: {})
    total_bytes: int = 0
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return not self.failed


def resolve_destination(vault_root: Union[str, Path], export_folder: Union[str, Path]) -> Path:
    """Destination directory for an export folder setting.

    A relative folder is taken relative to the vault root, an absolute one is
    used unchanged.
    """
    folder = Path(export_folder).expanduser()
    if folder.is_absolute():
        return folder
    return (Path(vault_root) / folder).resolve()


def copy_documents(
    documents: Iterable[Document],
    source_root: Union[str, Path],
    destination_root: Union[str, Path],
    workers: int = 1,
    verify: bool = False
) -> CopyReport:
    """Copy documents into the destination, preserving relative paths.

    Existing files at the destination are overwritten. A document listed more
    than once is copied once.

    Args:
        documents: Documents to copy.
        source_root: Vault root the document paths are relative to.
        destination_root: Export directory.
        workers: Number of parallel copy threads.
        verify: Compare source and destination hashes after copying.

    Returns:
        CopyReport listing copied paths and per-file failures.
    """
    if workers < 1:
        raise ValueError("workers must be at least 1")

    start_time = datetime.now()
    source_root = Path(source_root)
    destination_root = Path(destination_root)
    report = CopyReport(destination_root=destination_root)

    unique_paths: List[str] = list(dict.fromkeys(doc.path for doc in documents))
    if not unique_paths:
        logger.info("Nothing to copy")
        return report

    if not ensure_directory(destination_root):
        raise ExportError(f"Cannot create export directory: {destination_root}", report)

    logger.info(f"Copying {len(unique_paths)} files to {destination_root}")

    if workers == 1:
        for path in unique_paths:
            _record(report, path, _copy_one(path, source_root, destination_root, verify))
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(_copy_one, path, source_root, destination_root, verify): path
                for path in unique_paths
            }
            for future in as_completed(futures):
                _record(report, futures[future], future.result())
        # Keep report order independent of thread scheduling
        order = {path: i for i, path in enumerate(unique_paths)}
        report.copied.sort(key=order.__getitem__)

    report.duration_seconds = (datetime.now() - start_time).total_seconds()

    logger.info(
        "Copy finished: {copied} copied, {failed} failed",
        copied=len(report.copied),
        failed=len(report.failed)
    )
    return report


def _record(report: CopyReport, path: str, outcome: Union[int, str]) -> None:
    """Add one copy outcome (bytes copied, or an error message) to the report."""
    if isinstance(outcome, str):
        report.failed[path] = outcome
    else:
        report.copied.append(path)
        report.total_bytes += outcome


def _copy_one(path: str, source_root: Path, destination_root: Path, verify: bool) -> Union[int, str]:
    source = source_root / path
    destination = destination_root / path
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, destination)
        size = destination.stat().st_size
    except OSError as e:
        logger.error(f"Failed to copy {path}: {e}")
        return str(e)

    if verify and get_file_hash(source) != get_file_hash(destination):
        logger.error(f"Copy of {path} does not match its source")
        return "Checksum mismatch after copy"

    logger.debug(f"Copied {source} -> {destination}")
    return size
