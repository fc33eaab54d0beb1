#!/usr/bin/env python3
"""Pytest-based tests for the export application and command line interface."""

from __future__ import annotations

from pathlib import Path
from typing import List

import pytest
from typer.testing import CliRunner

from vault_exporter.cli import app
from vault_exporter.config.logging_config import LoggingConfig, StructuredLogger
from vault_exporter.config.settings import ExporterSettings, load_settings
from vault_exporter.export.copier import CopyReport, ExportError
from vault_exporter.main import VaultExportApplication
from vault_exporter.selection.selector import SelectionCriteria


runner = CliRunner()


@pytest.fixture
def vault_dir(tmp_path: Path) -> Path:
    root = tmp_path / "vault"
    (root / "notes").mkdir(parents=True)
    (root / "notes" / "alpha.md").write_text(
        "---\ntags: [project/alpha]\n---\nSee ![[chart.png]] and [[beta]].\n", encoding="utf-8"
    )
    (root / "notes" / "beta.md").write_text("#area/work\n", encoding="utf-8")
    (root / "notes" / "archived.md").write_text("#project #archive\n", encoding="utf-8")
    (root / "chart.png").write_bytes(b"\x89PNG chart")
    (root / "loose.md").write_text("Nothing tagged here.\n", encoding="utf-8")
    return root


@pytest.fixture
def quiet_logger() -> StructuredLogger:
    return StructuredLogger(LoggingConfig(console_enabled=False, file_enabled=False))


def run(tmp_path: Path, *args: str):
    """Invoke the CLI with an isolated settings file and no log sinks."""
    base: List[str] = ["--settings", str(tmp_path / "settings.json"), "--quiet", "--no-log-file"]
    return runner.invoke(app, base + list(args))


def test_application_export_copies_selection(vault_dir: Path, quiet_logger: StructuredLogger) -> None:
    application = VaultExportApplication(vault_dir, structured_logger=quiet_logger)

    summary = application.export(SelectionCriteria(include=("project",)))

    export_root = vault_dir / "export"
    assert summary.destination == export_root.resolve()
    assert summary.copied
    assert (export_root / "notes" / "alpha.md").exists()
    assert (export_root / "notes" / "archived.md").exists()
    assert (export_root / "notes" / "beta.md").exists()
    assert (export_root / "chart.png").exists()
    assert not (export_root / "loose.md").exists()


def test_application_ignores_its_own_export_folder(vault_dir: Path, quiet_logger: StructuredLogger) -> None:
    """A second export does not pick up files from the first one."""
    criteria = SelectionCriteria(include=("project",))
    first = VaultExportApplication(vault_dir, structured_logger=quiet_logger).export(criteria)

    second = VaultExportApplication(vault_dir, structured_logger=quiet_logger).export(criteria)

    assert [d.path for d in second.selection.documents] == [d.path for d in first.selection.documents]
    assert not (vault_dir / "export" / "export").exists()


def test_application_dry_run_copies_nothing(vault_dir: Path, quiet_logger: StructuredLogger) -> None:
    application = VaultExportApplication(vault_dir, structured_logger=quiet_logger)

    summary = application.export(SelectionCriteria(include=("project",)), dry_run=True)

    assert summary.report is None
    assert not summary.selection.is_empty
    assert not (vault_dir / "export").exists()


def test_application_apply_exclude(vault_dir: Path, quiet_logger: StructuredLogger) -> None:
    settings = ExporterSettings(apply_exclude=True)
    application = VaultExportApplication(vault_dir, settings=settings, structured_logger=quiet_logger)
    criteria = SelectionCriteria(include=("project",), exclude=("archive",), apply_exclude=True)

    summary = application.export(criteria, destination="out")

    assert [d.path for d in summary.selection.matched] == ["notes/alpha.md"]
    assert not (vault_dir / "out" / "notes" / "archived.md").exists()


def test_application_custom_destination_is_not_remembered(vault_dir: Path, quiet_logger: StructuredLogger) -> None:
    """Exporting elsewhere once does not hide that folder from later exports."""
    application = VaultExportApplication(vault_dir, structured_logger=quiet_logger)
    criteria = SelectionCriteria(include=("project",))

    first = application.export(criteria, destination="out")
    second = application.export(criteria)

    assert "out/notes/alpha.md" not in [d.path for d in first.selection.matched]
    assert "out/notes/alpha.md" in [d.path for d in second.selection.matched]
    assert application.vault.ignore_paths == {"export"}


def test_application_raises_on_copy_failure(
    vault_dir: Path,
    quiet_logger: StructuredLogger,
    monkeypatch: pytest.MonkeyPatch
) -> None:
    def failing_copy(documents, source_root, destination_root, workers=1, verify=False) -> CopyReport:
        return CopyReport(destination_root=Path(destination_root), failed={"notes/alpha.md": "disk full"})

    monkeypatch.setattr("vault_exporter.main.copy_documents", failing_copy)
    application = VaultExportApplication(vault_dir, structured_logger=quiet_logger)

    with pytest.raises(ExportError) as excinfo:
        application.export(SelectionCriteria(include=("project",)))

    assert excinfo.value.report.failed == {"notes/alpha.md": "disk full"}


def test_application_tag_counts(vault_dir: Path, quiet_logger: StructuredLogger) -> None:
    counts = VaultExportApplication(vault_dir, structured_logger=quiet_logger).tag_counts()

    assert counts == {
        "archive": 1,
        "area": 1,
        "area/work": 1,
        "project": 2,
        "project/alpha": 1,
    }


def test_cli_export(vault_dir: Path, tmp_path: Path) -> None:
    destination = tmp_path / "out"

    result = run(tmp_path, "export", str(vault_dir), "--include", "project/alpha", "--to", str(destination))

    assert result.exit_code == 0
    assert "Export complete!" in result.output
    assert (destination / "notes" / "alpha.md").exists()
    assert (destination / "chart.png").exists()
    assert not (destination / "notes" / "archived.md").exists()


def test_cli_export_dry_run(vault_dir: Path, tmp_path: Path) -> None:
    destination = tmp_path / "out"

    result = run(tmp_path, "export", str(vault_dir), "-i", "project", "--to", str(destination), "--dry-run")

    assert result.exit_code == 0
    assert "notes/alpha.md" in result.output
    assert not destination.exists()


def test_cli_export_without_tags_fails(vault_dir: Path, tmp_path: Path) -> None:
    result = run(tmp_path, "export", str(vault_dir))

    assert result.exit_code == 1
    assert "No include tags" in result.output


def test_cli_export_nothing_matched(vault_dir: Path, tmp_path: Path) -> None:
    result = run(tmp_path, "export", str(vault_dir), "-i", "nonexistent", "--to", str(tmp_path / "out"))

    assert result.exit_code == 0
    assert "Nothing to export." in result.output
    assert not (tmp_path / "out").exists()


def test_cli_missing_vault(tmp_path: Path) -> None:
    result = run(tmp_path, "export", str(tmp_path / "missing"), "-i", "project")

    assert result.exit_code == 1
    assert "Vault not found" in result.output


def test_cli_tags(vault_dir: Path, tmp_path: Path) -> None:
    result = run(tmp_path, "tags", str(vault_dir), "--prefix", "project")

    assert result.exit_code == 0
    assert "project/alpha" in result.output
    assert "area/work" not in result.output


def test_cli_links(vault_dir: Path, tmp_path: Path) -> None:
    (vault_dir / "dangling.md").write_text("See [[nowhere]].\n", encoding="utf-8")

    result = run(tmp_path, "links", str(vault_dir))

    assert result.exit_code == 0
    assert "nowhere" in result.output


def test_cli_config_set_uses_defaults(vault_dir: Path, tmp_path: Path) -> None:
    result = run(tmp_path, "config", "--set", "default_include=project/alpha", "--set", "export_folder=bundle")

    assert result.exit_code == 0
    saved = load_settings(tmp_path / "settings.json")
    assert saved.default_include == "project/alpha"
    assert saved.export_folder == "bundle"

    result = run(tmp_path, "export", str(vault_dir))

    assert result.exit_code == 0
    assert (vault_dir / "bundle" / "notes" / "alpha.md").exists()


def test_cli_config_rejects_bad_values(tmp_path: Path) -> None:
    result = run(tmp_path, "config", "--set", "copy_workers=zero")

    assert result.exit_code == 1
    assert not (tmp_path / "settings.json").exists()
