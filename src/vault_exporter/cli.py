"""
Command Line Interface for Vault Exporter

Export tagged notes, and everything they link to, from a vault into a folder.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich import print as rich_print
from rich.console import Console
from rich.table import Table

from .config.logging_config import LoggingConfig, setup_logging
from .config.settings import (
    DEFAULT_SETTINGS_PATH,
    ExporterSettings,
    SettingsError,
    load_settings,
    parse_setting_value,
    save_settings,
)
from .export.copier import ExportError
from .main import ExportSummary, VaultExportApplication
from .selection.selector import SelectionCriteria
from .selection.tags import parse_tag_query
from .vault.index import VaultError


# Initialize CLI app
app = typer.Typer(
    name="vault-export",
    help="Vault Exporter - Export tagged notes and the files they link to",
    add_completion=False,
    rich_markup_mode="rich"
)

# Initialize console for rich output
console = Console()

# Global state set by the main callback
settings_file: Path = DEFAULT_SETTINGS_PATH
settings: ExporterSettings = ExporterSettings()


@app.callback()
def main_callback(
    settings_path: Path = typer.Option(DEFAULT_SETTINGS_PATH, "--settings", "-s", help="Settings file"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level (default: from settings)"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Log file (default: from settings)"),
    no_log_file: bool = typer.Option(False, "--no-log-file", help="Do not write a log file"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print results, no console logging"),
) -> None:
    """Load settings and configure logging before any command runs."""
    global settings_file, settings

    settings_file = settings_path
    try:
        settings = load_settings(settings_file)
    except SettingsError as e:
        rich_print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    level = (log_level or settings.log_level).upper()
    try:
        setup_logging(LoggingConfig(
            log_file=log_file or Path(settings.log_file),
            log_level=level,
            console_level=level,
            console_enabled=not quiet,
            file_enabled=not no_log_file
        ))
    except ValueError as e:
        rich_print(f"[red]Invalid logging configuration: {e}[/red]")
        raise typer.Exit(1)


def open_application(vault: Path) -> VaultExportApplication:
    """Open the vault or exit with an error message."""
    try:
        return VaultExportApplication(vault, settings)
    except VaultError as e:
        rich_print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def build_criteria(
    include: List[str],
    exclude: List[str],
    split: Optional[bool],
    apply_exclude: Optional[bool]
) -> SelectionCriteria:
    """Criteria from command line options, falling back to settings."""
    split_queries = settings.split_queries if split is None else split
    use_exclude = settings.apply_exclude if apply_exclude is None else apply_exclude

    include_tags = [tag for text in include for tag in parse_tag_query(text, split=split_queries)]
    exclude_tags = [tag for text in exclude for tag in parse_tag_query(text, split=split_queries)]

    if not include:
        include_tags = list(parse_tag_query(settings.default_include, split=split_queries))
    if not exclude:
        exclude_tags = list(parse_tag_query(settings.default_exclude, split=split_queries))

    return SelectionCriteria(
        include=tuple(include_tags),
        exclude=tuple(exclude_tags),
        apply_exclude=use_exclude
    )


def print_summary(summary: ExportSummary, list_files: bool) -> None:
    """Render an export summary table."""
    selection = summary.selection
    title = "Export Preview" if summary.dry_run else "Export Results"

    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Details")

    table.add_row("Include Tags", ", ".join(summary.criteria.include) or "-", "Ancestor tags match too")
    exclude_state = "applied" if summary.criteria.apply_exclude else "ignored"
    table.add_row("Exclude Tags", ", ".join(summary.criteria.exclude) or "-", exclude_state)
    table.add_row("Matched Notes", str(len(selection.matched)), "Notes carrying an include tag")
    table.add_row("Linked Files", str(len(selection.linked)), "Added by following links one hop")
    if summary.criteria.apply_exclude:
        table.add_row("Excluded Notes", str(len(selection.excluded)), "Matched but carrying an exclude tag")
    table.add_row("Unresolved Links", str(len(selection.unresolved)), "Skipped link targets")
    table.add_row("Untagged Notes", str(selection.skipped_untagged), "Never selected")
    table.add_row("Destination", str(summary.destination), "")

    if summary.report is not None:
        table.add_row("Files Copied", str(len(summary.report.copied)), f"{summary.report.total_bytes / 1024:.1f} KB")
        table.add_row("Copy Duration", f"{summary.report.duration_seconds:.2f}s", "")

    console.print(table)

    if list_files and selection.documents:
        rich_print("\n[bold]Files:[/bold]")
        for path in dict.fromkeys(doc.path for doc in selection.documents):
            rich_print(f"  - {path}")


@app.command()
def export(
    vault: Path = typer.Argument(..., help="Vault root directory"),
    include: List[str] = typer.Option([], "--include", "-i", help="Tag to include (repeatable)"),
    exclude: List[str] = typer.Option([], "--exclude", "-x", help="Tag to exclude (repeatable)"),
    to: Optional[str] = typer.Option(None, "--to", "-o", help="Export folder (default: from settings)"),
    apply_exclude: Optional[bool] = typer.Option(None, "--apply-exclude/--ignore-exclude", help="Drop matches carrying an exclude tag"),
    split: Optional[bool] = typer.Option(None, "--split/--no-split", help="Split tag options on commas and spaces"),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Show what would be exported"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Parallel copy threads"),
    verify: bool = typer.Option(False, "--verify", help="Verify copies by checksum"),
    list_files: bool = typer.Option(False, "--list", "-l", help="List exported files"),
) -> None:
    """Export notes with the given tags, plus everything they link to."""
    rich_print("\n[bold blue]Exporting Vault Notes[/bold blue]")

    app_instance = open_application(vault)
    criteria = build_criteria(include, exclude, split, apply_exclude)

    if criteria.is_empty:
        rich_print("[yellow]No include tags given. Use --include or set default_include.[/yellow]")
        raise typer.Exit(1)

    try:
        summary = app_instance.export(criteria, destination=to, dry_run=dry_run, workers=workers, verify=verify)
    except ExportError as e:
        rich_print(f"[red]Export failed: {e}[/red]")
        if e.report is not None:
            for path, message in e.report.failed.items():
                rich_print(f"  - {path}: {message}")
        raise typer.Exit(1)

    print_summary(summary, list_files or dry_run)

    if summary.selection.is_empty:
        rich_print("[yellow]Nothing to export.[/yellow]")
    elif summary.copied:
        rich_print("[green]Export complete![/green]")


@app.command()
def tags(
    vault: Path = typer.Argument(..., help="Vault root directory"),
    prefix: Optional[str] = typer.Option(None, "--prefix", "-p", help="Only tags under this tag"),
) -> None:
    """List tags, including ancestor tags, with note counts."""
    app_instance = open_application(vault)
    counts = app_instance.tag_counts()

    if prefix:
        root = prefix.lstrip('#').strip()
        counts = {tag: n for tag, n in counts.items() if tag == root or tag.startswith(root + "/")}

    if not counts:
        rich_print("[yellow]No tags found.[/yellow]")
        return

    table = Table(title=f"Tags: {app_instance.vault_root}", show_header=True, header_style="bold magenta")
    table.add_column("Tag", style="cyan")
    table.add_column("Notes", style="green", justify="right")
    for tag, count in counts.items():
        table.add_row(tag, str(count))
    console.print(table)


@app.command()
def links(
    vault: Path = typer.Argument(..., help="Vault root directory"),
) -> None:
    """Show links that point at files missing from the vault."""
    app_instance = open_application(vault)
    unresolved = app_instance.unresolved_links()

    if not unresolved:
        rich_print("[green]All links resolve.[/green]")
        return

    table = Table(title="Unresolved Links", show_header=True, header_style="bold magenta")
    table.add_column("Note", style="cyan")
    table.add_column("Targets", style="red")
    for path, targets in unresolved.items():
        table.add_row(path, ", ".join(targets))
    console.print(table)


@app.command()
def config(
    show: bool = typer.Option(False, "--show", help="Show current settings"),
    set_values: List[str] = typer.Option([], "--set", help="Update a setting, KEY=VALUE (repeatable)"),
) -> None:
    """Show or update persisted settings."""
    global settings

    if set_values:
        changes = {}
        try:
            for item in set_values:
                if "=" not in item:
                    raise SettingsError(f"Expected KEY=VALUE, got {item!r}")
                key, raw = item.split("=", 1)
                changes[key.strip()] = parse_setting_value(key.strip(), raw)
            settings = settings.with_updates(**changes)
            save_settings(settings, settings_file)
        except SettingsError as e:
            rich_print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        rich_print(f"[green]Settings saved to {settings_file}[/green]")

    if show or not set_values:
        table = Table(title="Configuration", show_header=True, header_style="bold magenta")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")
        for key, value in settings.to_dict().items():
            table.add_row(key, str(value))
        console.print(table)


def main() -> None:
    """Main entry point for the CLI application."""
    app()


if __name__ == "__main__":
    main()
