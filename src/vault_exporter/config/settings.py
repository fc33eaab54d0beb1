"""Persisted settings for the vault exporter."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Final

from loguru import logger


DEFAULT_SETTINGS_PATH: Final[Path] = Path("config/settings.json")
SETTINGS_VERSION: Final[str] = "1.0"

VALID_LOG_LEVELS: Final[frozenset[str]] = frozenset(
    {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
)


class SettingsError(Exception):
    """Raised when settings cannot be loaded, validated or saved."""
    pass


@dataclass(frozen=True)
class ExporterSettings:
    """User settings, read once per export and never mutated in place."""

    # Export
    export_folder: str = "./export/"
    default_include: str = ""
    default_exclude: str = ""
    split_queries: bool = True
    apply_exclude: bool = False
    copy_workers: int = 1

    # Free-text profile name, shown in logs
    profile: str = "default"

    # Logging
    log_level: str = "INFO"
    log_file: str = "logs/vault_exporter.log"

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if not self.export_folder.strip():
            raise ValueError("Export folder cannot be empty")
        if self.copy_workers < 1:
            raise ValueError("Copy workers must be at least 1")
        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")

    def with_updates(self, **changes: Any) -> ExporterSettings:
        """Return a copy with the given fields replaced.

        Raises:
            SettingsError: If a field is unknown or a value is invalid.
        """
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise SettingsError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
        try:
            return replace(self, **changes)
        except (TypeError, ValueError) as e:
            raise SettingsError(f"Invalid setting value: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def parse_setting_value(key: str, raw: str) -> Any:
    """Convert a ``KEY=VALUE`` string value to the field's type.

    Raises:
        SettingsError: If the key is unknown or the value does not convert.
    """
    field_types = {f.name: f.type for f in fields(ExporterSettings)}
    if key not in field_types:
        raise SettingsError(f"Unknown setting: {key}")

    # Annotations are strings under postponed evaluation
    field_type = str(field_types[key])
    if field_type == "bool":
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise SettingsError(f"Expected a boolean for {key}, got {raw!r}")
    if field_type == "int":
        try:
            return int(raw)
        except ValueError as e:
            raise SettingsError(f"Expected an integer for {key}, got {raw!r}") from e
    return raw


def load_settings(settings_file: Path = DEFAULT_SETTINGS_PATH) -> ExporterSettings:
    """Load settings from a JSON file; a missing file yields defaults.

    Args:
        settings_file: Path to the settings file.

    Returns:
        Loaded ExporterSettings instance.

    Raises:
        SettingsError: If the file is unreadable or holds invalid values.
    """
    if not settings_file.exists():
        logger.debug(f"No settings file at {settings_file}, using defaults")
        return ExporterSettings()

    try:
        data: Dict[str, Any] = json.loads(settings_file.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("Settings file must contain a JSON object")

        version = data.pop("version", SETTINGS_VERSION)
        if version != SETTINGS_VERSION:
            logger.warning(f"Unsupported settings version: {version}")

        known = {f.name for f in fields(ExporterSettings)}
        ignored = sorted(set(data) - known)
        if ignored:
            logger.warning(f"Ignoring unknown settings: {', '.join(ignored)}")

        settings = ExporterSettings(**{k: v for k, v in data.items() if k in known})
        logger.info(f"Settings loaded from {settings_file}")
        return settings

    except (OSError, json.JSONDecodeError, TypeError, ValueError) as e:
        logger.error(f"Failed to load settings: {e}")
        raise SettingsError(f"Failed to load settings from {settings_file}: {e}") from e


def save_settings(settings: ExporterSettings, settings_file: Path = DEFAULT_SETTINGS_PATH) -> None:
    """Write settings to a JSON file.

    Raises:
        SettingsError: If writing fails.
    """
    try:
        settings_file.parent.mkdir(parents=True, exist_ok=True)
        payload: Dict[str, Any] = {**settings.to_dict(), "version": SETTINGS_VERSION}
        settings_file.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        logger.info(f"Settings saved to {settings_file}")
    except OSError as e:
        logger.error(f"Failed to save settings: {e}")
        raise SettingsError(f"Failed to save settings to {settings_file}: {e}") from e
