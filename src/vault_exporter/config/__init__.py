"""Configuration package for the vault exporter."""

from .logging_config import LoggedOperation, LoggingConfig, StructuredLogger, get_logger, setup_logging
from .settings import (
    DEFAULT_SETTINGS_PATH,
    ExporterSettings,
    SettingsError,
    load_settings,
    parse_setting_value,
    save_settings,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "LoggingConfig",
    "LoggedOperation",
    "StructuredLogger",
    # Settings
    "DEFAULT_SETTINGS_PATH",
    "ExporterSettings",
    "SettingsError",
    "load_settings",
    "parse_setting_value",
    "save_settings",
]
