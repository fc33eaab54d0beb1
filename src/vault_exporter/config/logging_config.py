"""Structured logging setup for the vault exporter."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional, Union
from types import TracebackType
from datetime import datetime

from loguru import logger


@dataclass(frozen=True)
class LoggingConfig:
    """Configuration for logging system."""

    # File logging
    log_file: Path = Path("logs/vault_exporter.log")
    log_level: str = "INFO"
    file_enabled: bool = True
    rotation_size: str = "10 MB"
    retention_count: int = 10
    compression: str = "zip"

    # Console logging
    console_enabled: bool = True
    console_level: str = "INFO"
    console_format: str = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"

    # File format
    file_format: str = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {process.id} | {thread.id} | {message} | {extra}"

    # Performance monitoring
    enable_performance_logging: bool = True
    slow_operation_threshold_seconds: float = 5.0

    # Error handling
    enable_error_context: bool = True

    def __post_init__(self) -> None:
        """Validate logging configuration."""
        valid_levels: set[str] = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}

        if self.log_level.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {self.log_level}")
        if self.console_level.upper() not in valid_levels:
            raise ValueError(f"Invalid console log level: {self.console_level}")
        if self.retention_count < 1:
            raise ValueError("Retention count must be at least 1")
        if self.slow_operation_threshold_seconds <= 0:
            raise ValueError("Slow operation threshold must be positive")


class StructuredLogger:
    """Logger wrapper adding operation timing and export-specific events."""

    def __init__(self, config: LoggingConfig) -> None:
        """Initialize structured logger with configuration."""
        self.config: LoggingConfig = config
        self._setup_logger()

    def _setup_logger(self) -> None:
        """Setup loguru logger with configuration."""
        # Remove default handler
        logger.remove()

        if self.config.console_enabled:
            logger.add(
                sys.stderr,
                level=self.config.console_level.upper(),
                format=self.config.console_format,
                colorize=True
            )

        if not self.config.file_enabled:
            return

        logger.add(
            str(self.config.log_file),
            level=self.config.log_level.upper(),
            format=self.config.file_format,
            rotation=self.config.rotation_size,
            retention=self.config.retention_count,
            compression=self.config.compression,
            enqueue=True,
            serialize=False  # Keep human-readable format
        )

        if self.config.enable_error_context:
            logger.add(
                str(self.config.log_file.with_suffix('.error.log')),
                level="ERROR",
                format=self._get_error_format(),
                rotation=self.config.rotation_size,
                retention=self.config.retention_count,
                compression=self.config.compression,
                enqueue=True,
                backtrace=True,
                diagnose=True
            )

    def _get_error_format(self) -> str:
        """Get detailed error logging format."""
        return (
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | "
            "{process.id} | {thread.id} | {message}\n"
            "Exception: {exception}\n"
            "Extra: {extra}\n"
            "---"
        )

    def log_operation_start(self, operation: str, **context: Any) -> str:
        """Log the start of an operation and return operation ID.

        Args:
            operation: Name of the operation.
            **context: Additional context data.

        Returns:
            Operation ID for tracking.
        """
        operation_id: str = f"{operation}_{datetime.now().strftime('%Y%m%d_%H%M%S_%f')}"

        logger.bind(
            operation_id=operation_id,
            operation=operation,
            start_time=datetime.now().isoformat(),
            **context
        ).info(f"Operation started: {operation}")

        return operation_id

    def log_operation_end(
        self,
        operation_id: str,
        operation: str,
        success: bool = True,
        error: Optional[BaseException] = None,
        **context: Any
    ) -> None:
        """Log the end of an operation.

        Args:
            operation_id: Operation ID from log_operation_start.
            operation: Name of the operation.
            success: Whether operation was successful.
            error: BaseException if operation failed.
            **context: Additional context data.
        """
        log_data: Dict[str, Any] = {
            "operation_id": operation_id,
            "operation": operation,
            "success": success,
            "end_time": datetime.now().isoformat(),
            **context
        }

        if success:
            logger.bind(**log_data).success(f"Operation completed: {operation}")
        else:
            logger.bind(
                error_type=type(error).__name__ if error else "Unknown",
                error_message=str(error) if error else "Unknown error",
                **log_data
            ).error(f"Operation failed: {operation}")

    def log_performance_metric(
        self,
        metric_name: str,
        value: Union[int, float],
        unit: str = "",
        **context: Any
    ) -> None:
        """Log a performance metric.

        Slow ``*_duration_seconds`` metrics are additionally logged as warnings.
        """
        logger.bind(
            metric_name=metric_name,
            metric_value=value,
            metric_unit=unit,
            **context
        ).debug(f"Performance metric: {metric_name}={value}{unit and ' ' + unit}")

        if (self.config.enable_performance_logging and
            metric_name.endswith('_duration_seconds') and
            value > self.config.slow_operation_threshold_seconds):

            logger.bind(
                metric_name=metric_name,
                duration_seconds=value,
                threshold_seconds=self.config.slow_operation_threshold_seconds,
                **context
            ).warning(f"Slow operation detected: {metric_name}")

    def log_selection(
        self,
        candidates: int,
        matched: int,
        linked: int,
        unresolved: int = 0,
        include: tuple[str, ...] = (),
        **context: Any
    ) -> None:
        """Log the outcome of a document selection.

        Args:
            candidates: Number of candidate documents.
            matched: Documents matched by tag.
            linked: Linked resources added by link closure.
            unresolved: Link targets that did not resolve.
            include: Include tags used.
            **context: Additional context data.
        """
        logger.bind(
            selection_candidates=candidates,
            selection_matched=matched,
            selection_linked=linked,
            selection_unresolved=unresolved,
            selection_include=list(include),
            **context
        ).info(f"Selection: {matched} matched, {linked} linked of {candidates} candidates")

        if unresolved:
            logger.warning(f"{unresolved} link target(s) could not be resolved and were skipped")

    def log_copy_operation(
        self,
        destination: str,
        success: bool,
        files_copied: int = 0,
        files_failed: int = 0,
        total_bytes: int = 0,
        **context: Any
    ) -> None:
        """Log the outcome of copying an export to its destination."""
        bound = logger.bind(
            copy_destination=destination,
            copy_success=success,
            copy_files_copied=files_copied,
            copy_files_failed=files_failed,
            copy_total_bytes=total_bytes,
            **context
        )

        if success:
            bound.info(f"Export copied to {destination}: {files_copied} files")
        else:
            bound.error(f"Export to {destination} incomplete: {files_failed} of {files_copied + files_failed} files failed")


def setup_logging(config: Optional[LoggingConfig] = None) -> StructuredLogger:
    """Setup logging system with configuration.

    Args:
        config: Logging configuration. If None, uses default configuration.

    Returns:
        Configured StructuredLogger instance.
    """
    global _default_structured_logger

    if config is None:
        config = LoggingConfig()

    if config.file_enabled:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)

    structured_logger: StructuredLogger = StructuredLogger(config)
    _default_structured_logger = structured_logger

    logger.bind(
        log_file=str(config.log_file) if config.file_enabled else None,
        log_level=config.log_level,
        console_enabled=config.console_enabled
    ).debug("Logging system initialized")

    return structured_logger


# Context managers for operation logging
class LoggedOperation:
    """Context manager for logging operations with automatic timing."""

    def __init__(
        self,
        structured_logger: StructuredLogger,
        operation_name: str,
        **context: Any
    ) -> None:
        """Initialize logged operation.

        Args:
            structured_logger: StructuredLogger instance.
            operation_name: Name of the operation.
            **context: Additional context data.
        """
        self.structured_logger: StructuredLogger = structured_logger
        self.operation_name: str = operation_name
        self.context: Dict[str, Any] = context
        self.operation_id: Optional[str] = None
        self.start_time: Optional[datetime] = None
        self.duration_seconds: Optional[float] = None

    def __enter__(self) -> LoggedOperation:
        """Enter context and start logging operation."""
        self.start_time = datetime.now()
        self.operation_id = self.structured_logger.log_operation_start(
            self.operation_name,
            **self.context
        )
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        _: Optional[TracebackType]
    ) -> None:
        """Exit context and log operation completion."""
        if self.start_time and self.operation_id:
            self.duration_seconds = (datetime.now() - self.start_time).total_seconds()

            self.structured_logger.log_performance_metric(
                f"{self.operation_name}_duration_seconds",
                self.duration_seconds,
                "seconds",
                operation_id=self.operation_id
            )

            self.structured_logger.log_operation_end(
                self.operation_id,
                self.operation_name,
                success=exc_type is None,
                error=exc_val if exc_val else None,
                duration_seconds=self.duration_seconds,
                **self.context
            )


_default_structured_logger: Optional[StructuredLogger] = None

def get_logger() -> StructuredLogger:
    """Get the default structured logger instance.

    Returns:
        Default StructuredLogger instance.
    """
    global _default_structured_logger
    if _default_structured_logger is None:
        _default_structured_logger = setup_logging()
    return _default_structured_logger
