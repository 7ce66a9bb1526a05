"""
Structured logging for the job board tooling.

Console and daily file output, optional JSON context on every line,
and counters for moderation activity (duplicate scans, merges,
featured refreshes) so a run can end with a summary.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


def _empty_metrics() -> dict:
    return {
        "duplicate_scans": 0,
        "duplicate_groups_found": 0,
        "merges": 0,
        "jobs_deleted": 0,
        "featured_refreshes": 0,
        "jobs_scored": 0,
        "pin_updates": 0,
        "jobs_expired": 0,
        "exact_duplicates_deactivated": 0,
        "errors_by_type": {},
    }


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks counters for moderation operations.
    """

    def __init__(
        self,
        name: str = "jobboard",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.metrics = _empty_metrics()
        self.configure(
            level=level,
            log_dir=log_dir,
            enable_file=enable_file,
            enable_console=enable_console,
        )

    def configure(
        self,
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """(Re)build handlers. Metrics are left untouched."""
        self.logger.setLevel(getattr(logging, level.upper()))
        for handler in list(self.logger.handlers):
            handler.close()
        self.logger.handlers.clear()

        if enable_console:
            # stdout is reserved for command output
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_handler.setFormatter(logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"jobboard_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_handler.setFormatter(logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_duplicate_scan(self, groups_found: int):
        self.metrics["duplicate_scans"] += 1
        self.metrics["duplicate_groups_found"] += groups_found

    def record_merge(self, deleted: int):
        self.metrics["merges"] += 1
        self.metrics["jobs_deleted"] += deleted

    def record_refresh(self, scored: int):
        self.metrics["featured_refreshes"] += 1
        self.metrics["jobs_scored"] += scored

    def record_pin_update(self):
        self.metrics["pin_updates"] += 1

    def record_expired(self, count: int):
        self.metrics["jobs_expired"] += count

    def record_exact_dedup(self, count: int):
        self.metrics["exact_duplicates_deactivated"] += count

    def record_error(self, error_type: str):
        """Count a failure by exception type name."""
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Return a copy of the current metrics."""
        metrics_copy = dict(self.metrics)
        metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Moderation Session Metrics ===")
        self.info(
            f"Duplicate scans: {metrics['duplicate_scans']} "
            f"({metrics['duplicate_groups_found']} groups)"
        )
        self.info(f"Merges: {metrics['merges']} ({metrics['jobs_deleted']} jobs deleted)")
        self.info(
            f"Featured refreshes: {metrics['featured_refreshes']} "
            f"({metrics['jobs_scored']} jobs scored)"
        )
        self.info(f"Pin updates: {metrics['pin_updates']}")
        self.info(f"Jobs expired: {metrics['jobs_expired']}")
        self.info(f"Exact duplicates deactivated: {metrics['exact_duplicates_deactivated']}")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "jobboard",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
