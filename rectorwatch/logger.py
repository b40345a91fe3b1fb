"""
Structured logging for rectorwatch.

Console and file outputs plus run counters (snapshots merged, skipped,
failed; records dropped as noise or malformed) reported at the end of a
history build.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class StructuredLogger:
    """
    Logger wrapper that appends keyword context to messages and keeps
    counters for the current run.
    """

    def __init__(
        self,
        name: str = "rectorwatch",
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
        self.logger.setLevel(logging.DEBUG)
        self.logger.handlers.clear()
        self.logger.propagate = False

        self.metrics = {
            "api_calls": 0,
            "snapshots_listed": 0,
            "snapshots_processed": 0,
            "snapshots_already_consumed": 0,
            "snapshots_failed": 0,
            "records_noise": 0,
            "records_malformed": 0,
            "errors_by_type": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_handler.setFormatter(logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"rectorwatch_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
            self.logger.addHandler(file_handler)

    def set_level(self, level: str):
        """Change the console level; the file handler keeps everything."""
        level = level.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {level}")
        for handler in self.logger.handlers:
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(getattr(logging, level))

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, ensure_ascii=False, default=str)}"
        self.logger.log(level, message)

    # Run counters

    def record_api_call(self):
        self.metrics["api_calls"] += 1

    def record_snapshots_listed(self, count: int):
        self.metrics["snapshots_listed"] += count

    def record_snapshot_processed(self):
        self.metrics["snapshots_processed"] += 1

    def record_snapshot_already_consumed(self):
        self.metrics["snapshots_already_consumed"] += 1

    def record_snapshot_failure(self, error_type: str):
        """Record a snapshot that could not be fetched or parsed."""
        self.metrics["snapshots_failed"] += 1
        self.record_error(error_type)

    def record_noise(self, count: int = 1):
        self.metrics["records_noise"] += count

    def record_malformed(self, count: int = 1):
        self.metrics["records_malformed"] += count

    def record_error(self, error_type: str):
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Return a copy of the current counters."""
        metrics_copy = self.metrics.copy()
        metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current counters."""
        metrics = self.get_metrics()

        self.info("=== History Build Metrics ===")
        self.info(f"API Calls: {metrics['api_calls']}")
        self.info(
            f"Snapshots: {metrics['snapshots_processed']} processed, "
            f"{metrics['snapshots_already_consumed']} already consumed, "
            f"{metrics['snapshots_failed']} failed "
            f"(of {metrics['snapshots_listed']} listed)"
        )
        self.info(
            f"Records dropped: {metrics['records_noise']} noise, "
            f"{metrics['records_malformed']} malformed"
        )

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "rectorwatch",
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
