"""
Structured logging system for grantmatch.

Provides centralized logging with console and file outputs, log levels,
and metrics tracking for monitoring catalog freshness and match traffic.
"""

import logging
import os
import sys
import threading
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for catalog loads and matching requests.
    """

    def __init__(
        self,
        name: str = "grantmatch",
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
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()
        self.logger.propagate = False
        self._metrics_lock = threading.RLock()

        self.metrics = {
            "loads_attempted": 0,
            "loads_successful": 0,
            "loads_failed": 0,
            "records_loaded": 0,
            "records_skipped": 0,
            "match_requests": 0,
            "results_served": 0,
            "empty_responses": 0,
            "errors_by_type": {},
            "skipped_by_reason": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"grantmatch_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
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

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        """Internal logging method with context."""
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods (thread-safe)

    def record_load_attempt(self):
        """Increment catalog load counter."""
        with self._metrics_lock:
            self.metrics["loads_attempted"] += 1

    def record_load_success(self, loaded: int):
        """Record a completed catalog load."""
        with self._metrics_lock:
            self.metrics["loads_successful"] += 1
            self.metrics["records_loaded"] += loaded

    def record_load_failure(self, error_type: str):
        """Record a failed catalog load."""
        with self._metrics_lock:
            self.metrics["loads_failed"] += 1
            self.record_error(error_type)

    def record_skipped_record(self, reason: str):
        """Record a catalog entry dropped during load."""
        with self._metrics_lock:
            self.metrics["records_skipped"] += 1
            skipped = self.metrics["skipped_by_reason"]
            skipped[reason] = skipped.get(reason, 0) + 1

    def record_match_request(self, results: int):
        """Record a served matching request and its result count."""
        with self._metrics_lock:
            self.metrics["match_requests"] += 1
            self.metrics["results_served"] += results
            if results == 0:
                self.metrics["empty_responses"] += 1

    def record_error(self, error_type: str):
        with self._metrics_lock:
            errors = self.metrics["errors_by_type"]
            errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Return current metrics."""
        with self._metrics_lock:
            metrics_copy = self.metrics.copy()
            metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])
            metrics_copy["skipped_by_reason"] = dict(self.metrics["skipped_by_reason"])
        attempts = metrics_copy["loads_attempted"]
        if attempts > 0:
            metrics_copy["load_success_rate"] = round(
                metrics_copy["loads_successful"] / attempts, 3
            )
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        attempts = metrics["loads_attempted"]
        successes = metrics["loads_successful"]
        rate = metrics.get("load_success_rate", 0) * 100

        self.info("=== Matching Session Metrics ===")
        self.info(f"Catalog loads: {successes}/{attempts} ({rate:.1f}% success)")
        self.info(
            f"Records: {metrics['records_loaded']} loaded, {metrics['records_skipped']} skipped"
        )
        self.info(
            f"Match requests: {metrics['match_requests']} "
            f"({metrics['results_served']} results, {metrics['empty_responses']} empty)"
        )

        if metrics["skipped_by_reason"]:
            self.info("Skipped Records:")
            for reason, count in metrics["skipped_by_reason"].items():
                self.info(f"  {reason}: {count}")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "grantmatch",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Level and log directory default to GRANTMATCH_LOG_LEVEL and
    GRANTMATCH_LOG_DIR when not given.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        if level is None:
            level = os.getenv("GRANTMATCH_LOG_LEVEL", "INFO")
        if "log_dir" not in kwargs and os.getenv("GRANTMATCH_LOG_DIR"):
            kwargs["log_dir"] = Path(os.environ["GRANTMATCH_LOG_DIR"])
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
