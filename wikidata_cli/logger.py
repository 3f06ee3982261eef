"""
Structured logging for wikidata-cli.

Provides a process-wide logger writing to stderr (stdout carries command
output) and optionally to a daily log file, plus per-invocation request
metrics for the remote services.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


class StructuredLogger:
    """
    Centralized logger with console and file outputs.
    Tracks request metrics per remote service.
    """

    def __init__(
        self,
        name: str = "wikidata_cli",
        level: str = "WARNING",
        log_dir: Optional[Path] = None,
        enable_file: bool = False,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to stderr
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)
        self.logger.handlers.clear()
        self.logger.propagate = False

        self.metrics = {
            "api_calls": 0,
            "requests_failed": 0,
            "errors_by_type": {},
            "service_success_rate": {},
            "vector_fallbacks": {},
        }

        self._console_handler: Optional[logging.Handler] = None
        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)
            self._console_handler = console_handler

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"wikidata_cli_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def set_level(self, level: str):
        """Change the console log level."""
        if self._console_handler is not None:
            self._console_handler.setLevel(getattr(logging, level.upper()))

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

    def record_request(self, service: str):
        """Record an outbound request to a service."""
        self.metrics["api_calls"] += 1
        if service not in self.metrics["service_success_rate"]:
            self.metrics["service_success_rate"][service] = {
                "attempts": 0,
                "successes": 0
            }
        self.metrics["service_success_rate"][service]["attempts"] += 1

    def record_request_success(self, service: str):
        if service in self.metrics["service_success_rate"]:
            self.metrics["service_success_rate"][service]["successes"] += 1

    def record_request_failure(self, service: str, error_type: str):
        self.metrics["requests_failed"] += 1

        if error_type not in self.metrics["errors_by_type"]:
            self.metrics["errors_by_type"][error_type] = 0
        self.metrics["errors_by_type"][error_type] += 1

    def record_vector_fallback(self, reason: str):
        """Record a vector search that fell back to keyword search."""
        fallbacks = self.metrics["vector_fallbacks"]
        fallbacks[reason] = fallbacks.get(reason, 0) + 1

    def get_metrics(self) -> dict:
        """Return current metrics with per-service success rates."""
        metrics_copy = self.metrics.copy()
        for service, stats in metrics_copy["service_success_rate"].items():
            if stats["attempts"] > 0:
                stats["success_rate"] = round(
                    stats["successes"] / stats["attempts"], 3
                )

        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Request Metrics ===")
        self.info(f"API Calls: {metrics['api_calls']} ({metrics['requests_failed']} failed)")

        if metrics["service_success_rate"]:
            self.info("Service Success Rates:")
            for service, stats in metrics["service_success_rate"].items():
                rate = stats.get("success_rate", 0) * 100
                self.info(f"  {service}: {stats['successes']}/{stats['attempts']} ({rate:.1f}%)")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")

        if metrics["vector_fallbacks"]:
            self.info("Vector Fallbacks:")
            for reason, count in metrics["vector_fallbacks"].items():
                self.info(f"  {reason}: {count}")


_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "wikidata_cli",
    level: str = "WARNING",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Console log level
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
