"""
Logging setup for entry points.

Engine modules only ever call ``logging.getLogger(__name__)``. Entry points
(the CLI, batch jobs) create one RewardsLogger, which installs a single
stderr handler on the root logger so every ``donor_rewards`` record shares
one format:

    2026-03-01 12:00:00,123 | INFO     | rules.py:301 | Loaded scoring rules v1.0.0 ...

Keyword arguments become a ``[key=value ...]`` suffix, and warnings and
errors are kept for an end-of-run summary.
"""

import logging
import sys
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(filename)s:%(lineno)d | %(message)s"


class MillisecondsFormatter(logging.Formatter):
    """Timestamps with a ``,mmm`` millisecond suffix."""

    def formatTime(self, record, datefmt=None):  # noqa: N802 - must match parent class method name
        stamp = datetime.fromtimestamp(record.created).strftime(datefmt or "%Y-%m-%d %H:%M:%S")
        return f"{stamp},{int(record.msecs):03d}"


def _with_fields(message: str, fields: dict) -> str:
    if not fields:
        return message
    return message + " [" + " ".join(f"{k}={v}" for k, v in fields.items()) + "]"


def configure_global_logging(log_level: str = "INFO", formatter: Optional[logging.Formatter] = None):
    """Route every logger through one stderr handler on the root logger.

    stdout is left alone so CLI output stays machine-readable.
    """
    level = getattr(logging, log_level.upper())
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter or MillisecondsFormatter(LOG_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)


class RewardsLogger:
    """Structured logger for one CLI invocation or batch run."""

    def __init__(self, name: str = "donor_rewards", log_level: str = "INFO"):
        configure_global_logging(log_level)
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, log_level.upper()))
        self.warnings: list[dict] = []
        self.errors: list[dict] = []

    def debug(self, message: str, **kwargs):
        self.logger.debug(_with_fields(message, kwargs), stacklevel=2)

    def info(self, message: str, **kwargs):
        self.logger.info(_with_fields(message, kwargs), stacklevel=2)

    def warning(self, message: str, **kwargs):
        """Log and remember a warning."""
        message = _with_fields(message, kwargs)
        self.logger.warning(message, stacklevel=2)
        self.warnings.append({"message": message, "at": datetime.now().isoformat(), "data": kwargs})

    def error(self, message: str, exception: Optional[Exception] = None, **kwargs):
        """Log and remember an error; ``exception`` adds its traceback."""
        if exception is not None:
            message = f"{message} | {type(exception).__name__}: {exception}"
        message = _with_fields(message, kwargs)
        self.logger.error(message, exc_info=exception, stacklevel=2)
        self.errors.append({"message": message, "at": datetime.now().isoformat(), "data": kwargs})

    @contextmanager
    def time_operation(self, operation: str, **kwargs):
        """Debug-log how long the wrapped block took.

        Usage:
            with logger.time_operation("leaderboard", period="weekly"):
                ...
        """
        started = datetime.now()
        self.debug(f"Starting {operation}", **kwargs)
        try:
            yield
        finally:
            elapsed = (datetime.now() - started).total_seconds()
            self.debug(f"Finished {operation}", duration_seconds=round(elapsed, 3), **kwargs)

    def get_error_summary(self) -> dict:
        """Counts plus the tracked records, for end-of-run reporting."""
        return {
            "total_errors": len(self.errors),
            "total_warnings": len(self.warnings),
            "errors": self.errors,
            "warnings": self.warnings,
        }
