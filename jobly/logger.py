"""
Structured logging for Jobly.

StructuredLogger is a LoggerAdapter: keyword arguments that logging does
not understand are appended to the message as JSON context. It also keeps
per-session counters for the queries the model layer runs and the
requests it rejects.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# keyword arguments logging itself accepts; everything else is context
_LOGGING_KWARGS = {"exc_info", "stack_info", "stacklevel", "extra"}


def _attach(logger: logging.Logger, handler: logging.Handler, level: int, fmt: str) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=DATE_FORMAT))
    logger.addHandler(handler)


class StructuredLogger(logging.LoggerAdapter):
    """
    Logger writing to stderr and a daily file, with query metrics.

    Usage:
        logger = StructuredLogger(level="DEBUG", log_dir=Path("logs"))
        logger.info("Updated job", id=3, fields=["title"])
        # ... | Updated job | Context: {"id": 3, "fields": ["title"]}
    """

    def __init__(
        self,
        name: str = "jobly",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Also write to a daily file under log_dir
            enable_console: Write to stderr; stdout is reserved for CLI output
        """
        base = logging.getLogger(name)
        numeric_level = getattr(logging, level.upper())
        base.setLevel(numeric_level)
        base.handlers.clear()
        super().__init__(base, {})

        self.metrics: Dict[str, Any] = {
            "queries_executed": 0,
            "rows_returned": 0,
            "queries_by_table": {},
            "validation_errors_by_reason": {},
            "not_found_by_entity": {},
        }

        if enable_console:
            _attach(base, logging.StreamHandler(sys.stderr), numeric_level, CONSOLE_FORMAT)

        if enable_file:
            log_dir = log_dir or Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)
            log_file = log_dir / f"jobly_{datetime.now():%Y%m%d}.log"
            _attach(base, logging.FileHandler(log_file, encoding="utf-8"), logging.DEBUG, FILE_FORMAT)

    def process(self, msg, kwargs):
        context = {k: kwargs.pop(k) for k in list(kwargs) if k not in _LOGGING_KWARGS}
        if context:
            msg = f"{msg} | Context: {json.dumps(context, default=str)}"
        return msg, kwargs

    def _bump(self, bucket: str, key: str) -> None:
        counts = self.metrics[bucket]
        counts[key] = counts.get(key, 0) + 1

    def record_query(self, table: str, rows: int = 0) -> None:
        """Count an executed statement and the rows it returned."""
        self.metrics["queries_executed"] += 1
        self.metrics["rows_returned"] += rows
        self._bump("queries_by_table", table)

    def record_validation_error(self, reason: str) -> None:
        self._bump("validation_errors_by_reason", reason)

    def record_not_found(self, entity: str) -> None:
        self._bump("not_found_by_entity", entity)

    def get_metrics(self) -> Dict[str, Any]:
        """Return a copy of the counters plus the average rows per query."""
        snapshot = {
            key: dict(value) if isinstance(value, dict) else value
            for key, value in self.metrics.items()
        }
        executed = snapshot["queries_executed"]
        if executed:
            snapshot["avg_rows_per_query"] = round(snapshot["rows_returned"] / executed, 3)
        return snapshot

    def log_metrics_summary(self) -> None:
        snapshot = self.get_metrics()
        self.info("=== Query Session Metrics ===")
        self.info(f"Queries: {snapshot['queries_executed']} ({snapshot['rows_returned']} rows)")

        sections = [
            ("Queries by table", "queries_by_table"),
            ("Validation errors", "validation_errors_by_reason"),
            ("Not found", "not_found_by_entity"),
        ]
        for title, bucket in sections:
            if snapshot[bucket]:
                self.info(f"{title}:")
                for key, count in snapshot[bucket].items():
                    self.info(f"  {key}: {count}")


_global_logger: Optional[StructuredLogger] = None


def get_logger(name: str = "jobly", level: str = "INFO", **kwargs) -> StructuredLogger:
    """
    Return the process-wide logger, creating it on first use.

    Arguments only apply to that first call; later calls return the
    existing instance unchanged.
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger() -> None:
    """Drop the process-wide logger so the next get_logger() builds a new one."""
    global _global_logger
    _global_logger = None
