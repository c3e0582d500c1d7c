"""
Tests for logger functionality.
"""

import pytest
from pathlib import Path
from jobly.logger import StructuredLogger, get_logger, reset_logger


class TestStructuredLogger:
    """Test structured logging functionality."""

    def test_logger_creation(self, tmp_path):
        """Logger should be created with default settings."""
        logger = StructuredLogger(
            name="test",
            level="INFO",
            log_dir=tmp_path,
            enable_console=False,
        )

        assert logger.logger.name == "test"
        assert logger.metrics["queries_executed"] == 0

    def test_log_methods(self, tmp_path):
        """All log level methods should work."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.debug("Debug message")
        logger.info("Info message")
        logger.warning("Warning message")
        logger.error("Error message")

    def test_log_with_context_written_to_file(self, tmp_path):
        """Context is appended as JSON."""
        logger = StructuredLogger(
            name="test_context",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.info("Message with context", table="jobs", values=[1, None])
        for handler in logger.logger.handlers:
            handler.flush()

        log_files = list(tmp_path.glob("jobly_*.log"))
        assert len(log_files) == 1
        content = log_files[0].read_text(encoding="utf-8")
        assert 'Message with context | Context: {"table": "jobs", "values": [1, null]}' in content

    def test_no_file_handler(self, tmp_path):
        """Disabling file output writes no log file."""
        logger = StructuredLogger(
            name="test_nofile",
            log_dir=tmp_path,
            enable_file=False,
            enable_console=False,
        )
        logger.info("nothing on disk")
        assert list(tmp_path.glob("*.log")) == []

    def test_metrics_tracking(self, tmp_path):
        """Metrics should be tracked correctly."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.record_query("companies", 3)
        logger.record_query("companies", 1)
        logger.record_query("jobs")
        logger.record_validation_error("job_filter")
        logger.record_validation_error("job_filter")
        logger.record_not_found("users")

        metrics = logger.get_metrics()

        assert metrics["queries_executed"] == 3
        assert metrics["rows_returned"] == 4
        assert metrics["queries_by_table"] == {"companies": 2, "jobs": 1}
        assert metrics["validation_errors_by_reason"] == {"job_filter": 2}
        assert metrics["not_found_by_entity"] == {"users": 1}
        assert metrics["avg_rows_per_query"] == pytest.approx(1.333)

    def test_metrics_snapshot_is_detached(self, tmp_path):
        """Changing a returned snapshot leaves the live counters alone."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )
        logger.record_query("jobs", 1)
        logger.record_validation_error("job_filter")

        snapshot = logger.get_metrics()
        snapshot["queries_by_table"]["jobs"] = 99
        snapshot["validation_errors_by_reason"].clear()

        assert logger.metrics["queries_by_table"] == {"jobs": 1}
        assert logger.metrics["validation_errors_by_reason"] == {"job_filter": 1}

    def test_metrics_summary(self, tmp_path):
        """Summary logging should not raise."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )
        logger.record_query("jobs", 2)
        logger.record_validation_error("company_filter")
        logger.log_metrics_summary()


class TestGlobalLogger:
    """Test the process-wide logger."""

    def test_get_logger_returns_same_instance(self, tmp_path):
        reset_logger()
        first = get_logger(log_dir=tmp_path, enable_console=False)
        second = get_logger()
        assert first is second

    def test_reset_logger(self, tmp_path):
        reset_logger()
        first = get_logger(log_dir=tmp_path, enable_console=False)
        reset_logger()
        second = get_logger(log_dir=tmp_path, enable_console=False)
        assert first is not second
