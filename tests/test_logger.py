"""
Tests for logger functionality.
"""

import threading

import pytest
from grantmatch.logger import StructuredLogger, get_logger, reset_logger


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
        assert logger.metrics["loads_attempted"] == 0
        assert logger.metrics["match_requests"] == 0

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
        logger.critical("Critical message")

    def test_log_with_context(self, tmp_path):
        """Context kwargs are appended as JSON."""
        logger = StructuredLogger(
            name="test-context",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.info("Catalog loaded", source="grants.db", count=5)

        content = next(tmp_path.glob("*.log")).read_text()
        assert '"source": "grants.db"' in content
        assert '"count": 5' in content

    def test_load_metrics(self, tmp_path):
        """Load metrics should be tracked correctly."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.record_load_attempt()
        logger.record_load_success(12)
        logger.record_skipped_record("malformed")
        logger.record_skipped_record("duplicate_id")
        logger.record_skipped_record("malformed")

        logger.record_load_attempt()
        logger.record_load_failure("CatalogUnavailable")

        metrics = logger.get_metrics()

        assert metrics["loads_attempted"] == 2
        assert metrics["loads_successful"] == 1
        assert metrics["loads_failed"] == 1
        assert metrics["records_loaded"] == 12
        assert metrics["records_skipped"] == 3
        assert metrics["skipped_by_reason"] == {"malformed": 2, "duplicate_id": 1}
        assert metrics["errors_by_type"]["CatalogUnavailable"] == 1

    def test_success_rate_calculation(self, tmp_path):
        """Success rate should be calculated correctly."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        # 3 attempts, 2 successes = 66.7% success rate
        for _ in range(3):
            logger.record_load_attempt()

        logger.record_load_success(1)
        logger.record_load_success(1)

        metrics = logger.get_metrics()
        assert metrics["load_success_rate"] == pytest.approx(0.667, rel=0.01)

    def test_no_success_rate_without_attempts(self, tmp_path):
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)
        assert "load_success_rate" not in logger.get_metrics()

    def test_match_metrics(self, tmp_path):
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)

        logger.record_match_request(5)
        logger.record_match_request(0)

        metrics = logger.get_metrics()
        assert metrics["match_requests"] == 2
        assert metrics["results_served"] == 5
        assert metrics["empty_responses"] == 1

    def test_concurrent_match_metrics(self, tmp_path):
        """Counters stay exact when many request threads record at once."""
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)

        def serve():
            for _ in range(500):
                logger.record_match_request(2)
                logger.record_error("InvalidOptions")

        threads = [threading.Thread(target=serve) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        metrics = logger.get_metrics()
        assert metrics["match_requests"] == 4000
        assert metrics["results_served"] == 8000
        assert metrics["errors_by_type"] == {"InvalidOptions": 4000}

    def test_metrics_snapshot_is_detached(self, tmp_path):
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)
        snapshot = logger.get_metrics()
        logger.record_error("NoSnapshotLoaded")
        assert snapshot["errors_by_type"] == {}

    def test_metrics_summary(self, tmp_path):
        logger = StructuredLogger(name="test-summary", log_dir=tmp_path, enable_console=False)
        logger.record_load_attempt()
        logger.record_load_success(3)
        logger.record_error("InvalidProfile")

        logger.log_metrics_summary()

        content = next(tmp_path.glob("*.log")).read_text()
        assert "Catalog loads: 1/1 (100.0% success)" in content
        assert "InvalidProfile: 1" in content

    def test_log_file_creation(self, tmp_path):
        """Log file should be created in specified directory."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.info("Test message")

        log_files = list(tmp_path.glob("grantmatch_*.log"))
        assert len(log_files) == 1

        log_content = log_files[0].read_text()
        assert "Test message" in log_content


class TestGlobalLogger:
    """Test global logger singleton."""

    def test_get_logger_singleton(self, tmp_path):
        """get_logger should return same instance."""
        reset_logger()

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger2 = get_logger()

        assert logger1 is logger2

    def test_reset_logger(self, tmp_path):
        """reset_logger should create new instance."""
        reset_logger()

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger1.record_load_attempt()

        reset_logger()

        logger2 = get_logger(log_dir=tmp_path, enable_console=False)

        assert logger2.metrics["loads_attempted"] == 0

    def test_level_and_dir_from_env(self, tmp_path, monkeypatch):
        reset_logger()
        monkeypatch.setenv("GRANTMATCH_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("GRANTMATCH_LOG_DIR", str(tmp_path / "env-logs"))

        logger = get_logger(enable_console=False)
        logger.info("hidden")
        logger.warning("shown")

        content = next((tmp_path / "env-logs").glob("*.log")).read_text()
        assert "shown" in content
        assert "hidden" not in content
        reset_logger()
