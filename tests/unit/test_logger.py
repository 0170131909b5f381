"""Unit tests for logging configuration."""

import logging

import pytest
import structlog

from src.buildgraph.observability.logger import (
    TRACE,
    VERBOSE,
    LogContext,
    _context_processor,
    add_context,
    clear_context,
    configure_logging,
    current_context,
    get_log_level,
)


@pytest.fixture(autouse=True)
def reset_logging():
    """Leave logging at its defaults for other tests."""
    yield
    logging.basicConfig(handlers=[logging.NullHandler()], level=logging.WARNING, force=True)
    structlog.reset_defaults()


class TestLogLevels:
    """Test custom levels."""

    def test_custom_level_names(self):
        assert logging.getLevelName(TRACE) == "TRACE"
        assert logging.getLevelName(VERBOSE) == "VERBOSE"

    @pytest.mark.parametrize(
        "name,level",
        [
            ("trace", TRACE),
            ("DEBUG", logging.DEBUG),
            ("verbose", VERBOSE),
            ("INFO", logging.INFO),
            ("ERROR", logging.ERROR),
            ("nonsense", logging.INFO),
        ],
    )
    def test_get_log_level(self, name, level):
        assert get_log_level(name) == level


class TestLoggingConfiguration:
    """Test configure_logging."""

    @pytest.mark.parametrize("level", ["TRACE", "DEBUG", "VERBOSE", "INFO", "WARNING", "ERROR"])
    def test_root_level(self, level):
        configure_logging(level=level)

        assert logging.getLogger().level == get_log_level(level)

    def test_json_logs(self):
        configure_logging(json_logs=True)

        assert structlog.is_configured()

    def test_log_file(self, tmp_path):
        """Events are also written to the log file."""
        log_file = tmp_path / "logs" / "buildgraph.log"
        configure_logging(level="INFO", json_logs=True, log_file=log_file)

        structlog.get_logger("buildgraph.test").info("file event", package="unix")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_file.read_text()
        assert "file event" in content
        assert '"package": "unix"' in content

    def test_log_filter(self, tmp_path):
        """Only the named components log below WARNING."""
        log_file = tmp_path / "filtered.log"
        configure_logging(level="DEBUG", json_logs=True, log_file=log_file, log_filter="sorter")

        structlog.get_logger("buildgraph.dependency.sorter").debug("sorter detail")
        structlog.get_logger("buildgraph.core.loader").info("loader detail")
        structlog.get_logger("buildgraph.core.loader").warning("loader warning")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_file.read_text()
        assert "sorter detail" in content
        assert "loader detail" not in content
        assert "loader warning" in content

    def test_log_filter_matches_whole_segments(self, tmp_path):
        """A component does not match part of a segment."""
        log_file = tmp_path / "filtered.log"
        configure_logging(level="DEBUG", json_logs=True, log_file=log_file, log_filter="sort")

        structlog.get_logger("buildgraph.dependency.sorter").info("sorter detail")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "sorter detail" not in log_file.read_text()


class TestLogContext:
    """Test context binding."""

    def test_context_manager_scopes_values(self):
        with LogContext(stage="sort"):
            assert current_context()["stage"] == "sort"
            with LogContext(package="unix"):
                assert current_context() == {"stage": "sort", "package": "unix"}
            assert "package" not in current_context()

        assert "stage" not in current_context()

    def test_processor_injects_without_overriding(self):
        with LogContext(stage="resolve", package="ctx"):
            event = _context_processor(None, "info", {"event": "x", "package": "explicit"})

        assert event == {"event": "x", "package": "explicit", "stage": "resolve"}

    def test_add_and_clear_context(self):
        with LogContext():
            add_context(manifest="packages.yaml")
            assert current_context()["manifest"] == "packages.yaml"

            clear_context("manifest")
            clear_context("absent")
            assert "manifest" not in current_context()
