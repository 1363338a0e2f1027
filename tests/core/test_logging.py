"""Tests for structured logging."""

import json
import logging
from pathlib import Path

import structlog

from coverplane.config.models import LoggingConfig, LogOutputConfig
from coverplane.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)


class TestRunIdCorrelation:
    """Run ID context variable tests."""

    def setup_method(self) -> None:
        """Clear run ID before each test."""
        clear_run_id()

    def test_set_and_get_run_id(self) -> None:
        """Run ID can be set and retrieved."""
        # Given
        run_id = "pass-123"

        # When
        result = set_run_id(run_id)

        # Then
        assert result == run_id
        assert get_run_id() == run_id

    def test_generates_uuid(self) -> None:
        """Set generates a UUID-based ID when none is provided."""
        rid = set_run_id()

        assert rid is not None
        assert len(rid) == 12  # uuid4().hex[:12]

    def test_clear_run_id(self) -> None:
        """Clear removes the current run ID."""
        # Given
        set_run_id("to-clear")

        # When
        clear_run_id()

        # Then
        assert get_run_id() is None


class TestLoggingConfiguration:
    """Logging configuration tests."""

    def setup_method(self) -> None:
        """Reset structlog and stdlib logging before each test."""
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()

    def teardown_method(self) -> None:
        clear_run_id()

    def test_given_file_output_when_log_then_json_lines_with_run_id(self, tmp_path: Path) -> None:
        """JSON file output carries the event, its fields and the run ID."""
        # Given
        log_file = tmp_path / "coverplane.log"
        config = LoggingConfig(
            level="INFO",
            outputs=[LogOutputConfig(format="json", destination=str(log_file))],
        )
        configure_logging(config=config)
        set_run_id("abc123")

        # When
        get_logger("pipeline").info("branches_derived", conditions=3)

        # Then
        data = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert data["event"] == "branches_derived"
        assert data["conditions"] == 3
        assert data["run_id"] == "abc123"
        assert data["logger"] == "pipeline"
        assert data["level"] == "info"
        assert "timestamp" in data

    def test_given_config_object_when_configure_then_takes_precedence(self, tmp_path: Path) -> None:
        """LoggingConfig object takes precedence over simple params."""
        # Given
        log_file = tmp_path / "test.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[LogOutputConfig(format="json", destination=str(log_file))],
        )

        # When - config's DEBUG overrides the level="ERROR" param
        configure_logging(config=config, json_format=False, level="ERROR")
        get_logger().debug("debug msg")

        # Then
        assert "debug msg" in log_file.read_text()

    def test_given_multi_output_config_when_configure_then_each_output_filters(
        self, tmp_path: Path
    ) -> None:
        """Multiple outputs receive logs according to their own levels."""
        # Given
        debug_file = tmp_path / "debug.log"
        warn_file = tmp_path / "warn.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[
                LogOutputConfig(format="json", destination=str(warn_file), level="WARNING"),
                LogOutputConfig(format="console", destination=str(debug_file)),
            ],
        )

        # When
        configure_logging(config=config)
        logger = get_logger()
        logger.debug("debug only")
        logger.warning("flow_invariant_violated")

        # Then
        warn_content = warn_file.read_text()
        assert "flow_invariant_violated" in warn_content
        assert "debug only" not in warn_content
        debug_content = debug_file.read_text()
        assert "debug only" in debug_content
        assert "flow_invariant_violated" in debug_content

    def test_given_nested_file_destination_when_configure_then_creates_parent(
        self, tmp_path: Path
    ) -> None:
        """File outputs create their parent directory."""
        log_file = tmp_path / "logs" / "deep" / "run.log"

        configure_logging(
            config=LoggingConfig(outputs=[LogOutputConfig(destination=str(log_file))])
        )

        assert log_file.parent.is_dir()
