"""Unit tests for structured logging configuration."""

import structlog

from recordwatch.core.config import Settings
from recordwatch.core.logging import (
    LoggingContext,
    add_correlation_id,
    configure_logging,
    get_logger,
    rename_message_field,
)


class TestProcessors:
    """Tests for the custom structlog processors."""

    def test_correlation_id_added_when_absent(self) -> None:
        """Test that a correlation ID is generated for unbound entries."""
        event = add_correlation_id(None, "info", {"event": "x"})

        assert event["correlation_id"].startswith("cid_")

    def test_correlation_id_kept_when_bound(self) -> None:
        """Test that an existing correlation ID is left alone."""
        event = add_correlation_id(None, "info", {"correlation_id": "cid_fixed"})

        assert event["correlation_id"] == "cid_fixed"

    def test_event_renamed_to_message(self) -> None:
        """Test that 'event' becomes 'message'."""
        assert rename_message_field(None, "info", {"event": "hello"}) == {"message": "hello"}


class TestLoggingContext:
    """Tests for LoggingContext."""

    def test_binds_and_restores_context(self) -> None:
        """Test that context values exist only inside the scope."""
        with LoggingContext(tick=3):
            assert structlog.contextvars.get_contextvars()["tick"] == 3
            with LoggingContext(tick=4):
                assert structlog.contextvars.get_contextvars()["tick"] == 4
            assert structlog.contextvars.get_contextvars()["tick"] == 3

        assert "tick" not in structlog.contextvars.get_contextvars()


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_json_output(self, capsys) -> None:
        """Test that production settings render JSON to stderr."""
        configure_logging(Settings(_env_file=None, environment="production", log_format="json"))

        get_logger("tests").info("Something happened", records=2)

        err = capsys.readouterr().err
        assert '"message": "Something happened"' in err
        assert '"records": 2' in err

    def test_level_filters(self, capsys) -> None:
        """Test that entries below the configured level are dropped."""
        configure_logging(
            Settings(_env_file=None, environment="production", log_level="ERROR")
        )

        get_logger("tests").info("Hidden")

        assert "Hidden" not in capsys.readouterr().err
