"""
Tests for the audit logger and logging setup.
"""

import json
import logging

import pytest

from coinue.audit import AuditLogger, configure_logging
from coinue.audit.logger import CONSOLE_HANDLER_NAME


@pytest.fixture
def coinue_logger():
    """The package logger, restored to its previous state afterwards."""
    logger = logging.getLogger("coinue")
    level, handlers = logger.level, list(logger.handlers)
    # Start without a console handler bound to another test's stderr
    logger.handlers[:] = [h for h in handlers if h.get_name() != CONSOLE_HANDLER_NAME]
    yield logger
    logger.setLevel(level)
    logger.handlers[:] = handlers


def _console_handlers(logger):
    return [h for h in logger.handlers if h.get_name() == CONSOLE_HANDLER_NAME]


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_sets_level(self, coinue_logger):
        """Test the package logger takes the configured level."""
        configure_logging("DEBUG")
        assert coinue_logger.level == logging.DEBUG

    def test_attaches_one_console_handler(self, coinue_logger):
        """Test repeated calls do not duplicate output."""
        configure_logging("INFO")
        configure_logging("WARNING")
        assert len(_console_handlers(coinue_logger)) == 1
        assert coinue_logger.level == logging.WARNING

    def test_info_events_reach_stderr(self, coinue_logger, capsys):
        """Test an INFO audit event is printed as one JSON line."""
        configure_logging("INFO")
        AuditLogger().log_account_registered("alice")

        lines = [line for line in capsys.readouterr().err.splitlines() if line]
        assert len(lines) == 1
        entry = json.loads(lines[0])
        assert entry["event"] == "audit_event"
        assert entry["event_type"] == "account_registered"
        assert entry["username"] == "alice"

    def test_level_filters_events(self, coinue_logger, capsys):
        """Test events below the configured level are dropped."""
        configure_logging("WARNING")
        AuditLogger().log_account_registered("alice")
        assert capsys.readouterr().err == ""


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_event_is_recorded(self, coinue_logger, caplog):
        """Test an audit line is emitted at INFO for an info event."""
        caplog.set_level(logging.INFO, logger="coinue")
        AuditLogger().log_account_registered("alice")

        records = [r for r in caplog.records if r.name == "coinue.audit"]
        assert len(records) == 1
        assert records[0].levelno == logging.INFO
        assert "account_registered" in records[0].getMessage()

    def test_failed_login_is_a_warning(self, coinue_logger, caplog):
        """Test severities map to log levels."""
        caplog.set_level(logging.INFO, logger="coinue")
        AuditLogger().log_login("ghost", None)

        records = [r for r in caplog.records if r.name == "coinue.audit"]
        assert [r.levelno for r in records] == [logging.WARNING]

    def test_log_reports_success(self, coinue_logger, caplog):
        """Test log() returns True once the line is written."""
        from coinue.models import AuditEventBuilder

        caplog.set_level(logging.INFO, logger="coinue")
        assert AuditLogger().log(AuditEventBuilder.account_removed("alice")) is True
