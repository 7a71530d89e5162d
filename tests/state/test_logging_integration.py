"""Tests for structured logging of risk decisions and position transitions."""

import json
import logging

import pytest
import structlog

from flowscan_app.logging.config import (
    configure_logging,
    get_position_logger,
    get_scoring_logger,
    log_position_transition,
    log_risk_decision,
)


@pytest.fixture
def json_logs(caplog):
    """Route structlog through stdlib logging as JSON and collect the entries."""
    configure_logging(level="DEBUG", format_json=True)
    caplog.set_level(logging.DEBUG)

    def entries():
        parsed = []
        for record in caplog.records:
            message = record.getMessage()
            if message.startswith("{"):
                parsed.append(json.loads(message))
        return parsed

    yield entries
    structlog.reset_defaults()


class TestLoggingIntegration:
    """Test audit-trail logging helpers."""

    def test_position_transition(self, json_logs):
        logger = get_position_logger("tests.positions")

        log_position_transition(logger, "abc123", "AAPL", "open", "closed", "target_hit",
                                {"pnl_dollars": 135.0})

        entry = json_logs()[-1]
        assert entry["event"] == "Position transition"
        assert entry["level"] == "info"
        assert entry["logger"] == "tests.positions"
        assert entry["subsystem"] == "paper_trading"
        assert entry["audit_trail"] is True
        assert entry["from_state"] == "open"
        assert entry["to_state"] == "closed"
        assert entry["trigger"] == "target_hit"
        assert entry["context"] == {"pnl_dollars": 135.0}
        assert "timestamp" in entry

    def test_risk_rejection_is_info(self, json_logs):
        logger = get_position_logger("tests.risk")

        log_risk_decision(logger, "consecutive_losses", False, "AAPL", "3 consecutive losses")

        entry = json_logs()[-1]
        assert entry["level"] == "info"
        assert entry["gate_result"] == "FAIL"
        assert entry["ticker"] == "AAPL"
        assert "context" not in entry

    def test_risk_pass_is_debug(self, json_logs):
        logger = get_position_logger("tests.risk")

        log_risk_decision(logger, "risk_breakers", True, "*", "Within daily limits",
                          {"max_consecutive_losses": 3})

        entry = json_logs()[-1]
        assert entry["level"] == "debug"
        assert entry["gate_result"] == "PASS"
        assert entry["context"] == {"max_consecutive_losses": 3}

    def test_scoring_logger_binds_subsystem(self, json_logs):
        get_scoring_logger("tests.scoring").info("Heat score computed", heat_score=50)

        entry = json_logs()[-1]
        assert entry["subsystem"] == "scoring"
        assert entry["heat_score"] == 50

    def test_level_filtering(self, caplog):
        configure_logging(level="WARNING", format_json=True)
        caplog.set_level(logging.WARNING)
        try:
            get_position_logger("tests.filtered").info("Hidden")
            assert not [r for r in caplog.records if "Hidden" in r.getMessage()]
        finally:
            structlog.reset_defaults()
