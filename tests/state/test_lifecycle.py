"""Tests for the daily lifecycle coordinator."""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from flowscan_app.errors import StateTransitionError
from flowscan_app.persistence.position_store import InMemoryPositionStore
from flowscan_app.state import (
    DailyLifecycleCoordinator,
    ExitReason,
    LifecycleState,
    PaperPositionEngine,
)


@pytest.fixture
def sink():
    return Mock()


@pytest.fixture
def coordinator(position_engine, sink):
    return DailyLifecycleCoordinator(position_engine, alert_sink=sink)


class TestTransitions:
    """Test IDLE/ACTIVE transitions."""

    def test_open_then_close(self, coordinator, trade_date):
        assert coordinator.state is LifecycleState.IDLE

        coordinator.market_open(trade_date)
        assert coordinator.is_active
        assert coordinator.trade_date == trade_date

        coordinator.market_close()
        assert coordinator.state is LifecycleState.IDLE

    def test_double_open_raises(self, coordinator, trade_date):
        coordinator.market_open(trade_date)

        with pytest.raises(StateTransitionError):
            coordinator.market_open(trade_date)

    def test_close_while_idle_raises(self, coordinator):
        with pytest.raises(StateTransitionError):
            coordinator.market_close()


class TestMarketOpen:
    """Test start-of-day reset and recovery."""

    def test_resets_risk_state(self, coordinator, position_engine, trade_date):
        position_engine.risk_gate.record_close(-600.0)

        coordinator.market_open(trade_date)

        state = position_engine.risk_gate.state
        assert state.daily_loss_limit_breached is False
        assert state.trade_date == trade_date

    def test_drops_stale_positions(self, coordinator, position_engine, make_recommendation, trade_date):
        position_engine.open_position(make_recommendation(), trade_date - timedelta(days=1))

        coordinator.market_open(trade_date)

        assert position_engine.open_positions() == []

    def test_restores_todays_positions(self, config, make_recommendation, trade_date):
        store = InMemoryPositionStore()
        before = PaperPositionEngine(config, repository=store)
        kept = before.open_position(make_recommendation(), trade_date)
        before.open_position(make_recommendation(ticker="MSFT"), trade_date - timedelta(days=1))
        closed = before.open_position(make_recommendation(ticker="NVDA"), trade_date)
        before.close_position(closed, 101.0, ExitReason.TARGET_HIT)

        after = PaperPositionEngine(config, repository=store)
        restored = DailyLifecycleCoordinator(after).market_open(trade_date)

        assert restored == 1
        assert [p.id for p in after.open_positions()] == [kept]
        assert after.get_position(kept).target_price == 101.8

    def test_repository_failure_is_logged(self, position_engine, trade_date):
        repository = Mock()
        repository.load_active_positions.side_effect = OSError("unavailable")
        coordinator = DailyLifecycleCoordinator(position_engine, repository)

        assert coordinator.market_open(trade_date) == 0
        assert coordinator.is_active


class TestMarketClose:
    """Test forced closes and the recap."""

    def test_close_emits_recap(self, coordinator, position_engine, make_recommendation, sink, trade_date):
        coordinator.market_open(trade_date)
        position_engine.open_position(make_recommendation(), trade_date)
        position_engine.evaluate_tick({"AAPL": 100.5})

        summary = coordinator.market_close()

        assert summary.total_trades == 1
        assert summary.exit_reasons[ExitReason.MARKET_CLOSE.value] == 1
        assert summary.total_pnl_dollars == 37.5

        payload = sink.call_args[0][0]
        assert payload["event"] == "daily_recap"
        assert payload["trade_date"] == trade_date.isoformat()
        assert payload["total_trades"] == 1

    def test_close_resets_day(self, coordinator, position_engine, make_recommendation, trade_date):
        coordinator.market_open(trade_date)
        position_engine.open_position(make_recommendation(), trade_date)
        position_engine.evaluate_tick({"AAPL": 98.8})

        coordinator.market_close()

        assert position_engine.all_positions() == []
        assert position_engine.closed_trades == []
        assert position_engine.risk_gate.state.consecutive_loss_count == 0

    def test_empty_day(self, coordinator, sink, trade_date):
        coordinator.market_open(trade_date)

        summary = coordinator.market_close()

        assert summary.total_trades == 0
        assert summary.win_rate == 0.0
        assert set(summary.exit_reasons) == {r.value for r in ExitReason}
        sink.assert_called_once()

    def test_recap_includes_trades_closed_before_restart(self, config, make_recommendation, trade_date):
        store = InMemoryPositionStore()
        before = PaperPositionEngine(config, repository=store)
        before.open_position(make_recommendation(), trade_date)
        earlier = before.open_position(make_recommendation(ticker="NVDA"), trade_date)
        before.close_position(earlier, 101.0, ExitReason.TARGET_HIT)

        after = PaperPositionEngine(config, repository=store)
        coordinator = DailyLifecycleCoordinator(after, alert_sink=Mock())
        coordinator.market_open(trade_date)

        summary = coordinator.market_close({"AAPL": 100.5})

        assert summary.total_trades == 2
        assert summary.winners == 2
        assert summary.exit_reasons[ExitReason.TARGET_HIT.value] == 1
        assert summary.exit_reasons[ExitReason.MARKET_CLOSE.value] == 1
        assert summary.total_pnl_dollars == 112.5

    def test_recap_survives_unreadable_history(self, position_engine, make_recommendation, trade_date):
        repository = Mock()
        repository.load_active_positions.return_value = []
        repository.get_positions_by_date.side_effect = OSError("unavailable")
        coordinator = DailyLifecycleCoordinator(position_engine, repository)
        coordinator.market_open(trade_date)
        position_engine.open_position(make_recommendation(), trade_date)

        summary = coordinator.market_close({"AAPL": 100.5})

        assert summary.total_trades == 1
        assert summary.total_pnl_dollars == 37.5
