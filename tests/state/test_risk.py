"""Tests for the daily risk circuit breakers."""

from datetime import date

from flowscan_app.config.defaults import RiskParams
from flowscan_app.signals.models import Direction
from flowscan_app.state import ExitReason, PaperPositionEngine, RiskGate


class TestConsecutiveLosses:
    """Test the losing-streak breaker."""

    def test_three_losses_block_opens(self, position_engine, make_recommendation):
        for ticker in ("AAPL", "MSFT", "NVDA"):
            position_engine.open_position(make_recommendation(ticker=ticker))
            position_engine.evaluate_tick({ticker: 98.8})

        assert position_engine.risk_gate.state.consecutive_loss_count == 3
        assert position_engine.can_open_new_position() is False
        assert position_engine.open_position(make_recommendation(ticker="AMD")) is None

    def test_win_resets_streak(self):
        gate = RiskGate(RiskParams())
        gate.record_close(-50.0)
        gate.record_close(-50.0)

        state = gate.record_close(25.0)

        assert state.consecutive_loss_count == 0
        assert gate.can_open_new_position() is True

    def test_breakeven_counts_as_loss(self):
        gate = RiskGate()
        assert gate.record_close(0.0).consecutive_loss_count == 1


class TestDailyLossLimit:
    """Test the cumulative realized loss breaker."""

    def test_limit_reached_exactly(self, config, make_recommendation):
        gate = RiskGate(RiskParams(max_daily_loss_dollars=500.0, max_consecutive_losses=10))
        engine = PaperPositionEngine(config, gate)

        # Stock moves of -2%, -2% and -1% at 5x leverage on $2000
        breached_after_close = []
        for ticker, price in (("AAPL", 98.0), ("MSFT", 98.0), ("NVDA", 99.0)):
            engine.open_position(make_recommendation(ticker=ticker, leverage_multiplier=5.0,
                                                     stop_price=99.0))
            engine.close_position(engine.open_positions()[0].id, price,
                                  ExitReason.STOP_LOSS)
            breached_after_close.append(gate.state.daily_loss_limit_breached)

        state = gate.state
        assert breached_after_close == [False, False, True]
        assert state.cumulative_realized_pnl == -500.0
        assert state.daily_loss_limit_breached is True
        assert engine.can_open_new_position() is False

    def test_limit_reached_through_uneven_cents(self):
        """-433.09, -20.02 and -46.89 sum to exactly -500.00."""
        gate = RiskGate(RiskParams(max_daily_loss_dollars=500.0, max_consecutive_losses=10))

        gate.record_close(-433.09)
        assert gate.record_close(-20.02).daily_loss_limit_breached is False

        state = gate.record_close(-46.89)

        assert state.cumulative_realized_pnl == -500.0
        assert state.daily_loss_limit_breached is True
        assert gate.can_open_new_position() is False

    def test_breach_is_sticky(self):
        gate = RiskGate(RiskParams(max_daily_loss_dollars=100.0, max_consecutive_losses=10))
        gate.record_close(-150.0)

        gate.record_close(400.0)

        assert gate.state.cumulative_realized_pnl == 250.0
        assert gate.state.daily_loss_limit_breached is True
        assert gate.can_open_new_position("AAPL") is False

    def test_reset_clears_breakers(self):
        gate = RiskGate(RiskParams(max_daily_loss_dollars=100.0))
        gate.record_close(-150.0)

        gate.reset(date(2024, 6, 13))

        assert gate.state.daily_loss_limit_breached is False
        assert gate.state.trade_date == date(2024, 6, 13)
        assert gate.can_open_new_position() is True

    def test_state_is_a_snapshot(self):
        gate = RiskGate()
        snapshot = gate.state
        snapshot.consecutive_loss_count = 99

        assert gate.state.consecutive_loss_count == 0

    def test_bearish_losses_count(self, position_engine, make_recommendation):
        position_engine.open_position(make_recommendation(direction=Direction.BEARISH))
        position_engine.evaluate_tick({"AAPL": 101.2})

        assert position_engine.risk_gate.state.consecutive_loss_count == 1
