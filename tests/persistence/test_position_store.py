"""Tests for paper position persistence."""

from datetime import timedelta
from unittest.mock import patch

import pytest

from flowscan_app.persistence.position_store import (
    InMemoryPositionStore,
    SQLitePositionStore,
    position_from_dict,
)
from flowscan_app.recommendation.models import OptionContractSuggestion, OptionType
from flowscan_app.state import ExitReason, PaperPositionEngine, PositionStatus


@pytest.fixture
def store(tmp_path):
    return SQLitePositionStore(str(tmp_path / "positions.db"))


@pytest.fixture
def option(trade_date):
    return OptionContractSuggestion(
        option_type=OptionType.CALL,
        strike=102.5,
        expiration_date=trade_date + timedelta(days=2),
        days_to_expiration=2,
        estimated_premium=0.42,
        suggested_contracts=47,
    )


class TestSQLitePositionStore:
    """Test the SQLite repository."""

    def test_round_trip(self, store, config, make_recommendation, option, trade_date):
        engine = PaperPositionEngine(config, repository=store)
        position_id = engine.open_position(make_recommendation(option_suggestion=option), trade_date)
        engine.evaluate_tick({"AAPL": 101.6})

        loaded = store.get_position(position_id)

        assert loaded.ticker == "AAPL"
        assert loaded.trade_date == trade_date
        assert loaded.trailing_stop_price == 100.58
        assert loaded.partial_alert_fired is True
        assert loaded.option_details == option
        assert loaded.created_at == engine.get_position(position_id).created_at

    def test_active_positions_exclude_closed_and_other_days(self, store, config, make_recommendation,
                                                            trade_date):
        engine = PaperPositionEngine(config, repository=store)
        open_id = engine.open_position(make_recommendation(), trade_date)
        closed_id = engine.open_position(make_recommendation(ticker="MSFT"), trade_date)
        engine.open_position(make_recommendation(ticker="NVDA"), trade_date - timedelta(days=1))
        engine.close_position(closed_id, 98.8, ExitReason.STOP_LOSS)

        active = store.load_active_positions(trade_date)

        assert [p.id for p in active] == [open_id]
        closed = store.get_position(closed_id)
        assert closed.status is PositionStatus.CLOSED
        assert closed.exit_reason is ExitReason.STOP_LOSS
        assert closed.pnl_dollars == -90.0
        assert len(store.get_positions_by_date(trade_date)) == 2

    def test_stats(self, store, config, make_recommendation, trade_date):
        engine = PaperPositionEngine(config, repository=store)
        engine.open_position(make_recommendation(), trade_date)

        stats = store.get_stats()

        assert stats["total_positions"] == 1
        assert stats["positions_by_status"] == {"open": 1}

    def test_unknown_position(self, store):
        assert store.get_position("missing") is None

    def test_save_failure_returns_false(self, store, config, make_recommendation, trade_date):
        engine = PaperPositionEngine(config)
        position = engine.get_position(engine.open_position(make_recommendation(), trade_date))

        with patch.object(store, "_get_connection", side_effect=OSError("disk full")):
            assert store.save(position) is False


class TestInMemoryPositionStore:
    """Test the dict-backed repository."""

    def test_save_and_load(self, config, make_recommendation, trade_date):
        store = InMemoryPositionStore()
        engine = PaperPositionEngine(config, repository=store)
        position_id = engine.open_position(make_recommendation(), trade_date)

        assert store.get_position(position_id).entry_price == 100.0
        assert [p.id for p in store.load_active_positions(trade_date)] == [position_id]
        assert store.load_active_positions(trade_date + timedelta(days=1)) == []

    def test_position_from_dict_restores_enums(self, config, make_recommendation, trade_date):
        engine = PaperPositionEngine(config)
        position_id = engine.open_position(make_recommendation(), trade_date)
        engine.close_position(position_id, 101.8, ExitReason.TARGET_HIT)
        position = engine.get_position(position_id)

        restored = position_from_dict(position.to_dict())

        assert restored.status is PositionStatus.CLOSED
        assert restored.exit_reason is ExitReason.TARGET_HIT
        assert restored.closed_at == position.closed_at
        assert restored.direction is position.direction


class TestHistoricalPerformance:
    """Test the per-day rollup of closed positions."""

    @pytest.fixture(params=["sqlite", "memory"])
    def history_store(self, request, tmp_path):
        if request.param == "sqlite":
            return SQLitePositionStore(str(tmp_path / "history.db"))
        return InMemoryPositionStore()

    def test_rollup_by_day(self, history_store, config, make_recommendation, trade_date):
        engine = PaperPositionEngine(config, repository=history_store)
        yesterday = trade_date - timedelta(days=1)

        msft = engine.open_position(make_recommendation(ticker="MSFT"), yesterday)
        engine.close_position(msft, 101.8, ExitReason.TARGET_HIT)
        aapl = engine.open_position(make_recommendation(ticker="AAPL"), trade_date)
        engine.close_position(aapl, 101.8, ExitReason.TARGET_HIT)
        nvda = engine.open_position(make_recommendation(ticker="NVDA"), trade_date)
        engine.close_position(nvda, 98.8, ExitReason.STOP_LOSS)
        engine.open_position(make_recommendation(ticker="AMD"), trade_date)
        old = engine.open_position(make_recommendation(ticker="TSLA"), trade_date - timedelta(days=10))
        engine.close_position(old, 101.8, ExitReason.TARGET_HIT)

        history = history_store.get_historical_performance(days=7, as_of=trade_date)

        assert [day.trade_date for day in history] == [trade_date, yesterday]
        today = history[0]
        assert today.total_trades == 2
        assert today.winners == 1
        assert today.losers == 1
        assert today.win_rate == 50.0
        assert today.total_pnl_dollars == 45.0
        assert today.average_stock_move_percent == 0.3
        assert history[1].total_pnl_dollars == 135.0
        assert history[1].to_dict()["trade_date"] == yesterday.isoformat()

    def test_empty_history(self, history_store, trade_date):
        assert history_store.get_historical_performance(as_of=trade_date) == []


class TestRecommendationContext:
    """Test that factors and warnings survive persistence."""

    def test_factors_and_warnings_round_trip(self, store, config, make_recommendation, trade_date):
        engine = PaperPositionEngine(config, repository=store)
        position_id = engine.open_position(make_recommendation(
            factors=("Opening drive", "Volume 5.0x average"),
            warnings=("Earnings in 2 days",),
        ), trade_date)

        loaded = store.get_position(position_id)

        assert loaded.factors == ("Opening drive", "Volume 5.0x average")
        assert loaded.warnings == ("Earnings in 2 days",)
