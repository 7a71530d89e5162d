"""Pytest configuration and shared fixtures."""

from datetime import date
from typing import Any, Callable

import pytest

from flowscan_app.config.defaults import DefaultConfig, get_default_config
from flowscan_app.recommendation.models import (
    ActionTier,
    ExpectedPnL,
    LeverageSource,
    Recommendation,
)
from flowscan_app.signals.models import Direction
from flowscan_app.state.positions import PaperPositionEngine
from flowscan_app.state.risk import RiskGate

# A Wednesday, so short-dated expirations do not roll over a weekend
TRADE_DATE = date(2024, 6, 12)


@pytest.fixture
def trade_date() -> date:
    return TRADE_DATE


@pytest.fixture
def config() -> DefaultConfig:
    """Built-in defaults, independent of any YAML on disk."""
    return get_default_config()


@pytest.fixture
def risk_gate(config: DefaultConfig) -> RiskGate:
    return RiskGate(config.risk)


@pytest.fixture
def position_engine(config: DefaultConfig, risk_gate: RiskGate) -> PaperPositionEngine:
    return PaperPositionEngine(config, risk_gate)


@pytest.fixture
def make_recommendation() -> Callable[..., Recommendation]:
    """Factory for recommendations with strong-tier targets around an entry of 100."""

    def _make(**overrides: Any) -> Recommendation:
        values: dict[str, Any] = {
            "ticker": "AAPL",
            "direction": Direction.BULLISH,
            "confidence_score": 70,
            "action_tier": ActionTier.STRONG,
            "entry_price": 100.0,
            "partial_target_price": 100.9,
            "target_price": 101.8,
            "stop_price": 98.8,
            "risk_reward_ratio": 1.5,
            "option_suggestion": None,
            "expected_pnl": ExpectedPnL(
                gain_percent=6.75,
                loss_percent=4.5,
                gain_dollars=135.0,
                loss_dollars=90.0,
                leverage_source=LeverageSource.FIXED,
            ),
            "leverage_multiplier": 3.75,
        }
        if overrides.get("direction") is Direction.BEARISH:
            values.update(partial_target_price=99.1, target_price=98.2, stop_price=101.2)
        values.update(overrides)
        return Recommendation(**values)

    return _make
