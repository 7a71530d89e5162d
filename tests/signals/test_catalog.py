"""Tests for raw detection classification."""

import pytest

from flowscan_app.errors import InvalidInputError, MalformedSignalError
from flowscan_app.signals import (
    BlockTradeSignal,
    CrossDirection,
    Direction,
    MomentumSurgeSignal,
    RelativeStrengthSignal,
    SignalCatalog,
    SignalType,
    UnknownSignal,
    VolumeSpikeSignal,
    VwapCrossSignal,
    parse_direction,
)


@pytest.fixture
def catalog():
    return SignalCatalog()


class TestClassify:
    """Test SignalCatalog.classify."""

    def test_volume_spike(self, catalog):
        signal = catalog.classify({
            "type": "volume_spike",
            "ticker": "nvda",
            "price": "120.5",
            "rvol": 6,
            "timestamp_ms": 1718200000000,
        })

        assert isinstance(signal, VolumeSpikeSignal)
        assert signal.signal_type is SignalType.VOLUME_SPIKE
        assert signal.ticker == "NVDA"
        assert signal.price == 120.5
        assert signal.rvol == 6.0
        assert signal.timestamp_ms == 1718200000000

    def test_camel_case_aliases(self, catalog):
        signal = catalog.classify({
            "type": "momentum_surge",
            "ticker": "AMD",
            "price": 150.0,
            "priceChangePercent": -3.2,
            "timestampMs": 1718200000000,
        })

        assert isinstance(signal, MomentumSurgeSignal)
        assert signal.price_change_percent == -3.2
        assert signal.implied_direction() is Direction.BEARISH

    def test_block_trade_infers_large_block(self, catalog):
        small = catalog.classify({"type": "block_trade", "ticker": "A", "price": 10, "trade_value": 600_000})
        huge = catalog.classify({"type": "block_trade", "ticker": "A", "price": 10, "tradeValue": 2_500_000})

        assert isinstance(huge, BlockTradeSignal)
        assert small.is_large_block is False
        assert huge.is_large_block is True

    def test_explicit_large_block_flag_wins(self, catalog):
        signal = catalog.classify({
            "type": "block_trade", "ticker": "A", "price": 10,
            "trade_value": 600_000, "isLargeBlock": "true",
        })
        assert signal.is_large_block is True

    def test_relative_strength_infers_outperformance(self, catalog):
        signal = catalog.classify({
            "type": "relative_strength", "ticker": "XLE", "price": 90, "relative_strength": 1.4,
        })

        assert isinstance(signal, RelativeStrengthSignal)
        assert signal.is_outperforming is True

    def test_vwap_cross_direction_is_not_a_bias(self, catalog):
        signal = catalog.classify({
            "type": "vwap_cross", "ticker": "SPY", "price": 500, "vwap": 499.5, "direction": "below",
        })

        assert isinstance(signal, VwapCrossSignal)
        assert signal.cross_direction is CrossDirection.BELOW
        assert signal.direction is None
        assert signal.implied_direction() is Direction.BEARISH

    def test_bias_sets_direction(self, catalog):
        signal = catalog.classify({
            "type": "new_high", "ticker": "META", "price": 480, "bias": "short",
        })
        assert signal.direction is Direction.BEARISH

    def test_unknown_type(self, catalog):
        signal = catalog.classify({"type": "halt_resume", "ticker": "GME", "price": 25})

        assert isinstance(signal, UnknownSignal)
        assert signal.signal_type is SignalType.UNKNOWN
        assert signal.raw_type == "halt_resume"

    def test_signal_instances_pass_through(self, catalog):
        signal = VolumeSpikeSignal(ticker="AAPL", price=190.0, rvol=4.0)
        assert catalog.classify(signal) is signal


class TestClassifyRejections:
    """Test malformed and invalid detections."""

    def test_missing_price(self, catalog):
        with pytest.raises(MalformedSignalError) as exc_info:
            catalog.classify({"type": "volume_spike", "ticker": "AAPL", "rvol": 4})
        assert exc_info.value.missing_fields == ["price"]

    def test_missing_type_field(self, catalog):
        with pytest.raises(MalformedSignalError) as exc_info:
            catalog.classify({"type": "gap", "ticker": "AAPL", "price": 190})
        assert "gap_percent" in exc_info.value.missing_fields

    def test_unreadable_number(self, catalog):
        with pytest.raises(MalformedSignalError):
            catalog.classify({"type": "volume_spike", "ticker": "AAPL", "price": 190, "rvol": "lots"})

    def test_non_numeric_price(self, catalog):
        with pytest.raises(MalformedSignalError):
            catalog.classify({"type": "gap", "ticker": "AAPL", "price": "n/a", "gap_percent": 2})

    @pytest.mark.parametrize("price", [0, -12.5])
    def test_non_positive_price(self, catalog, price):
        with pytest.raises(InvalidInputError) as exc_info:
            catalog.classify({"type": "new_low", "ticker": "AAPL", "price": price})
        assert exc_info.value.field == "price"
        assert exc_info.value.recoverable is True

    def test_non_mapping(self, catalog):
        with pytest.raises(MalformedSignalError):
            catalog.classify(["volume_spike", "AAPL"])


class TestParseDirection:
    """Test loose direction labels."""

    @pytest.mark.parametrize("label,expected", [
        ("bullish", Direction.BULLISH),
        ("LONG", Direction.BULLISH),
        ("call", Direction.BULLISH),
        ("bear", Direction.BEARISH),
        (" put ", Direction.BEARISH),
    ])
    def test_aliases(self, label, expected):
        assert parse_direction(label) is expected

    def test_unrecognised(self):
        assert parse_direction("sideways") is None
        assert parse_direction(None) is None
