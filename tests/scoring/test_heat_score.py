"""Tests for heat score aggregation and routing."""

import pytest

from flowscan_app.scoring import (
    BlockPattern,
    BlockTradeAdjustment,
    ChannelTier,
    EarningsProximity,
    HeatScoreAggregator,
    MarketAlignment,
    OrderFlowAdjustment,
    ScoringContext,
    SectorAdjustment,
    SignalMemory,
    TradingPhase,
    VolatilityRegime,
    VolumeConfirmation,
)
from flowscan_app.scoring.rules import round_half_up
from flowscan_app.signals import (
    BlockTradeSignal,
    BreakoutSignal,
    Direction,
    MomentumSurgeSignal,
    NewLowSignal,
    UnknownSignal,
    VolumeSpikeSignal,
)

NOW_MS = 1_718_200_000_000


@pytest.fixture
def aggregator(config):
    return HeatScoreAggregator(config)


class TestBaseRules:
    """Test base points per signal type."""

    def test_volume_spike_without_adjustments(self, aggregator):
        """rvol 6 with no context scores exactly the extreme volume points."""
        result = aggregator.score(VolumeSpikeSignal(ticker="NVDA", price=120.0, rvol=6.0))

        assert result.heat_score == 30
        assert result.raw_score == 30
        assert len(result.breakdown) == 1
        assert result.breakdown[0].points == 30
        assert result.meets_threshold is False
        assert result.channel_tier is ChannelTier.NONE

    def test_volume_spike_lower_tier(self, aggregator):
        result = aggregator.score(VolumeSpikeSignal(ticker="NVDA", price=120.0, rvol=3.5))
        assert result.heat_score == 20

    def test_below_every_tier_scores_zero(self, aggregator):
        result = aggregator.score(VolumeSpikeSignal(ticker="NVDA", price=120.0, rvol=2.0))

        assert result.heat_score == 0
        assert result.breakdown[0].points == 0

    @pytest.mark.parametrize("change,expected", [(6.0, 25), (-5.0, 25), (2.5, 15), (-2.0, 15), (1.0, 0)])
    def test_momentum_uses_absolute_change(self, aggregator, change, expected):
        signal = MomentumSurgeSignal(ticker="AMD", price=150.0, price_change_percent=change)
        assert aggregator.score(signal).heat_score == expected

    def test_block_trade_tiers(self, aggregator):
        huge = BlockTradeSignal(ticker="A", price=10.0, trade_value=2e6, is_large_block=True)
        large = BlockTradeSignal(ticker="A", price=10.0, trade_value=6e5)

        assert aggregator.score(huge).heat_score == 30
        assert aggregator.score(large).heat_score == 20

    def test_unknown_type_scores_zero(self, aggregator):
        result = aggregator.score(UnknownSignal(ticker="GME", price=25.0, raw_type="halt_resume"))

        assert result.heat_score == 0
        assert "halt_resume" in result.breakdown[0].label


class TestAdjustments:
    """Test contextual adjustment groups."""

    def test_absent_context_adds_nothing(self, aggregator):
        result = aggregator.score(BreakoutSignal(ticker="AAPL", price=190.0, resistance=188.0))
        assert [e.points for e in result.breakdown] == [20]

    def test_volume_confirmation(self, aggregator):
        signal = BreakoutSignal(ticker="AAPL", price=190.0, resistance=188.0)

        strong = aggregator.score(signal, ScoringContext(volume_confirmation=VolumeConfirmation(5.5)))
        weak = aggregator.score(signal, ScoringContext(volume_confirmation=VolumeConfirmation(1.2)))

        assert strong.heat_score == 40
        assert weak.heat_score == 20
        assert weak.breakdown[1].points == 0

    def test_volume_confirmation_ignored_for_volume_spikes(self, aggregator):
        signal = VolumeSpikeSignal(ticker="NVDA", price=120.0, rvol=6.0)
        result = aggregator.score(signal, ScoringContext(volume_confirmation=VolumeConfirmation(6.0)))

        assert result.heat_score == 30
        assert len(result.breakdown) == 1

    @pytest.mark.parametrize("count,points", [(1, 0), (2, 15), (3, 25), (7, 25)])
    def test_repeat_activity(self, aggregator, count, points):
        signal = BreakoutSignal(ticker="AAPL", price=190.0, resistance=188.0)
        result = aggregator.score(signal, ScoringContext(repeat_signal_count=count))

        assert result.breakdown[1].points == points
        assert result.heat_score == 20 + points

    def test_repeat_count_from_memory(self, config):
        memory = SignalMemory()
        aggregator = HeatScoreAggregator(config, memory)
        memory.record_signal("AAPL", NOW_MS - 120_000)
        memory.record_signal("AAPL", NOW_MS)

        signal = BreakoutSignal(ticker="AAPL", price=190.0, resistance=188.0, timestamp_ms=NOW_MS)
        result = aggregator.score(signal)

        assert result.breakdown[1].label == "2 signals in last hour"
        assert result.heat_score == 35

    @pytest.mark.parametrize("days,points", [(0, -10), (1, -10), (3, 5), (5, 5), (9, 0)])
    def test_earnings(self, aggregator, days, points):
        signal = BreakoutSignal(ticker="AAPL", price=190.0, resistance=188.0)
        result = aggregator.score(signal, ScoringContext(earnings=EarningsProximity(days)))

        assert result.breakdown[1].points == points

    def test_order_flow_is_cumulative(self, aggregator):
        signal = BreakoutSignal(ticker="AAPL", price=190.0, resistance=188.0)
        flow = OrderFlowAdjustment(dominant_direction=Direction.BULLISH,
                                   has_significant_imbalance=True,
                                   has_absorption=True)

        result = aggregator.score(signal, ScoringContext(order_flow=flow))

        assert [e.points for e in result.breakdown] == [20, 10, 5]

    def test_order_flow_contradiction(self, aggregator):
        signal = BreakoutSignal(ticker="AAPL", price=190.0, resistance=188.0)
        flow = OrderFlowAdjustment(dominant_direction=Direction.BEARISH, has_significant_imbalance=True)

        result = aggregator.score(signal, ScoringContext(order_flow=flow))

        assert result.heat_score == 15

    def test_block_activity_tiers(self, aggregator):
        signal = BreakoutSignal(ticker="AAPL", price=190.0, resistance=188.0)

        def points(notional, pattern=None):
            ctx = ScoringContext(block_activity=BlockTradeAdjustment(notional, pattern))
            return aggregator.score(signal, ctx).heat_score - 20

        assert points(500_000) == 5
        assert points(1_000_000) == 10
        assert points(5_000_000) == 15
        assert points(100_000) == 0
        assert points(0, BlockPattern.DISTRIBUTION) == -5
        assert points(2_000_000, BlockPattern.ACCUMULATION) == 20

    @pytest.mark.parametrize("multiplier,penalty", [(1.0, 0), (0.85, -2), (0.75, -3), (0.5, -5)])
    def test_volatility_penalty_rounds_half_up(self, aggregator, multiplier, penalty):
        signal = BreakoutSignal(ticker="AAPL", price=190.0, resistance=188.0)
        ctx = ScoringContext(volatility_regime=VolatilityRegime("elevated", multiplier))

        assert aggregator.score(signal, ctx).breakdown[1].points == penalty

    @pytest.mark.parametrize("phase,points", [
        (TradingPhase.OPENING_DRIVE, 10),
        (TradingPhase.POWER_HOUR, 5),
        (TradingPhase.MIDDAY, -10),
        (TradingPhase.AFTERNOON, 0),
    ])
    def test_trading_phase(self, aggregator, phase, points):
        signal = BreakoutSignal(ticker="AAPL", price=190.0, resistance=188.0)
        result = aggregator.score(signal, ScoringContext(trading_phase=phase))

        assert result.breakdown[1].points == points

    def test_market_alignment(self, aggregator):
        signal = BreakoutSignal(ticker="AAPL", price=190.0, resistance=188.0)

        strong = aggregator.score(signal, ScoringContext(
            market_alignment=MarketAlignment(aligned=True, relative_strength=True)))
        contrary = aggregator.score(signal, ScoringContext(
            market_alignment=MarketAlignment(aligned=False, low_confidence=True)))

        assert strong.heat_score == 30
        assert contrary.heat_score == 10


class TestBounds:
    """Test clamping and that the breakdown sums to the raw score."""

    def test_score_clamped_at_100(self, aggregator):
        signal = BlockTradeSignal(ticker="TSLA", price=250.0, trade_value=2e6,
                                  is_large_block=True, direction=Direction.BULLISH)
        context = ScoringContext(
            volume_confirmation=VolumeConfirmation(6.0),
            repeat_signal_count=3,
            earnings=EarningsProximity(4),
            sector=SectorAdjustment(10, "Sector hot"),
            order_flow=OrderFlowAdjustment(Direction.BULLISH, True, True),
            block_activity=BlockTradeAdjustment(6e6, BlockPattern.ACCUMULATION),
            volatility_regime=VolatilityRegime("normal", 1.0),
            trading_phase=TradingPhase.OPENING_DRIVE,
            market_alignment=MarketAlignment(aligned=True, relative_strength=True),
        )

        result = aggregator.score(signal, context)

        assert result.raw_score == 150
        assert result.heat_score == 100
        assert sum(e.points for e in result.breakdown) == result.raw_score
        assert len(result.breakdown) == 12
        assert result.channel_tier is ChannelTier.HIGH_CONVICTION

    def test_score_clamped_at_0(self, aggregator):
        signal = NewLowSignal(ticker="INTC", price=30.0)
        context = ScoringContext(
            earnings=EarningsProximity(0),
            sector=SectorAdjustment(-20, "Sector cold"),
            trading_phase=TradingPhase.MIDDAY,
        )

        result = aggregator.score(signal, context)

        assert result.raw_score == -30
        assert result.heat_score == 0
        assert sum(e.points for e in result.breakdown) == -30

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(1.5) == 2
        assert round_half_up(0.49) == 0


class TestRouting:
    """Test channel routing thresholds."""

    @pytest.mark.parametrize("score,watchlist,tier", [
        (100, False, ChannelTier.HIGH_CONVICTION),
        (75, False, ChannelTier.HIGH_CONVICTION),
        (74, False, ChannelTier.STANDARD),
        (35, False, ChannelTier.STANDARD),
        (34, False, ChannelTier.NONE),
        (34, True, ChannelTier.WATCHLIST),
        (25, True, ChannelTier.WATCHLIST),
        (24, True, ChannelTier.NONE),
    ])
    def test_route(self, aggregator, score, watchlist, tier):
        assert aggregator.route(score, watchlist) is tier

    def test_watchlist_ticker_routed(self, aggregator):
        signal = VolumeSpikeSignal(ticker="NVDA", price=120.0, rvol=6.0)
        result = aggregator.score(signal, ScoringContext(on_watchlist=True))

        assert result.channel_tier is ChannelTier.WATCHLIST
        assert result.is_routed
        assert not result.meets_threshold
