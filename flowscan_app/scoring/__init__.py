"""Heat score aggregation over data-driven rule tables"""

from .context import (
    BlockPattern,
    BlockTradeAdjustment,
    EarningsProximity,
    MarketAlignment,
    OrderFlowAdjustment,
    ScoringContext,
    SectorAdjustment,
    TradingPhase,
    VolatilityRegime,
    VolumeConfirmation,
)
from .heat_score import BreakdownEntry, ChannelTier, HeatScoreAggregator, HeatScoreResult
from .ticker_state import SignalMemory, TickerState

__all__ = [
    "HeatScoreAggregator",
    "HeatScoreResult",
    "BreakdownEntry",
    "ChannelTier",
    "ScoringContext",
    "TradingPhase",
    "BlockPattern",
    "VolumeConfirmation",
    "SectorAdjustment",
    "OrderFlowAdjustment",
    "BlockTradeAdjustment",
    "VolatilityRegime",
    "EarningsProximity",
    "MarketAlignment",
    "SignalMemory",
    "TickerState",
]
