"""
Contextual inputs for heat scoring.

Every member is supplied by an external detector and is independently
optional: absence means no adjustment.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..signals.models import Direction


class TradingPhase(str, Enum):
    """Intraday session phases as labelled by the market-hours collaborator."""
    PREMARKET = "premarket"
    OPENING_DRIVE = "opening_drive"
    MORNING = "morning"
    MIDDAY = "midday"
    AFTERNOON = "afternoon"
    POWER_HOUR = "power_hour"
    AFTER_HOURS = "after_hours"


class BlockPattern(str, Enum):
    ACCUMULATION = "accumulation"
    DISTRIBUTION = "distribution"


@dataclass(frozen=True)
class VolumeConfirmation:
    """Volume multiple observed alongside a non-volume signal."""
    multiple: float


@dataclass(frozen=True)
class SectorAdjustment:
    adjustment: int
    reason: str = ""


@dataclass(frozen=True)
class OrderFlowAdjustment:
    dominant_direction: Direction
    has_significant_imbalance: bool = False
    has_absorption: bool = False
    imbalance_ratio: Optional[float] = None          # Percent on the dominant side


@dataclass(frozen=True)
class BlockTradeAdjustment:
    recent_notional: float = 0.0                     # Block value in the recent window
    pattern: Optional[BlockPattern] = None


@dataclass(frozen=True)
class VolatilityRegime:
    level: str
    position_size_multiplier: float = 1.0


@dataclass(frozen=True)
class EarningsProximity:
    days_away: int                                   # 0 = today, 1 = tomorrow


@dataclass(frozen=True)
class MarketAlignment:
    """Signal direction relative to the broad index."""
    aligned: bool
    relative_strength: bool = False                  # Outperforming the index
    low_confidence: bool = False


@dataclass(frozen=True)
class ScoringContext:
    """Bundle of optional adjustments for one scoring call."""
    volume_confirmation: Optional[VolumeConfirmation] = None
    repeat_signal_count: Optional[int] = None        # None asks the signal memory
    sector: Optional[SectorAdjustment] = None
    order_flow: Optional[OrderFlowAdjustment] = None
    block_activity: Optional[BlockTradeAdjustment] = None
    volatility_regime: Optional[VolatilityRegime] = None
    earnings: Optional[EarningsProximity] = None
    trading_phase: Optional[TradingPhase] = None
    market_alignment: Optional[MarketAlignment] = None
    on_watchlist: bool = False
