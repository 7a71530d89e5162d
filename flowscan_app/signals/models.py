"""
Signal data models for detected market events.

Each detection type is its own immutable record so that scoring rules can
match on the concrete class instead of probing optional fields. Signals are
created once per detection and consumed once by the heat score aggregator.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional


class SignalType(str, Enum):
    """Detected market event types."""
    VOLUME_SPIKE = "volume_spike"
    BLOCK_TRADE = "block_trade"
    MOMENTUM_SURGE = "momentum_surge"
    BREAKOUT = "breakout"
    GAP = "gap"
    VWAP_CROSS = "vwap_cross"
    NEW_HIGH = "new_high"
    NEW_LOW = "new_low"
    RELATIVE_STRENGTH = "relative_strength"
    UNKNOWN = "unknown"


class Direction(str, Enum):
    """Trade bias."""
    BULLISH = "bullish"
    BEARISH = "bearish"

    @property
    def sign(self) -> int:
        return 1 if self is Direction.BULLISH else -1

    @classmethod
    def from_change(cls, change: float) -> "Direction":
        """Bias implied by the sign of a price change; flat counts as bullish."""
        return cls.BULLISH if change >= 0 else cls.BEARISH


@dataclass(frozen=True, kw_only=True)
class Signal:
    """Fields shared by every detected event."""
    signal_type: ClassVar[SignalType] = SignalType.UNKNOWN

    ticker: str
    price: float
    timestamp_ms: Optional[int] = None
    direction: Optional[Direction] = None

    def implied_direction(self) -> Optional[Direction]:
        """Explicit direction, or the bias the event itself implies."""
        return self.direction


@dataclass(frozen=True, kw_only=True)
class VolumeSpikeSignal(Signal):
    signal_type: ClassVar[SignalType] = SignalType.VOLUME_SPIKE

    rvol: float
    current_volume: Optional[float] = None
    avg_volume: Optional[float] = None


@dataclass(frozen=True, kw_only=True)
class BlockTradeSignal(Signal):
    signal_type: ClassVar[SignalType] = SignalType.BLOCK_TRADE

    trade_value: float
    size: Optional[float] = None
    is_large_block: bool = False                     # Above the huge-block threshold


@dataclass(frozen=True, kw_only=True)
class MomentumSurgeSignal(Signal):
    signal_type: ClassVar[SignalType] = SignalType.MOMENTUM_SURGE

    price_change_percent: float

    def implied_direction(self) -> Optional[Direction]:
        return self.direction or Direction.from_change(self.price_change_percent)


@dataclass(frozen=True, kw_only=True)
class BreakoutSignal(Signal):
    signal_type: ClassVar[SignalType] = SignalType.BREAKOUT

    resistance: float
    breakout_percent: Optional[float] = None

    def implied_direction(self) -> Optional[Direction]:
        return self.direction or Direction.BULLISH


@dataclass(frozen=True, kw_only=True)
class GapSignal(Signal):
    signal_type: ClassVar[SignalType] = SignalType.GAP

    gap_percent: float
    prev_close: Optional[float] = None

    def implied_direction(self) -> Optional[Direction]:
        return self.direction or Direction.from_change(self.gap_percent)


class CrossDirection(str, Enum):
    ABOVE = "above"
    BELOW = "below"


@dataclass(frozen=True, kw_only=True)
class VwapCrossSignal(Signal):
    signal_type: ClassVar[SignalType] = SignalType.VWAP_CROSS

    vwap: float
    cross_direction: CrossDirection

    def implied_direction(self) -> Optional[Direction]:
        if self.direction:
            return self.direction
        return Direction.BULLISH if self.cross_direction is CrossDirection.ABOVE else Direction.BEARISH


@dataclass(frozen=True, kw_only=True)
class NewHighSignal(Signal):
    signal_type: ClassVar[SignalType] = SignalType.NEW_HIGH

    def implied_direction(self) -> Optional[Direction]:
        return self.direction or Direction.BULLISH


@dataclass(frozen=True, kw_only=True)
class NewLowSignal(Signal):
    signal_type: ClassVar[SignalType] = SignalType.NEW_LOW

    def implied_direction(self) -> Optional[Direction]:
        return self.direction or Direction.BEARISH


@dataclass(frozen=True, kw_only=True)
class RelativeStrengthSignal(Signal):
    signal_type: ClassVar[SignalType] = SignalType.RELATIVE_STRENGTH

    relative_strength: float                         # Percent vs the index
    is_outperforming: bool

    def implied_direction(self) -> Optional[Direction]:
        if self.direction:
            return self.direction
        return Direction.BULLISH if self.is_outperforming else Direction.BEARISH


@dataclass(frozen=True, kw_only=True)
class UnknownSignal(Signal):
    """Detection type this engine does not score; adjustments still apply."""
    signal_type: ClassVar[SignalType] = SignalType.UNKNOWN

    raw_type: str


@dataclass(frozen=True)
class MarketTick:
    """One price observation for one ticker."""
    ticker: str
    price: float
    timestamp_ms: Optional[int] = None
