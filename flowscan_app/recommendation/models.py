"""
Recommendation data models.

Requests carry the timing and alignment context gathered by external
collaborators; recommendations are immutable once built and are consumed once
by the paper position engine.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from ..scoring.context import TradingPhase
from ..signals.models import Direction, SignalType


class ActionTier(str, Enum):
    """Action tiers ordered fire > strong > good > lean > watch > avoid."""
    FIRE = "fire"
    STRONG = "strong"
    GOOD = "good"
    LEAN = "lean"
    WATCH = "watch"
    AVOID = "avoid"

    @property
    def rank(self) -> int:
        """0 for fire, increasing toward avoid."""
        return _TIER_ORDER.index(self)

    @property
    def is_actionable(self) -> bool:
        return self not in (ActionTier.WATCH, ActionTier.AVOID)


_TIER_ORDER = [
    ActionTier.FIRE,
    ActionTier.STRONG,
    ActionTier.GOOD,
    ActionTier.LEAN,
    ActionTier.WATCH,
    ActionTier.AVOID,
]


@dataclass(frozen=True)
class TierProfile:
    """Display message and urgency label carried by each action tier."""
    tier: ActionTier
    message: str
    urgency: str


TIER_PROFILES: dict[ActionTier, TierProfile] = {
    ActionTier.FIRE: TierProfile(ActionTier.FIRE,
                                 "Multiple signals aligning - high conviction entry",
                                 "immediate"),
    ActionTier.STRONG: TierProfile(ActionTier.STRONG,
                                   "Strong setup with good confirmation",
                                   "high"),
    ActionTier.GOOD: TierProfile(ActionTier.GOOD,
                                 "Solid setup - standard size",
                                 "normal"),
    ActionTier.LEAN: TierProfile(ActionTier.LEAN,
                                 "Setup developing - wait for confirmation or use smaller size",
                                 "low"),
    ActionTier.WATCH: TierProfile(ActionTier.WATCH,
                                  "Mixed signals - not a clear trade setup",
                                  "monitor"),
    ActionTier.AVOID: TierProfile(ActionTier.AVOID,
                                  "Conflicting signals or high risk - avoid this trade",
                                  "none"),
}


class OptionType(str, Enum):
    CALL = "call"
    PUT = "put"


class LeverageSource(str, Enum):
    GREEKS = "greeks"
    FIXED = "fixed"


class LevelType(str, Enum):
    SUPPORT = "support"
    RESISTANCE = "resistance"


@dataclass(frozen=True)
class IndexAlignment:
    """Broad index move at the time of the signal."""
    direction: Optional[Direction]
    change_percent: float = 0.0
    relative_strength_percent: float = 0.0           # Ticker change minus index change


@dataclass(frozen=True)
class SectorStrength:
    is_hot: bool = False
    is_cold: bool = False
    change_percent: float = 0.0
    sector: str = ""


@dataclass(frozen=True)
class KeyLevelContext:
    """Nearest key level to the current price."""
    level_type: LevelType
    level_name: str
    breaking: bool = False


@dataclass(frozen=True)
class RecommendationRequest:
    ticker: str
    price: float
    heat_score: int
    signal_type: SignalType
    volume_multiplier: float = 0.0
    price_change_percent: float = 0.0
    direction: Optional[Direction] = None            # Falls back to the sign of the change
    trading_phase: Optional[TradingPhase] = None
    index_alignment: Optional[IndexAlignment] = None
    sector_strength: Optional[SectorStrength] = None
    key_level: Optional[KeyLevelContext] = None
    earnings_days_away: Optional[int] = None
    option_quote: Optional[float] = None             # Observed premium for the suggested contract
    as_of: Optional[date] = None


@dataclass(frozen=True)
class OptionContractSuggestion:
    option_type: OptionType
    strike: float
    expiration_date: date
    days_to_expiration: int
    estimated_premium: float
    suggested_contracts: int


@dataclass(frozen=True)
class ExpectedPnL:
    """Option P&L if the target or the stop is hit."""
    gain_percent: float
    loss_percent: float
    gain_dollars: float
    loss_dollars: float
    leverage_source: LeverageSource


@dataclass(frozen=True)
class Recommendation:
    ticker: str
    direction: Direction
    confidence_score: int
    action_tier: ActionTier
    entry_price: float
    partial_target_price: float
    target_price: float
    stop_price: float
    risk_reward_ratio: Optional[float]
    option_suggestion: Optional[OptionContractSuggestion]
    expected_pnl: ExpectedPnL
    leverage_multiplier: float
    factors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def tier_profile(self) -> TierProfile:
        return TIER_PROFILES[self.action_tier]
