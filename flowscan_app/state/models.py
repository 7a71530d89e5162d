"""
Paper trading data models.

PaperPosition is the only long-lived mutable record. It moves OPEN -> CLOSED
exactly once and every later tick leaves a closed position untouched.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional

from ..recommendation.models import OptionContractSuggestion
from ..signals.models import Direction


class PositionStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class ExitReason(str, Enum):
    TARGET_HIT = "target_hit"
    STOP_LOSS = "stop_loss"
    TRAILING_STOP = "trailing_stop"
    MARKET_CLOSE = "market_close"


class AlertKind(str, Enum):
    PARTIAL_TARGET = "partial_target"                # One-shot per position
    NEAR_TARGET = "near_target"                      # Every tick while true
    NEAR_STOP = "near_stop"                          # Every tick while true


def new_position_id() -> str:
    return uuid.uuid4().hex[:12]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PaperPosition:
    """Simulated position opened from one recommendation."""
    ticker: str
    direction: Direction
    entry_price: float
    partial_target_price: float
    target_price: float
    stop_price: float
    confidence_score: int
    leverage_multiplier: float
    trade_date: date
    id: str = field(default_factory=new_position_id)
    action_tier: Optional[str] = None
    option_details: Optional[OptionContractSuggestion] = None
    factors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    status: PositionStatus = PositionStatus.OPEN

    trailing_stop_price: Optional[float] = None
    partial_alert_fired: bool = False
    high_price_seen: Optional[float] = None
    low_price_seen: Optional[float] = None
    last_price: Optional[float] = None

    exit_price: Optional[float] = None
    exit_reason: Optional[ExitReason] = None
    stock_pnl_percent: Optional[float] = None
    option_pnl_percent: Optional[float] = None
    pnl_dollars: Optional[float] = None

    created_at: datetime = field(default_factory=_utcnow)
    closed_at: Optional[datetime] = None

    def __post_init__(self):
        if self.high_price_seen is None:
            self.high_price_seen = self.entry_price
        if self.low_price_seen is None:
            self.low_price_seen = self.entry_price

    @property
    def is_open(self) -> bool:
        return self.status is PositionStatus.OPEN

    @property
    def is_bullish(self) -> bool:
        return self.direction is Direction.BULLISH

    @property
    def effective_stop(self) -> float:
        """Trailing stop when set, otherwise the original stop."""
        return self.trailing_stop_price if self.trailing_stop_price is not None else self.stop_price

    def stock_pnl_at(self, price: float) -> float:
        """Directional stock P&L percent at a price."""
        return (price - self.entry_price) / self.entry_price * 100.0 * self.direction.sign

    def to_dict(self) -> dict[str, Any]:
        option = self.option_details
        return {
            "id": self.id,
            "ticker": self.ticker,
            "direction": self.direction.value,
            "status": self.status.value,
            "entry_price": self.entry_price,
            "partial_target_price": self.partial_target_price,
            "target_price": self.target_price,
            "stop_price": self.stop_price,
            "trailing_stop_price": self.trailing_stop_price,
            "confidence_score": self.confidence_score,
            "action_tier": self.action_tier,
            "leverage_multiplier": self.leverage_multiplier,
            "option": {
                "type": option.option_type.value,
                "strike": option.strike,
                "expiration_date": option.expiration_date.isoformat(),
                "days_to_expiration": option.days_to_expiration,
                "estimated_premium": option.estimated_premium,
                "suggested_contracts": option.suggested_contracts,
            } if option else None,
            "factors": list(self.factors),
            "warnings": list(self.warnings),
            "partial_alert_fired": self.partial_alert_fired,
            "high_price_seen": self.high_price_seen,
            "low_price_seen": self.low_price_seen,
            "last_price": self.last_price,
            "exit_price": self.exit_price,
            "exit_reason": self.exit_reason.value if self.exit_reason else None,
            "stock_pnl_percent": self.stock_pnl_percent,
            "option_pnl_percent": self.option_pnl_percent,
            "pnl_dollars": self.pnl_dollars,
            "created_at": self.created_at.isoformat(),
            "closed_at": self.closed_at.isoformat() if self.closed_at else None,
            "trade_date": self.trade_date.isoformat(),
        }


@dataclass
class DailyRiskState:
    """Process-scoped risk counters for one trading day."""
    trade_date: Optional[date] = None
    cumulative_realized_pnl: float = 0.0
    consecutive_loss_count: int = 0
    daily_loss_limit_breached: bool = False          # Sticky until the next reset


@dataclass(frozen=True)
class ClosedTrade:
    """Realized outcome of one close."""
    position_id: str
    ticker: str
    direction: Direction
    entry_price: float
    exit_price: float
    exit_reason: ExitReason
    stock_pnl_percent: float
    option_pnl_percent: float
    pnl_dollars: float
    confidence_score: int
    action_tier: Optional[str] = None

    @property
    def is_winner(self) -> bool:
        return self.pnl_dollars > 0

    @classmethod
    def from_position(cls, position: PaperPosition) -> "ClosedTrade":
        """Rebuild the realized outcome of a CLOSED position."""
        if position.is_open or position.exit_reason is None:
            raise ValueError(f"Position {position.id} is not closed")
        return cls(
            position_id=position.id,
            ticker=position.ticker,
            direction=position.direction,
            entry_price=position.entry_price,
            exit_price=position.exit_price,
            exit_reason=position.exit_reason,
            stock_pnl_percent=position.stock_pnl_percent,
            option_pnl_percent=position.option_pnl_percent,
            pnl_dollars=position.pnl_dollars,
            confidence_score=position.confidence_score,
            action_tier=position.action_tier,
        )


@dataclass(frozen=True)
class ProximityAlert:
    position_id: str
    ticker: str
    kind: AlertKind
    price: float
    level: float                                     # Level being approached
    remaining: float                                 # Absolute distance left
    stock_pnl_percent: float


@dataclass(frozen=True)
class TrailingStopUpdate:
    position_id: str
    ticker: str
    previous_stop: Optional[float]
    new_stop: float
    price: float
    stock_pnl_percent: float


@dataclass(frozen=True)
class TickResult:
    """Outputs of one tick, in position insertion order."""
    closed: tuple[ClosedTrade, ...] = ()
    proximity_alerts: tuple[ProximityAlert, ...] = ()
    trailing_stop_updates: tuple[TrailingStopUpdate, ...] = ()
    skipped: tuple[str, ...] = ()                    # Position ids without a price
