"""Paper trading state: positions, risk breakers and the daily lifecycle"""

from .lifecycle import DailyLifecycleCoordinator, LifecycleState
from .models import (
    AlertKind,
    ClosedTrade,
    DailyRiskState,
    ExitReason,
    PaperPosition,
    PositionStatus,
    ProximityAlert,
    TickResult,
    TrailingStopUpdate,
)
from .positions import PaperPositionEngine, extract_price
from .risk import RiskGate
from .stats import (
    DailySummary,
    DayPerformance,
    GroupStats,
    compute_daily_summary,
    compute_historical_performance,
)

__all__ = [
    "PaperPositionEngine",
    "PaperPosition",
    "PositionStatus",
    "ExitReason",
    "AlertKind",
    "ClosedTrade",
    "ProximityAlert",
    "TrailingStopUpdate",
    "TickResult",
    "DailyRiskState",
    "RiskGate",
    "DailyLifecycleCoordinator",
    "LifecycleState",
    "DailySummary",
    "GroupStats",
    "compute_daily_summary",
    "DayPerformance",
    "compute_historical_performance",
    "extract_price",
]
