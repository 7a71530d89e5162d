"""Daily paper trading summary"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Optional

from .models import ClosedTrade, ExitReason


@dataclass(frozen=True)
class GroupStats:
    trades: int = 0
    winners: int = 0
    pnl_dollars: float = 0.0

    @property
    def win_rate(self) -> float:
        return round(self.winners / self.trades * 100.0, 2) if self.trades else 0.0


@dataclass(frozen=True)
class DailySummary:
    """Aggregate of one trading day's closed trades."""
    trade_date: Optional[date]
    total_trades: int = 0
    winners: int = 0
    losers: int = 0
    win_rate: float = 0.0                            # Percent
    total_pnl_dollars: float = 0.0
    average_stock_move_percent: float = 0.0
    exit_reasons: dict[str, int] = field(default_factory=dict)
    by_tier: dict[str, GroupStats] = field(default_factory=dict)
    by_direction: dict[str, GroupStats] = field(default_factory=dict)
    best_trade: Optional[ClosedTrade] = None
    worst_trade: Optional[ClosedTrade] = None

    def to_dict(self) -> dict[str, Any]:
        def trade_dict(trade: Optional[ClosedTrade]) -> Optional[dict[str, Any]]:
            if trade is None:
                return None
            return {
                "position_id": trade.position_id,
                "ticker": trade.ticker,
                "direction": trade.direction.value,
                "exit_reason": trade.exit_reason.value,
                "stock_pnl_percent": trade.stock_pnl_percent,
                "option_pnl_percent": trade.option_pnl_percent,
                "pnl_dollars": trade.pnl_dollars,
            }

        def group_dict(groups: dict[str, GroupStats]) -> dict[str, dict[str, Any]]:
            return {
                key: {"trades": g.trades, "winners": g.winners,
                      "win_rate": g.win_rate, "pnl_dollars": g.pnl_dollars}
                for key, g in groups.items()
            }

        return {
            "trade_date": self.trade_date.isoformat() if self.trade_date else None,
            "total_trades": self.total_trades,
            "winners": self.winners,
            "losers": self.losers,
            "win_rate": self.win_rate,
            "total_pnl_dollars": self.total_pnl_dollars,
            "average_stock_move_percent": self.average_stock_move_percent,
            "exit_reasons": dict(self.exit_reasons),
            "by_tier": group_dict(self.by_tier),
            "by_direction": group_dict(self.by_direction),
            "best_trade": trade_dict(self.best_trade),
            "worst_trade": trade_dict(self.worst_trade),
        }


def _fold(groups: dict[str, GroupStats], key: str, trade: ClosedTrade) -> None:
    current = groups.get(key, GroupStats())
    groups[key] = GroupStats(
        trades=current.trades + 1,
        winners=current.winners + (1 if trade.is_winner else 0),
        pnl_dollars=round(current.pnl_dollars + trade.pnl_dollars, 2),
    )


def compute_daily_summary(trades: Iterable[ClosedTrade],
                          trade_date: Optional[date] = None) -> DailySummary:
    """Summarize closed trades; an empty day yields zeroed counters."""
    trades = list(trades)
    exit_reasons = {reason.value: 0 for reason in ExitReason}
    if not trades:
        return DailySummary(trade_date=trade_date, exit_reasons=exit_reasons)

    winners = sum(1 for t in trades if t.is_winner)
    by_tier: dict[str, GroupStats] = {}
    by_direction: dict[str, GroupStats] = {}

    for trade in trades:
        exit_reasons[trade.exit_reason.value] += 1
        _fold(by_tier, trade.action_tier or "unknown", trade)
        _fold(by_direction, trade.direction.value, trade)

    return DailySummary(
        trade_date=trade_date,
        total_trades=len(trades),
        winners=winners,
        losers=len(trades) - winners,
        win_rate=round(winners / len(trades) * 100.0, 2),
        total_pnl_dollars=round(sum(t.pnl_dollars for t in trades), 2),
        average_stock_move_percent=round(
            sum(t.stock_pnl_percent for t in trades) / len(trades), 4),
        exit_reasons=exit_reasons,
        by_tier=by_tier,
        by_direction=by_direction,
        best_trade=max(trades, key=lambda t: t.pnl_dollars),
        worst_trade=min(trades, key=lambda t: t.pnl_dollars),
    )


@dataclass(frozen=True)
class DayPerformance:
    """One row of the multi-day performance history."""
    trade_date: date
    total_trades: int
    winners: int
    losers: int
    average_stock_move_percent: float
    total_pnl_dollars: float

    @property
    def win_rate(self) -> float:
        return round(self.winners / self.total_trades * 100.0, 2) if self.total_trades else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "trade_date": self.trade_date.isoformat(),
            "total_trades": self.total_trades,
            "winners": self.winners,
            "losers": self.losers,
            "win_rate": self.win_rate,
            "average_stock_move_percent": self.average_stock_move_percent,
            "total_pnl_dollars": self.total_pnl_dollars,
        }


def compute_historical_performance(trades: Iterable[tuple[date, ClosedTrade]]) -> list[DayPerformance]:
    """Roll closed trades up per trading day, most recent day first."""
    by_day: dict[date, list[ClosedTrade]] = {}
    for trade_date, trade in trades:
        by_day.setdefault(trade_date, []).append(trade)

    history = []
    for trade_date in sorted(by_day, reverse=True):
        day = by_day[trade_date]
        winners = sum(1 for t in day if t.is_winner)
        history.append(DayPerformance(
            trade_date=trade_date,
            total_trades=len(day),
            winners=winners,
            losers=len(day) - winners,
            average_stock_move_percent=round(sum(t.stock_pnl_percent for t in day) / len(day), 4),
            total_pnl_dollars=round(sum(t.pnl_dollars for t in day), 2),
        ))
    return history
