"""
Daily lifecycle coordination.

The trading day is driven from outside: market_open moves IDLE -> ACTIVE and
market_close moves ACTIVE -> IDLE, force-closing whatever is still open and
producing the day's recap.
"""

from datetime import date
from enum import Enum
from typing import Any, Callable, Optional

from ..errors.system_failures import StateTransitionError
from ..logging.config import get_position_logger
from ..utils.time import trade_date_for
from .models import ClosedTrade, ExitReason, PositionStatus
from .positions import PaperPositionEngine, PriceFeed
from .stats import DailySummary, compute_daily_summary

logger = get_position_logger(__name__)

AlertSink = Callable[[dict[str, Any]], Any]


class LifecycleState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


class DailyLifecycleCoordinator:
    """Opens and closes the trading day around a PaperPositionEngine."""

    def __init__(
        self,
        position_engine: PaperPositionEngine,
        repository: Optional[Any] = None,
        alert_sink: Optional[AlertSink] = None
    ):
        self.position_engine = position_engine
        self.repository = repository if repository is not None else position_engine.repository
        self.alert_sink = alert_sink
        self.state = LifecycleState.IDLE
        self.trade_date: Optional[date] = None

    @property
    def is_active(self) -> bool:
        return self.state is LifecycleState.ACTIVE

    def market_open(self, trade_date: Optional[date] = None) -> int:
        """
        Start a trading day.

        Resets the risk counters, drops OPEN positions left from earlier days
        and reloads today's OPEN positions from the repository.

        Returns:
            Number of positions restored.

        Raises:
            StateTransitionError: The day is already active.
        """
        if self.is_active:
            raise StateTransitionError(
                "market_open called while the trading day is active",
                current_state=self.state.value,
                attempted_transition="market_open",
            )

        trade_date = trade_date or trade_date_for()
        self.trade_date = trade_date
        self.position_engine.risk_gate.reset(trade_date)

        for position in self.position_engine.discard_stale(trade_date):
            logger.warning("Stale open position dropped",
                           position_id=position.id,
                           ticker=position.ticker,
                           position_trade_date=position.trade_date.isoformat(),
                           trade_date=trade_date.isoformat())

        restored = 0
        if self.repository is not None:
            try:
                active = self.repository.load_active_positions(trade_date)
            except Exception as e:
                logger.error("Failed to load active positions",
                             trade_date=trade_date.isoformat(), error=str(e))
                active = []
            restored = self.position_engine.load_positions(
                [p for p in active if p.trade_date == trade_date])

        self.state = LifecycleState.ACTIVE
        logger.info("Market open",
                    trade_date=trade_date.isoformat(),
                    restored_positions=restored)
        return restored

    def market_close(self, prices: Optional[PriceFeed] = None) -> DailySummary:
        """
        Close every OPEN position, summarize the day and reset.

        Raises:
            StateTransitionError: No trading day is active.
        """
        if not self.is_active:
            raise StateTransitionError(
                "market_close called while idle",
                current_state=self.state.value,
                attempted_transition="market_close",
            )

        self.position_engine.close_all(prices, ExitReason.MARKET_CLOSE)
        summary = compute_daily_summary(self._todays_trades(), self.trade_date)

        logger.info("Market close",
                    trade_date=self.trade_date.isoformat() if self.trade_date else None,
                    total_trades=summary.total_trades,
                    winners=summary.winners,
                    total_pnl_dollars=summary.total_pnl_dollars)

        if self.alert_sink is not None:
            self.alert_sink({"event": "daily_recap", **summary.to_dict()})

        self.position_engine.reset()
        self.position_engine.risk_gate.reset()
        self.state = LifecycleState.IDLE
        return summary

    def _todays_trades(self) -> list[ClosedTrade]:
        """
        Closed trades for the active day.

        Trades persisted before a restart are read back from the repository;
        trades closed in this process win when both sources hold the same id.
        """
        trades: dict[str, ClosedTrade] = {}

        if self.repository is not None and self.trade_date is not None:
            get_positions_by_date = getattr(self.repository, "get_positions_by_date", None)
            if get_positions_by_date is not None:
                try:
                    for position in get_positions_by_date(self.trade_date):
                        if position.status is PositionStatus.CLOSED:
                            trades[position.id] = ClosedTrade.from_position(position)
                except Exception as e:
                    logger.error("Failed to load closed positions for the recap",
                                 trade_date=self.trade_date.isoformat(), error=str(e))

        for trade in self.position_engine.closed_trades:
            trades[trade.position_id] = trade

        return list(trades.values())
