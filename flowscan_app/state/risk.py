"""Daily risk circuit breakers"""

import threading
from dataclasses import replace
from datetime import date
from typing import Optional

from ..config.defaults import RiskParams
from ..logging.config import get_position_logger, log_risk_decision
from .models import DailyRiskState

logger = get_position_logger(__name__)


class RiskGate:
    """
    Owns the DailyRiskState behind a lock.

    Two breakers: cumulative realized P&L at or below -max_daily_loss_dollars,
    and consecutive losing closes reaching max_consecutive_losses. Both stay
    tripped until reset().
    """

    def __init__(self, params: Optional[RiskParams] = None):
        self.params = params or RiskParams()
        self._state = DailyRiskState()
        self._lock = threading.Lock()

    @property
    def state(self) -> DailyRiskState:
        """Snapshot of the current counters."""
        with self._lock:
            return replace(self._state)

    def can_open_new_position(self, ticker: str = "*") -> bool:
        with self._lock:
            breached = self._state.daily_loss_limit_breached
            streak = self._state.consecutive_loss_count

        if breached:
            log_risk_decision(logger, "daily_loss_limit", False, ticker,
                              "Daily loss limit breached",
                              {"max_daily_loss_dollars": self.params.max_daily_loss_dollars})
            return False

        if streak >= self.params.max_consecutive_losses:
            log_risk_decision(logger, "consecutive_losses", False, ticker,
                              f"{streak} consecutive losses",
                              {"max_consecutive_losses": self.params.max_consecutive_losses})
            return False

        log_risk_decision(logger, "risk_breakers", True, ticker, "Within daily limits")
        return True

    def record_close(self, pnl_dollars: float) -> DailyRiskState:
        """Fold one realized close into the counters atomically."""
        with self._lock:
            state = self._state
            # Kept at cent precision
            state.cumulative_realized_pnl = round(state.cumulative_realized_pnl + pnl_dollars, 2)

            if pnl_dollars > 0:
                state.consecutive_loss_count = 0
            else:
                state.consecutive_loss_count += 1

            newly_breached = (
                not state.daily_loss_limit_breached
                and state.cumulative_realized_pnl <= -self.params.max_daily_loss_dollars
            )
            if newly_breached:
                state.daily_loss_limit_breached = True

            snapshot = replace(state)

        if newly_breached:
            logger.warning("Daily loss limit breached",
                           cumulative_realized_pnl=round(snapshot.cumulative_realized_pnl, 2),
                           max_daily_loss_dollars=self.params.max_daily_loss_dollars)

        return snapshot

    def reset(self, trade_date: Optional[date] = None) -> None:
        with self._lock:
            self._state = DailyRiskState(trade_date=trade_date)
        logger.info("Daily risk state reset",
                    trade_date=trade_date.isoformat() if trade_date else None)
