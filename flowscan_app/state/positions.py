"""
Paper position engine.

Opens simulated positions from recommendations, evaluates every open position
against each price tick, trails stops and realizes P&L on close. All
position mutations happen under one re-entrant lock so a tick and a
signal-driven open never interleave.
"""

import threading
from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional, Union

from ..config.defaults import DefaultConfig, get_default_config
from ..logging.config import get_position_logger, log_position_transition
from ..recommendation.models import Recommendation
from ..signals.models import MarketTick
from ..utils.time import trade_date_for
from .models import (
    AlertKind,
    ClosedTrade,
    ExitReason,
    PaperPosition,
    PositionStatus,
    ProximityAlert,
    TickResult,
    TrailingStopUpdate,
)
from .risk import RiskGate

logger = get_position_logger(__name__)

PriceFeed = Mapping[str, Union[float, MarketTick]]


def extract_price(value: Any) -> Optional[float]:
    """Price from a plain number or a MarketTick; None when unusable."""
    price = value.price if isinstance(value, MarketTick) else value
    if price is None or isinstance(price, bool):
        return None
    try:
        price = float(price)
    except (TypeError, ValueError):
        return None
    return price if price > 0 else None


class PaperPositionEngine:
    """Stateful core of the paper trading simulation."""

    def __init__(
        self,
        config: Optional[DefaultConfig] = None,
        risk_gate: Optional[RiskGate] = None,
        repository: Optional[Any] = None,
        lock: Optional[threading.RLock] = None
    ):
        self.config = config or get_default_config()
        self.params = self.config.paper_trading
        self.risk_gate = risk_gate or RiskGate(self.config.risk)
        self.repository = repository
        self.lock = lock or threading.RLock()
        self._positions: dict[str, PaperPosition] = {}
        self._closed_trades: list[ClosedTrade] = []

    # ------------------------------------------------------------------ open

    def can_open_new_position(self, ticker: str = "*") -> bool:
        return self.risk_gate.can_open_new_position(ticker)

    def open_position(self, recommendation: Recommendation,
                      trade_date: Optional[date] = None) -> Optional[str]:
        """
        Open a paper position from a recommendation.

        Returns:
            The new position id, or None when rejected: an OPEN position for
            the same ticker and direction exists, a risk breaker is tripped,
            or the recommendation is degenerate.
        """
        rec = recommendation
        with self.lock:
            reason = self._degenerate_reason(rec)
            if reason:
                logger.info("Position open rejected", ticker=rec.ticker, reason=reason)
                return None

            if self._find_open(rec.ticker, rec.direction) is not None:
                logger.info("Position open rejected",
                            ticker=rec.ticker,
                            direction=rec.direction.value,
                            reason="duplicate open position")
                return None

            if not self.can_open_new_position(rec.ticker):
                logger.info("Position open rejected", ticker=rec.ticker, reason="risk breaker tripped")
                return None

            position = PaperPosition(
                ticker=rec.ticker,
                direction=rec.direction,
                entry_price=rec.entry_price,
                partial_target_price=rec.partial_target_price,
                target_price=rec.target_price,
                stop_price=rec.stop_price,
                confidence_score=rec.confidence_score,
                leverage_multiplier=rec.leverage_multiplier,
                trade_date=trade_date or trade_date_for(),
                action_tier=rec.action_tier.value,
                option_details=rec.option_suggestion,
                factors=tuple(rec.factors),
                warnings=tuple(rec.warnings),
                last_price=rec.entry_price,
            )
            self._positions[position.id] = position

            log_position_transition(logger, position.id, position.ticker,
                                    "none", PositionStatus.OPEN.value, "recommendation",
                                    {"entry_price": position.entry_price,
                                     "target_price": position.target_price,
                                     "stop_price": position.stop_price,
                                     "confidence_score": position.confidence_score})
            self._persist(position)
            return position.id

    @staticmethod
    def _degenerate_reason(rec: Recommendation) -> Optional[str]:
        if rec.entry_price <= 0:
            return "non-positive entry price"
        if rec.entry_price == rec.stop_price:
            return "entry equals stop"
        if rec.entry_price == rec.target_price:
            return "entry equals target"
        return None

    def _find_open(self, ticker: str, direction) -> Optional[PaperPosition]:
        for position in self._positions.values():
            if position.is_open and position.ticker == ticker and position.direction is direction:
                return position
        return None

    # ------------------------------------------------------------------ tick

    def evaluate_tick(self, prices: PriceFeed) -> TickResult:
        """
        Evaluate every OPEN position that has a price this tick.

        Per position, strictly in order: extremes, target hit, effective stop
        hit, one-shot partial target alert, trailing stop advance, proximity
        alerts. A position closed by target or stop skips the later steps.
        Positions without a price are left untouched.
        """
        closed: list[ClosedTrade] = []
        alerts: list[ProximityAlert] = []
        updates: list[TrailingStopUpdate] = []
        skipped: list[str] = []

        with self.lock:
            for position in list(self._positions.values()):
                if not position.is_open:
                    continue

                price = extract_price(prices.get(position.ticker))
                if price is None:
                    skipped.append(position.id)
                    continue

                self._update_extremes(position, price)

                if self._target_hit(position, price):
                    trade = self.close_position(position.id, price, ExitReason.TARGET_HIT)
                    if trade:
                        closed.append(trade)
                    continue

                if self._stop_hit(position, price):
                    reason = (ExitReason.TRAILING_STOP if position.trailing_stop_price is not None
                              else ExitReason.STOP_LOSS)
                    trade = self.close_position(position.id, price, reason)
                    if trade:
                        closed.append(trade)
                    continue

                partial = self._partial_target_alert(position, price)
                if partial:
                    alerts.append(partial)

                update = self._advance_trailing_stop(position, price)
                if update:
                    updates.append(update)

                alerts.extend(self._proximity_alerts(position, price))
                self._persist(position)

        if skipped:
            logger.debug("Positions without a price this tick", position_ids=skipped)

        return TickResult(
            closed=tuple(closed),
            proximity_alerts=tuple(alerts),
            trailing_stop_updates=tuple(updates),
            skipped=tuple(skipped),
        )

    @staticmethod
    def _update_extremes(position: PaperPosition, price: float) -> None:
        position.high_price_seen = max(position.high_price_seen, price)
        position.low_price_seen = min(position.low_price_seen, price)
        position.last_price = price

    @staticmethod
    def _target_hit(position: PaperPosition, price: float) -> bool:
        if position.is_bullish:
            return price >= position.target_price
        return price <= position.target_price

    @staticmethod
    def _stop_hit(position: PaperPosition, price: float) -> bool:
        stop = position.effective_stop
        if position.is_bullish:
            return price <= stop
        return price >= stop

    def _partial_target_alert(self, position: PaperPosition, price: float) -> Optional[ProximityAlert]:
        if position.partial_alert_fired:
            return None

        reached = (price >= position.partial_target_price if position.is_bullish
                   else price <= position.partial_target_price)
        if not reached:
            return None

        position.partial_alert_fired = True
        logger.info("Partial target reached",
                    position_id=position.id,
                    ticker=position.ticker,
                    price=price,
                    partial_target_price=position.partial_target_price)

        return ProximityAlert(
            position_id=position.id,
            ticker=position.ticker,
            kind=AlertKind.PARTIAL_TARGET,
            price=price,
            level=position.partial_target_price,
            remaining=round(abs(position.target_price - price), 4),
            stock_pnl_percent=round(position.stock_pnl_at(price), 4),
        )

    def _advance_trailing_stop(self, position: PaperPosition, price: float) -> Optional[TrailingStopUpdate]:
        pnl = position.stock_pnl_at(price)
        if pnl <= self.params.trailing_activation_percent:
            return None

        sign = position.direction.sign
        candidate = price * (1 - sign * self.params.trailing_distance_percent / 100.0)

        # Never inside the entry price
        if position.is_bullish:
            candidate = max(candidate, position.entry_price)
        else:
            candidate = min(candidate, position.entry_price)
        candidate = round(candidate, 2)

        current = position.effective_stop
        tightens = candidate > current if position.is_bullish else candidate < current
        if not tightens:
            return None

        previous = position.trailing_stop_price
        position.trailing_stop_price = candidate

        logger.info("Trailing stop advanced",
                    position_id=position.id,
                    ticker=position.ticker,
                    previous_stop=previous,
                    new_stop=candidate,
                    price=price)

        return TrailingStopUpdate(
            position_id=position.id,
            ticker=position.ticker,
            previous_stop=previous,
            new_stop=candidate,
            price=price,
            stock_pnl_percent=round(pnl, 4),
        )

    def _proximity_alerts(self, position: PaperPosition, price: float) -> list[ProximityAlert]:
        alerts = []
        sign = position.direction.sign
        pnl = round(position.stock_pnl_at(price), 4)

        target_distance = abs(position.target_price - position.entry_price)
        if target_distance > 0:
            remaining = (position.target_price - price) * sign
            if 0 <= remaining <= self.params.near_target_fraction * target_distance:
                alerts.append(ProximityAlert(
                    position_id=position.id,
                    ticker=position.ticker,
                    kind=AlertKind.NEAR_TARGET,
                    price=price,
                    level=position.target_price,
                    remaining=round(remaining, 4),
                    stock_pnl_percent=pnl,
                ))

        stop_distance = abs(position.entry_price - position.stop_price)
        if stop_distance > 0:
            stop = position.effective_stop
            remaining = (price - stop) * sign
            if 0 <= remaining <= self.params.near_stop_fraction * stop_distance:
                alerts.append(ProximityAlert(
                    position_id=position.id,
                    ticker=position.ticker,
                    kind=AlertKind.NEAR_STOP,
                    price=price,
                    level=stop,
                    remaining=round(remaining, 4),
                    stock_pnl_percent=pnl,
                ))

        return alerts

    # ----------------------------------------------------------------- close

    def close_position(self, position_id: str, exit_price: float,
                       exit_reason: ExitReason) -> Optional[ClosedTrade]:
        """Realize P&L for an OPEN position; None when unknown or already closed."""
        with self.lock:
            position = self._positions.get(position_id)
            if position is None or not position.is_open:
                logger.warning("Close requested for a position that is not open",
                               position_id=position_id,
                               exit_reason=exit_reason.value)
                return None

            stock_pnl = position.stock_pnl_at(exit_price)
            option_pnl = max(stock_pnl * position.leverage_multiplier, -100.0)
            pnl_dollars = option_pnl / 100.0 * self.params.position_notional

            position.exit_price = exit_price
            position.exit_reason = exit_reason
            position.stock_pnl_percent = round(stock_pnl, 4)
            position.option_pnl_percent = round(option_pnl, 4)
            position.pnl_dollars = round(pnl_dollars, 2)
            position.last_price = exit_price
            position.status = PositionStatus.CLOSED
            position.closed_at = datetime.now(timezone.utc)

            risk_state = self.risk_gate.record_close(position.pnl_dollars)

            trade = ClosedTrade.from_position(position)
            self._closed_trades.append(trade)

            log_position_transition(logger, position.id, position.ticker,
                                    PositionStatus.OPEN.value, PositionStatus.CLOSED.value,
                                    exit_reason.value,
                                    {"exit_price": exit_price,
                                     "stock_pnl_percent": position.stock_pnl_percent,
                                     "pnl_dollars": position.pnl_dollars,
                                     "consecutive_losses": risk_state.consecutive_loss_count,
                                     "cumulative_pnl": round(risk_state.cumulative_realized_pnl, 2)})
            self._persist(position)
            return trade

    def close_all(self, prices: Optional[PriceFeed] = None,
                  reason: ExitReason = ExitReason.MARKET_CLOSE) -> list[ClosedTrade]:
        """Force-close every OPEN position at the current, last known, or entry price."""
        prices = prices or {}
        closed = []
        with self.lock:
            for position in list(self._positions.values()):
                if not position.is_open:
                    continue
                price = extract_price(prices.get(position.ticker))
                if price is None:
                    price = position.last_price or position.entry_price
                    logger.info("Closing with last known price",
                                position_id=position.id, ticker=position.ticker, price=price)
                trade = self.close_position(position.id, price, reason)
                if trade:
                    closed.append(trade)
        return closed

    # ----------------------------------------------------------------- state

    def get_position(self, position_id: str) -> Optional[PaperPosition]:
        with self.lock:
            return self._positions.get(position_id)

    def open_positions(self) -> list[PaperPosition]:
        with self.lock:
            return [p for p in self._positions.values() if p.is_open]

    def all_positions(self) -> list[PaperPosition]:
        with self.lock:
            return list(self._positions.values())

    @property
    def closed_trades(self) -> list[ClosedTrade]:
        with self.lock:
            return list(self._closed_trades)

    def load_positions(self, positions: list[PaperPosition]) -> int:
        """Seed OPEN positions restored from persistence."""
        loaded = 0
        with self.lock:
            for position in positions:
                if position.is_open and position.id not in self._positions:
                    self._positions[position.id] = position
                    loaded += 1
        return loaded

    def discard_stale(self, trade_date: date) -> list[PaperPosition]:
        """Drop OPEN positions left over from an earlier trading day."""
        with self.lock:
            stale = [p for p in self._positions.values()
                     if p.is_open and p.trade_date < trade_date]
            for position in stale:
                del self._positions[position.id]
        return stale

    def reset(self) -> None:
        """Forget the day's positions and trades."""
        with self.lock:
            self._positions.clear()
            self._closed_trades.clear()

    def _persist(self, position: PaperPosition) -> None:
        if self.repository is None:
            return
        try:
            self.repository.save(position)
        except Exception as e:
            # Persistence is a collaborator; the evaluation loop keeps going
            logger.error("Failed to persist position",
                         position_id=position.id,
                         ticker=position.ticker,
                         error=str(e))
