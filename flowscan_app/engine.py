"""
Main pipeline coordinator.

Wires the signal catalog, signal memory, heat score aggregator,
recommendation builder, paper position engine, daily lifecycle and alert
dispatcher:

Signal -> Classification -> Heat Score -> Recommendation -> Paper Position
Tick   -> Position Evaluation -> Alerts
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Optional, Union

from .config.alert_delivery import AlertDeliveryConfig
from .config.defaults import DefaultConfig
from .config.loader import load_engine_config
from .delivery import payloads
from .delivery.dispatcher import AlertDispatcher
from .errors import DataQualityError
from .logging.config import get_logger
from .recommendation.builder import RecommendationBuilder
from .recommendation.models import (
    IndexAlignment,
    KeyLevelContext,
    Recommendation,
    RecommendationRequest,
    SectorStrength,
)
from .scoring.context import ScoringContext
from .scoring.heat_score import HeatScoreAggregator, HeatScoreResult
from .scoring.ticker_state import SignalMemory
from .signals.catalog import SignalCatalog
from .signals.models import (
    BreakoutSignal,
    Direction,
    GapSignal,
    MomentumSurgeSignal,
    Signal,
    VolumeSpikeSignal,
)
from .state.lifecycle import DailyLifecycleCoordinator
from .state.models import TickResult
from .state.positions import PaperPositionEngine, PriceFeed
from .state.risk import RiskGate
from .state.stats import DailySummary
from .utils.time import trade_date_for

logger = get_logger(__name__)

AlertSink = Callable[[dict[str, Any]], Any]


@dataclass(frozen=True)
class MarketContext:
    """Recommendation inputs that come from outside the signal itself."""
    direction: Optional[Direction] = None
    price_change_percent: Optional[float] = None
    volume_multiplier: Optional[float] = None
    index_alignment: Optional[IndexAlignment] = None
    sector_strength: Optional[SectorStrength] = None
    key_level: Optional[KeyLevelContext] = None
    earnings_days_away: Optional[int] = None
    option_quote: Optional[float] = None


@dataclass(frozen=True)
class SignalOutcome:
    """What the pipeline did with one signal."""
    signal: Optional[Signal]
    heat: Optional[HeatScoreResult] = None
    recommendation: Optional[Recommendation] = None
    position_id: Optional[str] = None
    skipped_reason: Optional[str] = None

    @property
    def opened_position(self) -> bool:
        return self.position_id is not None


class FlowScanEngine:
    """
    Coordinator for the scoring and paper trading pipeline.

    Every collaborator can be injected; anything omitted is built from the
    configuration.
    """

    def __init__(
        self,
        config: Optional[DefaultConfig] = None,
        config_dir: Optional[str] = None,
        repository: Optional[Any] = None,
        alert_sink: Optional[AlertSink] = None,
        delivery_config: Optional[AlertDeliveryConfig] = None
    ) -> None:
        self.config = config or load_engine_config(config_dir)
        self.catalog = SignalCatalog(self.config.adjustments.block_large_value)
        self.memory = SignalMemory(
            repeat_window_minutes=self.config.memory.repeat_window_minutes,
            alert_cooldown_seconds=self.config.memory.alert_cooldown_seconds,
        )
        self.aggregator = HeatScoreAggregator(self.config, self.memory)
        self.builder = RecommendationBuilder(self.config)
        self.risk_gate = RiskGate(self.config.risk)
        self.positions = PaperPositionEngine(self.config, self.risk_gate, repository)
        self.alert_sink = alert_sink or AlertDispatcher(delivery_config)
        self.lifecycle = DailyLifecycleCoordinator(self.positions, repository, self._emit)

        logger.info("FlowScan engine initialized",
                    position_notional=self.config.paper_trading.position_notional,
                    alert_threshold=self.config.thresholds.alert_threshold)

    @property
    def trade_date(self) -> date:
        return self.lifecycle.trade_date or trade_date_for()

    def process_signal(
        self,
        raw: Union[Signal, dict[str, Any]],
        context: Optional[ScoringContext] = None,
        market_context: Optional[MarketContext] = None
    ) -> SignalOutcome:
        """
        Run one detection through the pipeline.

        The signal is recorded in memory before scoring, so the repeat count
        includes it. Tickers still inside their alert cooldown are recorded
        but not scored.
        """
        try:
            signal = self.catalog.classify(raw)
        except DataQualityError as e:
            logger.warning("Signal rejected", error=str(e), error_type=type(e).__name__)
            return SignalOutcome(signal=None, skipped_reason="invalid_signal")

        self.memory.record_signal(signal.ticker, signal.timestamp_ms)

        if self.memory.in_cooldown(signal.ticker, signal.timestamp_ms):
            logger.debug("Ticker in alert cooldown", ticker=signal.ticker)
            return SignalOutcome(signal=signal, skipped_reason="cooldown")

        heat = self.aggregator.score(signal, context)
        if not heat.is_routed:
            return SignalOutcome(signal=signal, heat=heat, skipped_reason="below_threshold")

        self.memory.mark_alerted(signal.ticker, signal.timestamp_ms)

        market_context = market_context or MarketContext()
        recommendation = self.builder.build(self._request(signal, heat, context, market_context))
        self._emit(payloads.heat_alert(heat, recommendation))

        if recommendation is None:
            return SignalOutcome(signal=signal, heat=heat, skipped_reason="invalid_price")

        position_id = None
        paper = self.config.paper_trading
        if (recommendation.confidence_score >= paper.min_open_confidence
                and recommendation.action_tier.is_actionable):
            position_id = self.positions.open_position(recommendation, self.trade_date)
            if position_id:
                self._emit(payloads.position_opened(self.positions.get_position(position_id)))

        logger.info("Signal processed",
                    ticker=signal.ticker,
                    signal_type=signal.signal_type.value,
                    heat_score=heat.heat_score,
                    channel_tier=heat.channel_tier.value,
                    action_tier=recommendation.action_tier.value,
                    position_id=position_id)

        return SignalOutcome(signal=signal, heat=heat,
                             recommendation=recommendation, position_id=position_id)

    def _request(self, signal: Signal, heat: HeatScoreResult,
                 context: Optional[ScoringContext],
                 market: MarketContext) -> RecommendationRequest:
        context = context or ScoringContext()

        volume_multiplier = market.volume_multiplier
        if volume_multiplier is None:
            if isinstance(signal, VolumeSpikeSignal):
                volume_multiplier = signal.rvol
            elif context.volume_confirmation is not None:
                volume_multiplier = context.volume_confirmation.multiple

        change = market.price_change_percent
        if change is None:
            if isinstance(signal, MomentumSurgeSignal):
                change = signal.price_change_percent
            elif isinstance(signal, GapSignal):
                change = signal.gap_percent
            elif isinstance(signal, BreakoutSignal):
                change = signal.breakout_percent

        earnings = market.earnings_days_away
        if earnings is None and context.earnings is not None:
            earnings = context.earnings.days_away

        return RecommendationRequest(
            ticker=signal.ticker,
            price=signal.price,
            heat_score=heat.heat_score,
            signal_type=signal.signal_type,
            volume_multiplier=volume_multiplier or 0.0,
            price_change_percent=change or 0.0,
            direction=market.direction or signal.implied_direction(),
            trading_phase=context.trading_phase,
            index_alignment=market.index_alignment,
            sector_strength=market.sector_strength,
            key_level=market.key_level,
            earnings_days_away=earnings,
            option_quote=market.option_quote,
            as_of=self.trade_date,
        )

    def process_tick(self, prices: PriceFeed) -> TickResult:
        """Evaluate open positions against a price snapshot and emit the outcomes."""
        result = self.positions.evaluate_tick(prices)

        for trade in result.closed:
            self._emit(payloads.position_closed(trade))
        for alert in result.proximity_alerts:
            self._emit(payloads.proximity_alert(alert))
        for update in result.trailing_stop_updates:
            self._emit(payloads.trailing_stop_update(update))

        return result

    def market_open(self, trade_date: Optional[date] = None) -> int:
        return self.lifecycle.market_open(trade_date)

    def market_close(self, prices: Optional[PriceFeed] = None) -> DailySummary:
        """Force-close the day's positions, emit the recap and clear signal memory."""
        if self.lifecycle.is_active:
            for trade in self.positions.close_all(prices):
                self._emit(payloads.position_closed(trade))

        summary = self.lifecycle.market_close(prices)
        self.memory.reset()
        return summary

    def _emit(self, alert: dict[str, Any]) -> None:
        try:
            self.alert_sink(alert)
        except Exception as e:
            logger.error("Alert sink failed", alert_event=alert.get("event"), error=str(e))
