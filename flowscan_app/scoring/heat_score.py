"""
Heat score aggregation.

Folds one signal and its optional context through the base rule table and the
adjustment groups into a bounded [0, 100] score with an ordered breakdown and
a routing decision.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..config.defaults import DefaultConfig, get_default_config
from ..logging.config import get_scoring_logger
from ..signals.models import Signal, SignalType
from .context import ScoringContext
from .rules import (
    RuleGroup,
    RuleInput,
    build_adjustment_groups,
    build_base_rules,
    first_base_rule,
)
from .ticker_state import SignalMemory

logger = get_scoring_logger(__name__)


class ChannelTier(str, Enum):
    """Where a scored signal is routed."""
    HIGH_CONVICTION = "high_conviction"
    STANDARD = "standard"
    WATCHLIST = "watchlist"
    NONE = "none"


@dataclass(frozen=True)
class BreakdownEntry:
    label: str
    points: int


@dataclass(frozen=True)
class HeatScoreResult:
    """Bounded score for one signal with its full reasoning trail."""
    ticker: str
    signal_type: SignalType
    price: float
    heat_score: int                                  # Clamped to [0, 100]
    raw_score: int                                   # Unclamped sum of the breakdown
    breakdown: tuple[BreakdownEntry, ...]
    meets_threshold: bool
    channel_tier: ChannelTier

    @property
    def is_high_conviction(self) -> bool:
        return self.channel_tier is ChannelTier.HIGH_CONVICTION

    @property
    def is_routed(self) -> bool:
        return self.channel_tier is not ChannelTier.NONE


def clamp_score(value: int) -> int:
    return max(0, min(100, value))


class HeatScoreAggregator:
    """Generic fold over the heat score rule tables."""

    def __init__(self, config: Optional[DefaultConfig] = None,
                 memory: Optional[SignalMemory] = None):
        self.config = config or get_default_config()
        self.memory = memory or SignalMemory(
            repeat_window_minutes=self.config.memory.repeat_window_minutes,
            alert_cooldown_seconds=self.config.memory.alert_cooldown_seconds,
        )
        self.base_rules = build_base_rules(self.config.signal_points)
        self.adjustment_groups = build_adjustment_groups(self.config.adjustments)

    def score(self, signal: Signal, context: Optional[ScoringContext] = None) -> HeatScoreResult:
        """
        Score one signal.

        The running total is never clamped while rules are applied, so the
        breakdown always sums to raw_score.
        """
        context = context or ScoringContext()
        repeat_count = context.repeat_signal_count
        if repeat_count is None:
            repeat_count = self.memory.count_recent(signal.ticker, signal.timestamp_ms)

        inputs = RuleInput(signal=signal, context=context, repeat_count=repeat_count)
        breakdown: list[BreakdownEntry] = [self._base_entry(signal)]

        for group in self.adjustment_groups:
            breakdown.extend(self._apply_group(group, inputs))

        raw_score = sum(entry.points for entry in breakdown)
        heat_score = clamp_score(raw_score)
        channel_tier = self.route(heat_score, context.on_watchlist)

        result = HeatScoreResult(
            ticker=signal.ticker,
            signal_type=signal.signal_type,
            price=signal.price,
            heat_score=heat_score,
            raw_score=raw_score,
            breakdown=tuple(breakdown),
            meets_threshold=heat_score >= self.config.thresholds.alert_threshold,
            channel_tier=channel_tier,
        )

        logger.debug("Heat score computed",
                     ticker=signal.ticker,
                     signal_type=signal.signal_type.value,
                     heat_score=heat_score,
                     raw_score=raw_score,
                     channel_tier=channel_tier.value,
                     rules_applied=len(breakdown))

        return result

    def route(self, heat_score: int, on_watchlist: bool = False) -> ChannelTier:
        thresholds = self.config.thresholds
        if heat_score >= thresholds.high_conviction_threshold:
            return ChannelTier.HIGH_CONVICTION
        if heat_score >= thresholds.alert_threshold:
            return ChannelTier.STANDARD
        if on_watchlist and heat_score >= thresholds.watchlist_threshold:
            return ChannelTier.WATCHLIST
        return ChannelTier.NONE

    def _base_entry(self, signal: Signal) -> BreakdownEntry:
        if signal.signal_type is SignalType.UNKNOWN:
            raw_type = getattr(signal, "raw_type", "") or "unknown"
            return BreakdownEntry(label=f"Unscored signal type '{raw_type}'", points=0)

        rule = first_base_rule(self.base_rules, signal)
        if rule is None:
            return BreakdownEntry(
                label=f"{signal.signal_type.value} below scoring tier",
                points=0
            )
        return BreakdownEntry(label=rule.label(signal), points=rule.points)

    @staticmethod
    def _apply_group(group: RuleGroup, inputs: RuleInput) -> list[BreakdownEntry]:
        if not group.applies(inputs):
            return []

        entries = []
        for rule in group.rules:
            if rule.predicate(inputs):
                entries.append(BreakdownEntry(
                    label=rule.resolve_label(inputs),
                    points=rule.resolve_points(inputs)
                ))
                if group.exclusive:
                    break

        if not entries:
            label = group.neutral_label(inputs) if callable(group.neutral_label) else group.neutral_label
            entries.append(BreakdownEntry(label=label, points=0))

        return entries
