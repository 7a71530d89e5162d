"""
Heat score rule tables.

Rules are ordered data: `(predicate, points, label)`. The aggregator folds
the base table and then each adjustment group in turn, so every point value
is configuration and every rule can be tested on its own.
"""

import math
from dataclasses import dataclass
from typing import Callable, Optional, Union

from ..config.defaults import AdjustmentPoints, SignalPoints
from ..signals.models import Signal, SignalType
from .context import BlockPattern, ScoringContext


@dataclass(frozen=True)
class RuleInput:
    """Everything an adjustment predicate may look at."""
    signal: Signal
    context: ScoringContext
    repeat_count: int = 0


Points = Union[int, Callable[[RuleInput], int]]
Label = Union[str, Callable[[RuleInput], str]]


@dataclass(frozen=True)
class BaseRule:
    """Base points for one signal type; the first matching rule per type wins."""
    signal_type: SignalType
    predicate: Callable[[Signal], bool]
    points: int
    label: Callable[[Signal], str]


@dataclass(frozen=True)
class AdjustmentRule:
    predicate: Callable[[RuleInput], bool]
    points: Points
    label: Label

    def resolve_points(self, inputs: RuleInput) -> int:
        return self.points(inputs) if callable(self.points) else self.points

    def resolve_label(self, inputs: RuleInput) -> str:
        return self.label(inputs) if callable(self.label) else self.label


@dataclass(frozen=True)
class RuleGroup:
    """
    One scoring step.

    A group only runs when `applies` is true, i.e. its context member was
    supplied. Exclusive groups stop at the first matching rule; cumulative
    groups apply every match. A group that runs but matches nothing still
    records a zero-point entry under `neutral_label`.
    """
    name: str
    applies: Callable[[RuleInput], bool]
    rules: tuple[AdjustmentRule, ...]
    neutral_label: Label
    exclusive: bool = True


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _money(value: float) -> str:
    if value >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"${value / 1_000:.0f}k"
    return f"${value:.0f}"


def build_base_rules(points: SignalPoints) -> tuple[BaseRule, ...]:
    """Ordered base-point table keyed by signal type."""
    return (
        BaseRule(SignalType.VOLUME_SPIKE,
                 lambda s: s.rvol >= points.volume_5x_rvol,
                 points.volume_5x,
                 lambda s: f"{s.rvol:g}x RVOL (extreme)"),
        BaseRule(SignalType.VOLUME_SPIKE,
                 lambda s: s.rvol >= points.volume_3x_rvol,
                 points.volume_3x,
                 lambda s: f"{s.rvol:g}x RVOL spike"),

        BaseRule(SignalType.BLOCK_TRADE,
                 lambda s: s.is_large_block,
                 points.huge_block,
                 lambda s: f"{_money(s.trade_value)} block (huge)"),
        BaseRule(SignalType.BLOCK_TRADE,
                 lambda s: True,
                 points.large_block,
                 lambda s: f"{_money(s.trade_value)} block trade"),

        BaseRule(SignalType.MOMENTUM_SURGE,
                 lambda s: abs(s.price_change_percent) >= points.momentum_major_percent,
                 points.momentum_5pct,
                 lambda s: f"{s.price_change_percent:+.2f}% momentum (strong)"),
        BaseRule(SignalType.MOMENTUM_SURGE,
                 lambda s: abs(s.price_change_percent) >= points.momentum_minor_percent,
                 points.momentum_2pct,
                 lambda s: f"{s.price_change_percent:+.2f}% momentum"),

        BaseRule(SignalType.BREAKOUT,
                 lambda s: True,
                 points.breakout,
                 lambda s: f"Breakout above ${s.resistance:.2f}"),

        BaseRule(SignalType.GAP,
                 lambda s: abs(s.gap_percent) >= points.large_gap_percent,
                 points.large_gap,
                 lambda s: f"{s.gap_percent:+.2f}% gap (large)"),
        BaseRule(SignalType.GAP,
                 lambda s: True,
                 points.gap,
                 lambda s: f"{s.gap_percent:+.2f}% gap"),

        BaseRule(SignalType.VWAP_CROSS,
                 lambda s: True,
                 points.vwap_cross,
                 lambda s: f"VWAP cross {s.cross_direction.value}"),

        BaseRule(SignalType.NEW_HIGH,
                 lambda s: True,
                 points.new_high,
                 lambda s: "New intraday high"),

        BaseRule(SignalType.NEW_LOW,
                 lambda s: True,
                 points.new_low,
                 lambda s: "New intraday low"),

        BaseRule(SignalType.RELATIVE_STRENGTH,
                 lambda s: s.is_outperforming,
                 points.relative_strength,
                 lambda s: f"Outperforming index by {s.relative_strength:.2f}%"),
    )


def _flow_direction_matches(inputs: RuleInput, confirm: bool) -> bool:
    flow = inputs.context.order_flow
    direction = inputs.signal.implied_direction()
    if not flow.has_significant_imbalance or direction is None:
        return False
    return (flow.dominant_direction == direction) is confirm


def _volatility_penalty(adjustments: AdjustmentPoints) -> Callable[[RuleInput], int]:
    def penalty(inputs: RuleInput) -> int:
        multiplier = inputs.context.volatility_regime.position_size_multiplier
        return -round_half_up((1 - multiplier) * adjustments.volatility_penalty_scale)
    return penalty


def build_adjustment_groups(adjustments: AdjustmentPoints) -> tuple[RuleGroup, ...]:
    """Adjustment steps in evaluation order."""
    a = adjustments

    return (
        RuleGroup(
            name="volume_confirmation",
            applies=lambda i: (i.context.volume_confirmation is not None
                               and i.signal.signal_type is not SignalType.VOLUME_SPIKE),
            rules=(
                AdjustmentRule(lambda i: i.context.volume_confirmation.multiple >= a.volume_confirm_5x_multiple,
                               a.volume_confirm_5x,
                               lambda i: f"Confirmed by {i.context.volume_confirmation.multiple:g}x volume"),
                AdjustmentRule(lambda i: i.context.volume_confirmation.multiple >= a.volume_confirm_3x_multiple,
                               a.volume_confirm_3x,
                               lambda i: f"Confirmed by {i.context.volume_confirmation.multiple:g}x volume"),
            ),
            neutral_label=lambda i: f"Volume {i.context.volume_confirmation.multiple:g}x below confirmation",
        ),
        RuleGroup(
            name="repeat_activity",
            applies=lambda i: i.repeat_count > 0,
            rules=(
                AdjustmentRule(lambda i: i.repeat_count >= a.repeat_threshold,
                               a.repeat_activity,
                               lambda i: f"{i.repeat_count} signals in last hour"),
                AdjustmentRule(lambda i: i.repeat_count >= a.repeat_minor_threshold,
                               a.repeat_activity_minor,
                               lambda i: f"{i.repeat_count} signals in last hour"),
            ),
            neutral_label=lambda i: f"{i.repeat_count} signal in last hour",
        ),
        RuleGroup(
            name="earnings",
            applies=lambda i: i.context.earnings is not None,
            rules=(
                AdjustmentRule(lambda i: 0 <= i.context.earnings.days_away <= a.earnings_imminent_days,
                               a.earnings_imminent,
                               lambda i: ("Earnings today - high risk" if i.context.earnings.days_away == 0
                                          else "Earnings tomorrow - high risk")),
                AdjustmentRule(lambda i: 0 <= i.context.earnings.days_away <= a.earnings_window_days,
                               a.earnings_aware,
                               lambda i: f"Earnings in {i.context.earnings.days_away} days - catalyst aware"),
            ),
            neutral_label="Earnings outside the catalyst window",
        ),
        RuleGroup(
            name="sector",
            applies=lambda i: i.context.sector is not None,
            rules=(
                AdjustmentRule(lambda i: True,
                               lambda i: int(i.context.sector.adjustment),
                               lambda i: i.context.sector.reason or "Sector adjustment"),
            ),
            neutral_label="Sector neutral",
        ),
        RuleGroup(
            name="order_flow",
            applies=lambda i: i.context.order_flow is not None,
            rules=(
                AdjustmentRule(lambda i: _flow_direction_matches(i, confirm=True),
                               a.flow_confirm,
                               lambda i: f"Order flow confirms {i.signal.implied_direction().value} bias"),
                AdjustmentRule(lambda i: _flow_direction_matches(i, confirm=False),
                               a.flow_contradict,
                               "Order flow contradicts signal"),
                AdjustmentRule(lambda i: i.context.order_flow.has_absorption,
                               a.flow_absorption,
                               "Strong absorption detected"),
            ),
            neutral_label="Order flow balanced",
            exclusive=False,
        ),
        RuleGroup(
            name="block_activity",
            applies=lambda i: i.context.block_activity is not None,
            rules=(
                AdjustmentRule(lambda i: i.context.block_activity.recent_notional >= a.block_huge_value,
                               a.block_huge,
                               lambda i: f"Huge block activity: {_money(i.context.block_activity.recent_notional)}"),
                AdjustmentRule(lambda i: a.block_large_value <= i.context.block_activity.recent_notional < a.block_huge_value,
                               a.block_large,
                               lambda i: f"Large block activity: {_money(i.context.block_activity.recent_notional)}"),
                AdjustmentRule(lambda i: a.block_small_value <= i.context.block_activity.recent_notional < a.block_large_value,
                               a.block_small,
                               lambda i: f"Block trade detected: {_money(i.context.block_activity.recent_notional)}"),
                AdjustmentRule(lambda i: i.context.block_activity.pattern is BlockPattern.ACCUMULATION,
                               a.accumulation,
                               "Accumulation pattern"),
                AdjustmentRule(lambda i: i.context.block_activity.pattern is BlockPattern.DISTRIBUTION,
                               a.distribution,
                               "Distribution pattern"),
            ),
            neutral_label="No recent block activity",
            exclusive=False,
        ),
        RuleGroup(
            name="volatility_regime",
            applies=lambda i: i.context.volatility_regime is not None,
            rules=(
                AdjustmentRule(lambda i: i.context.volatility_regime.position_size_multiplier < 1,
                               _volatility_penalty(a),
                               lambda i: f"Volatility {i.context.volatility_regime.level} - increased risk"),
            ),
            neutral_label=lambda i: f"Volatility {i.context.volatility_regime.level}",
        ),
        RuleGroup(
            name="trading_phase",
            applies=lambda i: i.context.trading_phase is not None,
            rules=(
                AdjustmentRule(lambda i: i.context.trading_phase.value in a.phase_bonus,
                               lambda i: int(a.phase_bonus[i.context.trading_phase.value]),
                               lambda i: f"Trading phase {i.context.trading_phase.value}"),
            ),
            neutral_label=lambda i: f"Trading phase {i.context.trading_phase.value}",
        ),
        RuleGroup(
            name="market_alignment",
            applies=lambda i: i.context.market_alignment is not None,
            rules=(
                AdjustmentRule(lambda i: i.context.market_alignment.relative_strength,
                               a.relative_strength_bonus,
                               "Relative strength vs index"),
                AdjustmentRule(lambda i: (not i.context.market_alignment.aligned
                                          and i.context.market_alignment.low_confidence),
                               a.contrary_market_penalty,
                               "Against index trend with low confidence"),
            ),
            neutral_label=lambda i: ("Aligned with index" if i.context.market_alignment.aligned
                                     else "Against index trend"),
        ),
    )


def first_base_rule(rules: tuple[BaseRule, ...], signal: Signal) -> Optional[BaseRule]:
    for rule in rules:
        if rule.signal_type is signal.signal_type and rule.predicate(signal):
            return rule
    return None
