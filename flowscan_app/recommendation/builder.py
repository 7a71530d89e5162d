"""
Trade recommendation builder.

Starts from the heat score, applies a fixed sequence of signed confidence
adjustments, maps the result to an action tier and resolves the option
contract, price targets and expected P&L for that tier.
"""

from dataclasses import dataclass, field
from typing import Optional

from ..config.defaults import DefaultConfig, get_default_config
from ..logging.config import get_scoring_logger
from ..signals.models import Direction
from ..utils.time import trade_date_for
from .contracts import (
    compute_targets,
    expected_pnl,
    leverage_for,
    risk_reward_ratio,
    suggest_option,
)
from .models import (
    ActionTier,
    LevelType,
    Recommendation,
    RecommendationRequest,
)

logger = get_scoring_logger(__name__)


@dataclass
class ConfidenceTally:
    """Running confidence with the reasons behind each adjustment."""
    score: int
    factors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def factor(self, points: int, reason: str) -> None:
        self.score += points
        self.factors.append(reason)

    def warn(self, points: int, reason: str) -> None:
        self.score += points
        self.warnings.append(reason)


class RecommendationBuilder:
    """Builds one directional recommendation per routed heat score."""

    def __init__(self, config: Optional[DefaultConfig] = None):
        self.config = config or get_default_config()

    def build(self, request: RecommendationRequest) -> Optional[Recommendation]:
        """
        Build the recommendation for one request.

        Returns None for a non-positive price; that input cannot be priced.
        """
        if request.price <= 0:
            logger.info("Recommendation skipped for invalid price",
                        ticker=request.ticker, price=request.price)
            return None

        direction = request.direction or Direction.from_change(request.price_change_percent)
        tally = self.adjust_confidence(request, direction)
        confidence = max(0, min(100, tally.score))
        tier = self.action_tier(confidence, len(tally.warnings))

        as_of = request.as_of or trade_date_for()
        paper = self.config.paper_trading

        option = suggest_option(
            request.price, direction, tier, as_of, request.trading_phase,
            self.config.option_selection, self.config.options, paper.position_notional,
        )
        partial, target, stop = compute_targets(request.price, direction, tier, self.config.targets)
        leverage = leverage_for(tier, paper)
        pnl = expected_pnl(
            request.price, target, stop, direction, option, leverage,
            paper.position_notional, self.config.options, request.option_quote,
        )

        recommendation = Recommendation(
            ticker=request.ticker,
            direction=direction,
            confidence_score=confidence,
            action_tier=tier,
            entry_price=request.price,
            partial_target_price=partial,
            target_price=target,
            stop_price=stop,
            risk_reward_ratio=risk_reward_ratio(request.price, target, stop),
            option_suggestion=option,
            expected_pnl=pnl,
            leverage_multiplier=leverage,
            factors=tuple(tally.factors),
            warnings=tuple(tally.warnings),
        )

        logger.info("Recommendation built",
                    ticker=request.ticker,
                    direction=direction.value,
                    heat_score=request.heat_score,
                    confidence=confidence,
                    action_tier=tier.value,
                    factors=len(tally.factors),
                    warnings=len(tally.warnings),
                    leverage_source=pnl.leverage_source.value)

        return recommendation

    def adjust_confidence(self, request: RecommendationRequest,
                          direction: Direction) -> ConfidenceTally:
        """Apply every confidence adjustment in order; the score is not clamped here."""
        params = self.config.recommendation
        tally = ConfidenceTally(score=request.heat_score)
        bullish = direction is Direction.BULLISH

        # Trading phase
        phase = request.trading_phase
        if phase is not None and phase.value in params.phase_adjustment:
            points = int(params.phase_adjustment[phase.value])
            if points < 0:
                tally.warn(points, f"{phase.value} chop - higher false signal risk")
            elif points > 0:
                tally.factor(points, f"{phase.value} session strength")

        # Index alignment
        index = request.index_alignment
        if index is not None and index.direction is not None:
            if index.direction is direction:
                tally.factor(params.index_aligned, f"Index aligned ({index.direction.value})")
            elif index.relative_strength_percent * direction.sign > 0:
                tally.factor(params.index_relative_strength,
                             f"Relative strength vs index ({index.relative_strength_percent:+.2f}%)")
            else:
                tally.warn(params.index_contrary, "Moving against index trend")

        # Sector
        sector = request.sector_strength
        if sector is not None:
            name = sector.sector or "sector"
            if (sector.is_hot and bullish) or (sector.is_cold and not bullish):
                tally.factor(params.sector_aligned,
                             f"Sector confirms ({name} {sector.change_percent:+.2f}%)")
            elif (sector.is_cold and bullish) or (sector.is_hot and not bullish):
                tally.warn(params.sector_opposed, f"Against {name} trend")

        # Key levels
        level = request.key_level
        if level is not None:
            with_trade = LevelType.RESISTANCE if bullish else LevelType.SUPPORT
            if level.level_type is with_trade and level.breaking:
                tally.factor(params.level_break, f"Breaking {level.level_name}")
            elif level.level_type is not with_trade and not level.breaking:
                tally.factor(params.level_bounce, f"Bouncing off {level.level_name}")
            elif level.level_type is with_trade:
                tally.warnings.append(f"Near {level.level_type.value} at {level.level_name}")

        # Volume
        for multiple, points in params.volume_tiers:
            if request.volume_multiplier >= multiple:
                tally.factor(int(points), f"Volume {request.volume_multiplier:.1f}x")
                break

        # Signal type
        bonus = params.signal_type_bonus.get(request.signal_type.value)
        if bonus:
            tally.factor(int(bonus), f"{request.signal_type.value} pattern")

        # Earnings
        days = request.earnings_days_away
        if days is not None and days >= 0:
            if days <= params.earnings_imminent_days:
                tally.warn(params.earnings_imminent, "Earnings imminent - extreme risk")
            elif days <= params.earnings_near_days:
                tally.warn(params.earnings_near, f"Earnings in {days} days")

        # Confluence
        if len(tally.factors) >= params.confluence_min_factors:
            tally.factor(params.confluence_bonus, f"{len(tally.factors)}-factor confluence")

        return tally

    def action_tier(self, confidence: int, warning_count: int) -> ActionTier:
        """First tier whose threshold the warning-adjusted confidence reaches."""
        params = self.config.recommendation
        adjusted = confidence - params.warning_penalty * warning_count
        for tier in (ActionTier.FIRE, ActionTier.STRONG, ActionTier.GOOD,
                     ActionTier.LEAN, ActionTier.WATCH):
            if adjusted >= params.tier_thresholds[tier.value]:
                return tier
        return ActionTier.AVOID
