"""Option contract selection, price targets and expected P&L"""

import math
from datetime import date
from typing import Optional

import structlog

from ..config.defaults import OptionSelectionParams, OptionsParams, PaperTradingParams, TargetParams
from ..errors import GracefulDegradationError
from ..options import black_scholes_price, compute_greeks, estimate_option_price_move
from ..scoring.context import TradingPhase
from ..signals.models import Direction
from ..utils.time import expiration_after
from .models import (
    ActionTier,
    ExpectedPnL,
    LeverageSource,
    OptionContractSuggestion,
    OptionType,
)

logger = structlog.get_logger(__name__)

# Same-day contracts are priced with half a session left
MIN_PRICING_DAYS = 0.5
MIN_PREMIUM = 0.01


def tier_key(tier: ActionTier, table: dict) -> str:
    """Table key for a tier, falling back to 'default'."""
    return tier.value if tier.value in table else "default"


def strike_interval(price: float, params: OptionSelectionParams) -> float:
    """Listed strike spacing for an underlying price."""
    for ceiling, interval in params.strike_intervals:
        if price < ceiling:
            return interval
    return params.top_strike_interval


def select_strike(price: float, direction: Direction, otm_fraction: float,
                  params: OptionSelectionParams) -> float:
    """
    First listed strike beyond the OTM offset.

    Bullish strikes round up from price * (1 + otm), bearish round down from
    price * (1 - otm).
    """
    interval = strike_interval(price, params)
    if direction is Direction.BULLISH:
        raw = price * (1 + otm_fraction)
        steps = math.ceil(round(raw / interval, 9))
    else:
        raw = price * (1 - otm_fraction)
        steps = math.floor(round(raw / interval, 9))
    return round(max(steps, 1) * interval, 2)


def suggest_option(
    price: float,
    direction: Direction,
    tier: ActionTier,
    as_of: date,
    trading_phase: Optional[TradingPhase],
    selection: OptionSelectionParams,
    options: OptionsParams,
    position_notional: float
) -> OptionContractSuggestion:
    """Pick strike, expiration and size for the recommended contract."""
    otm_fraction, dte = selection.tier_contracts[tier_key(tier, selection.tier_contracts)]
    if tier is ActionTier.FIRE and trading_phase is TradingPhase.OPENING_DRIVE:
        dte = selection.fire_opening_drive_dte

    expiration = expiration_after(as_of, int(dte))
    days_to_expiration = (expiration - as_of).days
    is_call = direction is Direction.BULLISH
    strike = select_strike(price, direction, otm_fraction, selection)

    premium = black_scholes_price(
        price, strike,
        max(days_to_expiration, MIN_PRICING_DAYS) / 365.0,
        options.risk_free_rate,
        selection.assumed_volatility,
        is_call,
    )
    premium = max(MIN_PREMIUM, round(premium or 0.0, 2))
    contracts = max(1, math.floor(position_notional / (premium * selection.contract_multiplier)))

    return OptionContractSuggestion(
        option_type=OptionType.CALL if is_call else OptionType.PUT,
        strike=strike,
        expiration_date=expiration,
        days_to_expiration=days_to_expiration,
        estimated_premium=premium,
        suggested_contracts=contracts,
    )


def compute_targets(entry: float, direction: Direction, tier: ActionTier,
                    params: TargetParams) -> tuple[float, float, float]:
    """Partial target, target and stop for an entry, rounded to cents."""
    pcts = params.tier_targets[tier_key(tier, params.tier_targets)]
    sign = direction.sign
    partial = round(entry * (1 + sign * pcts["partial"]), 2)
    target = round(entry * (1 + sign * pcts["target"]), 2)
    stop = round(entry * (1 - sign * pcts["stop"]), 2)
    return partial, target, stop


def risk_reward_ratio(entry: float, target: float, stop: float) -> Optional[float]:
    """|target - entry| / |entry - stop|; None when the stop distance is zero."""
    risk = abs(entry - stop)
    if risk == 0:
        return None
    return round(abs(target - entry) / risk, 2)


def leverage_for(tier: ActionTier, params: PaperTradingParams) -> float:
    return float(params.leverage_multipliers[tier_key(tier, params.leverage_multipliers)])


def expected_pnl(
    entry: float,
    target: float,
    stop: float,
    direction: Direction,
    option: Optional[OptionContractSuggestion],
    leverage_multiplier: float,
    position_notional: float,
    options: OptionsParams,
    option_quote: Optional[float] = None
) -> ExpectedPnL:
    """
    Option P&L at target and at stop.

    Uses the delta-gamma estimate when Greeks can be solved for the contract,
    otherwise the fixed leverage multiplier. Loss is capped at 100%.
    """
    stock_gain = abs(target - entry) / entry * 100.0
    stock_loss = abs(entry - stop) / entry * 100.0

    try:
        gain_pct, loss_pct = _greeks_pnl(entry, stock_gain, stock_loss, direction,
                                         option, options, option_quote)
        source = LeverageSource.GREEKS
    except GracefulDegradationError as e:
        logger.debug("Greeks unavailable, using fixed leverage",
                     reason=str(e),
                     fallback=e.fallback_strategy,
                     leverage_multiplier=leverage_multiplier)
        gain_pct = stock_gain * leverage_multiplier
        loss_pct = stock_loss * leverage_multiplier
        source = LeverageSource.FIXED

    loss_pct = min(100.0, loss_pct)

    return ExpectedPnL(
        gain_percent=round(gain_pct, 2),
        loss_percent=round(loss_pct, 2),
        gain_dollars=round(gain_pct / 100.0 * position_notional, 2),
        loss_dollars=round(loss_pct / 100.0 * position_notional, 2),
        leverage_source=source,
    )


def _greeks_pnl(
    entry: float,
    stock_gain: float,
    stock_loss: float,
    direction: Direction,
    option: Optional[OptionContractSuggestion],
    options: OptionsParams,
    option_quote: Optional[float]
) -> tuple[float, float]:
    if option is None:
        raise GracefulDegradationError(
            "No option contract to price",
            degraded_functionality="greeks_pnl",
            fallback_strategy="fixed_leverage"
        )

    premium = option_quote if option_quote is not None else option.estimated_premium
    greeks = compute_greeks(
        entry,
        option.strike,
        max(option.days_to_expiration, MIN_PRICING_DAYS),
        premium,
        option.option_type is OptionType.CALL,
        options.risk_free_rate,
        max_iterations=options.iv_max_iterations,
        precision=options.iv_precision,
        min_vega=options.min_vega,
    )
    if greeks is None:
        raise GracefulDegradationError(
            f"Implied volatility not solvable for premium {premium}",
            degraded_functionality="greeks_pnl",
            fallback_strategy="fixed_leverage"
        )

    sign = direction.sign
    gain_move = estimate_option_price_move(greeks, sign * stock_gain)
    loss_move = estimate_option_price_move(greeks, -sign * stock_loss)

    gain_pct = max(0.0, gain_move / premium * 100.0)
    loss_pct = max(0.0, -loss_move / premium * 100.0)
    return gain_pct, loss_pct
