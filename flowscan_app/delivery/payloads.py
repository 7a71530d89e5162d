"""Plain dict alert payloads; every payload carries an "event" key."""

from typing import Any, Optional

from ..recommendation.models import Recommendation
from ..scoring.heat_score import HeatScoreResult
from ..state.models import ClosedTrade, PaperPosition, ProximityAlert, TrailingStopUpdate

HEAT_ALERT = "heat_alert"
POSITION_OPENED = "position_opened"
POSITION_CLOSED = "position_closed"
PROXIMITY_ALERT = "proximity_alert"
TRAILING_STOP_UPDATE = "trailing_stop_update"
DAILY_RECAP = "daily_recap"


def recommendation_payload(rec: Recommendation) -> dict[str, Any]:
    option = rec.option_suggestion
    profile = rec.tier_profile
    return {
        "direction": rec.direction.value,
        "confidence_score": rec.confidence_score,
        "action_tier": rec.action_tier.value,
        "message": profile.message,
        "urgency": profile.urgency,
        "entry_price": rec.entry_price,
        "partial_target_price": rec.partial_target_price,
        "target_price": rec.target_price,
        "stop_price": rec.stop_price,
        "risk_reward_ratio": rec.risk_reward_ratio,
        "leverage_multiplier": rec.leverage_multiplier,
        "option": {
            "type": option.option_type.value,
            "strike": option.strike,
            "expiration_date": option.expiration_date.isoformat(),
            "days_to_expiration": option.days_to_expiration,
            "estimated_premium": option.estimated_premium,
            "suggested_contracts": option.suggested_contracts,
        } if option else None,
        "expected_pnl": {
            "gain_percent": rec.expected_pnl.gain_percent,
            "loss_percent": rec.expected_pnl.loss_percent,
            "gain_dollars": rec.expected_pnl.gain_dollars,
            "loss_dollars": rec.expected_pnl.loss_dollars,
            "leverage_source": rec.expected_pnl.leverage_source.value,
        },
        "factors": list(rec.factors),
        "warnings": list(rec.warnings),
    }


def heat_alert(result: HeatScoreResult, recommendation: Optional[Recommendation] = None) -> dict[str, Any]:
    payload = {
        "event": HEAT_ALERT,
        "ticker": result.ticker,
        "signal_type": result.signal_type.value,
        "price": result.price,
        "heat_score": result.heat_score,
        "raw_score": result.raw_score,
        "channel_tier": result.channel_tier.value,
        "breakdown": [{"label": e.label, "points": e.points} for e in result.breakdown],
    }
    if recommendation is not None:
        payload["recommendation"] = recommendation_payload(recommendation)
    return payload


def position_opened(position: PaperPosition) -> dict[str, Any]:
    return {"event": POSITION_OPENED, **position.to_dict()}


def position_closed(trade: ClosedTrade) -> dict[str, Any]:
    return {
        "event": POSITION_CLOSED,
        "position_id": trade.position_id,
        "ticker": trade.ticker,
        "direction": trade.direction.value,
        "entry_price": trade.entry_price,
        "exit_price": trade.exit_price,
        "exit_reason": trade.exit_reason.value,
        "stock_pnl_percent": trade.stock_pnl_percent,
        "option_pnl_percent": trade.option_pnl_percent,
        "pnl_dollars": trade.pnl_dollars,
        "confidence_score": trade.confidence_score,
        "action_tier": trade.action_tier,
    }


def proximity_alert(alert: ProximityAlert) -> dict[str, Any]:
    return {
        "event": PROXIMITY_ALERT,
        "kind": alert.kind.value,
        "position_id": alert.position_id,
        "ticker": alert.ticker,
        "price": alert.price,
        "level": alert.level,
        "remaining": alert.remaining,
        "stock_pnl_percent": alert.stock_pnl_percent,
    }


def trailing_stop_update(update: TrailingStopUpdate) -> dict[str, Any]:
    return {
        "event": TRAILING_STOP_UPDATE,
        "position_id": update.position_id,
        "ticker": update.ticker,
        "previous_stop": update.previous_stop,
        "new_stop": update.new_stop,
        "price": update.price,
        "stock_pnl_percent": update.stock_pnl_percent,
    }
