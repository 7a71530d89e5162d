"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_thresholds(params: dict[str, Any]) -> list[ValidationError]:
        """Validate heat-score routing thresholds."""
        errors = []

        for name in ("high_conviction_threshold", "alert_threshold", "watchlist_threshold"):
            if name in params:
                value = params[name]
                if not _is_int(value) or value < 0 or value > 100:
                    errors.append(ValidationError(
                        field=f"thresholds.{name}",
                        message="Must be an integer between 0 and 100",
                        value=value
                    ))

        high = params.get("high_conviction_threshold")
        alert = params.get("alert_threshold")
        watch = params.get("watchlist_threshold")
        if _is_int(high) and _is_int(alert) and _is_int(watch):
            if not high >= alert >= watch:
                errors.append(ValidationError(
                    field="thresholds",
                    message="Must satisfy high_conviction >= alert >= watchlist",
                    value=(high, alert, watch)
                ))

        return errors

    @staticmethod
    def validate_points(section: str, params: dict[str, Any]) -> list[ValidationError]:
        """Validate a table of integer point values."""
        errors = []

        for name, value in params.items():
            if isinstance(value, dict):
                for key, points in value.items():
                    if not _is_int(points):
                        errors.append(ValidationError(
                            field=f"{section}.{name}.{key}",
                            message="Must be an integer number of points",
                            value=points
                        ))
            elif not _is_number(value):
                errors.append(ValidationError(
                    field=f"{section}.{name}",
                    message="Must be a number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_recommendation(params: dict[str, Any]) -> list[ValidationError]:
        """Validate recommendation tier thresholds."""
        errors = []

        # Tier thresholds must be descending in the fixed tier order
        if "tier_thresholds" in params:
            tiers = params["tier_thresholds"]
            order = ["fire", "strong", "good", "lean", "watch"]
            if not isinstance(tiers, dict) or set(tiers) != set(order):
                errors.append(ValidationError(
                    field="recommendation.tier_thresholds",
                    message=f"Must define exactly {order}",
                    value=tiers
                ))
            else:
                values = [tiers[name] for name in order]
                if not all(_is_int(v) for v in values) or values != sorted(values, reverse=True):
                    errors.append(ValidationError(
                        field="recommendation.tier_thresholds",
                        message="Must be integers descending from fire to watch",
                        value=tiers
                    ))

        if "warning_penalty" in params:
            value = params["warning_penalty"]
            if not _is_int(value) or value < 0:
                errors.append(ValidationError(
                    field="recommendation.warning_penalty",
                    message="Must be a non-negative integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_option_selection(params: dict[str, Any]) -> list[ValidationError]:
        """Validate option selection parameters."""
        errors = []

        if "tier_contracts" in params:
            contracts = params["tier_contracts"]
            if not isinstance(contracts, dict) or "default" not in contracts:
                errors.append(ValidationError(
                    field="option_selection.tier_contracts",
                    message="Must be a mapping with a 'default' entry",
                    value=contracts
                ))
            else:
                for tier, entry in contracts.items():
                    valid = (
                        isinstance(entry, (list, tuple)) and len(entry) == 2
                        and _is_number(entry[0]) and 0 <= entry[0] < 1
                        and _is_int(entry[1]) and entry[1] >= 0
                    )
                    if not valid:
                        errors.append(ValidationError(
                            field=f"option_selection.tier_contracts.{tier}",
                            message="Must be [otm_fraction in [0, 1), non-negative dte]",
                            value=entry
                        ))

        if "assumed_volatility" in params:
            value = params["assumed_volatility"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="option_selection.assumed_volatility",
                    message="Must be a positive number",
                    value=value
                ))

        if "top_strike_interval" in params:
            value = params["top_strike_interval"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="option_selection.top_strike_interval",
                    message="Must be a positive number",
                    value=value
                ))

        if "contract_multiplier" in params:
            value = params["contract_multiplier"]
            if not _is_int(value) or value <= 0:
                errors.append(ValidationError(
                    field="option_selection.contract_multiplier",
                    message="Must be a positive integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_targets(params: dict[str, Any]) -> list[ValidationError]:
        """Validate tier target percents."""
        errors = []

        tiers = params.get("tier_targets")
        if tiers is None:
            return errors

        if not isinstance(tiers, dict) or "default" not in tiers:
            return [ValidationError(
                field="targets.tier_targets",
                message="Must be a mapping with a 'default' entry",
                value=tiers
            )]

        for tier, pcts in tiers.items():
            if not isinstance(pcts, dict) or set(pcts) != {"target", "partial", "stop"}:
                errors.append(ValidationError(
                    field=f"targets.tier_targets.{tier}",
                    message="Must define target, partial and stop",
                    value=pcts
                ))
                continue
            for key, value in pcts.items():
                if not _is_number(value) or value <= 0 or value >= 1:
                    errors.append(ValidationError(
                        field=f"targets.tier_targets.{tier}.{key}",
                        message="Must be a fraction between 0 and 1",
                        value=value
                    ))

        return errors

    @staticmethod
    def validate_paper_trading(params: dict[str, Any]) -> list[ValidationError]:
        """Validate paper trading parameters."""
        errors = []

        if "position_notional" in params:
            value = params["position_notional"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="paper_trading.position_notional",
                    message="Must be a positive number",
                    value=value
                ))

        if "leverage_multipliers" in params:
            value = params["leverage_multipliers"]
            if not isinstance(value, dict) or "default" not in value:
                errors.append(ValidationError(
                    field="paper_trading.leverage_multipliers",
                    message="Must be a mapping with a 'default' entry",
                    value=value
                ))
            else:
                for tier, multiplier in value.items():
                    if not _is_number(multiplier) or multiplier <= 0:
                        errors.append(ValidationError(
                            field=f"paper_trading.leverage_multipliers.{tier}",
                            message="Must be a positive number",
                            value=multiplier
                        ))

        if "min_open_confidence" in params:
            value = params["min_open_confidence"]
            if not _is_int(value) or value < 0 or value > 100:
                errors.append(ValidationError(
                    field="paper_trading.min_open_confidence",
                    message="Must be an integer between 0 and 100",
                    value=value
                ))

        for name in ("trailing_activation_percent", "trailing_distance_percent"):
            if name in params:
                value = params[name]
                if not _is_number(value) or value <= 0:
                    errors.append(ValidationError(
                        field=f"paper_trading.{name}",
                        message="Must be a positive number",
                        value=value
                    ))

        for name in ("near_target_fraction", "near_stop_fraction"):
            if name in params:
                value = params[name]
                if not _is_number(value) or value < 0 or value > 1:
                    errors.append(ValidationError(
                        field=f"paper_trading.{name}",
                        message="Must be a number between 0 and 1",
                        value=value
                    ))

        return errors

    @staticmethod
    def validate_risk(params: dict[str, Any]) -> list[ValidationError]:
        """Validate daily circuit breaker parameters."""
        errors = []

        if "max_daily_loss_dollars" in params:
            value = params["max_daily_loss_dollars"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="risk.max_daily_loss_dollars",
                    message="Must be a positive number",
                    value=value
                ))

        if "max_consecutive_losses" in params:
            value = params["max_consecutive_losses"]
            if not _is_int(value) or value <= 0:
                errors.append(ValidationError(
                    field="risk.max_consecutive_losses",
                    message="Must be a positive integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_options(params: dict[str, Any]) -> list[ValidationError]:
        """Validate Black-Scholes and IV solver parameters."""
        errors = []

        if "risk_free_rate" in params:
            value = params["risk_free_rate"]
            if not _is_number(value) or value < 0 or value > 1:
                errors.append(ValidationError(
                    field="options.risk_free_rate",
                    message="Must be a number between 0 and 1",
                    value=value
                ))

        if "iv_max_iterations" in params:
            value = params["iv_max_iterations"]
            if not _is_int(value) or value <= 0:
                errors.append(ValidationError(
                    field="options.iv_max_iterations",
                    message="Must be a positive integer",
                    value=value
                ))

        for name in ("iv_precision", "min_vega"):
            if name in params:
                value = params[name]
                if not _is_number(value) or value <= 0:
                    errors.append(ValidationError(
                        field=f"options.{name}",
                        message="Must be a positive number",
                        value=value
                    ))

        return errors

    @staticmethod
    def validate_memory(params: dict[str, Any]) -> list[ValidationError]:
        """Validate signal memory windows."""
        errors = []

        for name in ("repeat_window_minutes", "alert_cooldown_seconds"):
            if name in params:
                value = params[name]
                if not _is_int(value) or value < 0:
                    errors.append(ValidationError(
                        field=f"memory.{name}",
                        message="Must be a non-negative integer",
                        value=value
                    ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        for section, value in config.items():
            if not isinstance(value, dict):
                errors.append(ValidationError(
                    field=section,
                    message="Must be a mapping of options",
                    value=value
                ))
        if errors:
            return errors

        if "thresholds" in config:
            errors.extend(ConfigValidator.validate_thresholds(config["thresholds"]))

        if "signal_points" in config:
            errors.extend(ConfigValidator.validate_points("signal_points", config["signal_points"]))

        if "adjustments" in config:
            errors.extend(ConfigValidator.validate_points("adjustments", config["adjustments"]))

        if "recommendation" in config:
            errors.extend(ConfigValidator.validate_recommendation(config["recommendation"]))

        if "option_selection" in config:
            errors.extend(ConfigValidator.validate_option_selection(config["option_selection"]))

        if "targets" in config:
            errors.extend(ConfigValidator.validate_targets(config["targets"]))

        if "paper_trading" in config:
            errors.extend(ConfigValidator.validate_paper_trading(config["paper_trading"]))

        if "risk" in config:
            errors.extend(ConfigValidator.validate_risk(config["risk"]))

        if "options" in config:
            errors.extend(ConfigValidator.validate_options(config["options"]))

        if "memory" in config:
            errors.extend(ConfigValidator.validate_memory(config["memory"]))

        return errors
