"""Default configuration parameters for the scoring and paper-trading engine."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class HeatScoreThresholds:
    """Routing thresholds applied to the clamped heat score."""
    high_conviction_threshold: int = 75             # High-conviction channel
    alert_threshold: int = 35                       # Standard alert channel
    watchlist_threshold: int = 25                   # Personal watchlist tickers only


@dataclass(frozen=True)
class SignalPoints:
    """Base points awarded per signal type."""
    # Volume spikes
    volume_3x: int = 20
    volume_5x: int = 30
    volume_3x_rvol: float = 3.0
    volume_5x_rvol: float = 5.0

    # Momentum surges (absolute percent change)
    momentum_2pct: int = 15
    momentum_5pct: int = 25
    momentum_minor_percent: float = 2.0
    momentum_major_percent: float = 5.0

    # Block trades
    large_block: int = 20                           # Block trade > $500k
    huge_block: int = 30                            # Block trade > $1M

    # Price structure
    breakout: int = 20
    gap: int = 15
    large_gap: int = 25
    large_gap_percent: float = 5.0
    vwap_cross: int = 15
    new_high: int = 15
    new_low: int = 10
    relative_strength: int = 20


@dataclass(frozen=True)
class AdjustmentPoints:
    """Contextual adjustments folded into the heat score after the base rule."""
    # Volume confirming a non-volume signal
    volume_confirm_3x: int = 15
    volume_confirm_5x: int = 20
    volume_confirm_3x_multiple: float = 3.0
    volume_confirm_5x_multiple: float = 5.0

    # Repeat activity for the same ticker
    repeat_activity: int = 25
    repeat_activity_minor: int = 15
    repeat_threshold: int = 3
    repeat_minor_threshold: int = 2

    # Earnings proximity
    earnings_imminent: int = -10                    # Same or next day
    earnings_aware: int = 5
    earnings_imminent_days: int = 1
    earnings_window_days: int = 5

    # Order flow
    flow_confirm: int = 10
    flow_contradict: int = -5
    flow_absorption: int = 5

    # Block-trade memory
    block_small: int = 5
    block_large: int = 10
    block_huge: int = 15
    block_small_value: float = 500_000.0
    block_large_value: float = 1_000_000.0
    block_huge_value: float = 5_000_000.0
    accumulation: int = 10
    distribution: int = -5

    # Volatility regime: penalty = round((1 - multiplier) * scale)
    volatility_penalty_scale: int = 10

    # Trading phase and index alignment
    phase_bonus: dict = field(default_factory=lambda: {
        "opening_drive": 10,
        "power_hour": 5,
        "midday": -10,
    })
    relative_strength_bonus: int = 10
    contrary_market_penalty: int = -10


@dataclass(frozen=True)
class RecommendationParams:
    """Confidence adjustments and action tier thresholds."""
    phase_adjustment: dict = field(default_factory=lambda: {
        "opening_drive": 15,
        "morning": 5,
        "power_hour": 10,
        "midday": -25,
    })

    index_aligned: int = 15
    index_contrary: int = -15
    index_relative_strength: int = 5

    sector_aligned: int = 12
    sector_opposed: int = -12

    level_break: int = 15
    level_bounce: int = 10

    # (minimum multiple, points), checked in order
    volume_tiers: tuple = ((5.0, 15), (3.0, 10), (2.0, 5))

    signal_type_bonus: dict = field(default_factory=lambda: {
        "breakout": 8,
        "block_trade": 7,
        "momentum_surge": 5,
        "vwap_cross": 3,
    })

    earnings_imminent: int = -25
    earnings_imminent_days: int = 1
    earnings_near: int = -12
    earnings_near_days: int = 3

    confluence_bonus: int = 10
    confluence_min_factors: int = 4

    warning_penalty: int = 3                        # Per warning, tier mapping only
    tier_thresholds: dict = field(default_factory=lambda: {
        "fire": 75,
        "strong": 65,
        "good": 50,
        "lean": 35,
        "watch": 20,
    })


@dataclass(frozen=True)
class OptionSelectionParams:
    """Option contract selection by confidence tier."""
    # tier -> (OTM fraction, days to expiration)
    tier_contracts: dict = field(default_factory=lambda: {
        "fire": (0.005, 1),
        "strong": (0.01, 2),
        "good": (0.015, 5),
        "default": (0.02, 7),
    })
    fire_opening_drive_dte: int = 0                 # Same-day at the top tier

    # (price ceiling, strike interval), checked in order
    strike_intervals: tuple = ((20.0, 1.0), (200.0, 2.5))
    top_strike_interval: float = 5.0

    assumed_volatility: float = 0.35
    contract_multiplier: int = 100


@dataclass(frozen=True)
class TargetParams:
    """Target, partial-target and stop percents by confidence tier."""
    tier_targets: dict = field(default_factory=lambda: {
        "fire": {"target": 0.015, "partial": 0.008, "stop": 0.010},
        "strong": {"target": 0.018, "partial": 0.009, "stop": 0.012},
        "good": {"target": 0.022, "partial": 0.011, "stop": 0.015},
        "default": {"target": 0.025, "partial": 0.0125, "stop": 0.018},
    })


@dataclass(frozen=True)
class PaperTradingParams:
    """Simulated position sizing and tick evaluation parameters."""
    position_notional: float = 2000.0
    leverage_multipliers: dict = field(default_factory=lambda: {
        "fire": 4.0,
        "strong": 3.75,
        "default": 3.5,
    })
    min_open_confidence: int = 60

    trailing_activation_percent: float = 1.5       # Unrealized stock P&L to start trailing
    trailing_distance_percent: float = 1.0         # Candidate stop distance behind price

    near_target_fraction: float = 0.20
    near_stop_fraction: float = 0.30


@dataclass(frozen=True)
class RiskParams:
    """Daily circuit breakers."""
    max_daily_loss_dollars: float = 500.0
    max_consecutive_losses: int = 3


@dataclass(frozen=True)
class OptionsParams:
    """Black-Scholes and implied volatility solver parameters."""
    risk_free_rate: float = 0.05
    iv_max_iterations: int = 100
    iv_precision: float = 1e-4
    min_vega: float = 1e-5


@dataclass(frozen=True)
class MemoryParams:
    """Per-ticker signal memory parameters."""
    repeat_window_minutes: int = 60
    alert_cooldown_seconds: int = 300


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    thresholds: HeatScoreThresholds
    signal_points: SignalPoints
    adjustments: AdjustmentPoints
    recommendation: RecommendationParams
    option_selection: OptionSelectionParams
    targets: TargetParams
    paper_trading: PaperTradingParams
    risk: RiskParams
    options: OptionsParams
    memory: MemoryParams


# The merged, validated configuration has the same shape as the defaults.
EngineConfig = DefaultConfig


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        thresholds=HeatScoreThresholds(),
        signal_points=SignalPoints(),
        adjustments=AdjustmentPoints(),
        recommendation=RecommendationParams(),
        option_selection=OptionSelectionParams(),
        targets=TargetParams(),
        paper_trading=PaperTradingParams(),
        risk=RiskParams(),
        options=OptionsParams(),
        memory=MemoryParams(),
    )
