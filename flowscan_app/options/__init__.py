"""Options analytics: Black-Scholes pricing, implied volatility and Greeks"""

from .black_scholes import (
    DEFAULT_RISK_FREE_RATE,
    black_scholes_price,
    implied_volatility,
    intrinsic_value,
    normal_cdf,
    normal_pdf,
)
from .greeks import Greeks, Moneyness, compute_greeks, estimate_option_price_move

__all__ = [
    "DEFAULT_RISK_FREE_RATE",
    "black_scholes_price",
    "implied_volatility",
    "intrinsic_value",
    "normal_cdf",
    "normal_pdf",
    "Greeks",
    "Moneyness",
    "compute_greeks",
    "estimate_option_price_move",
]
