"""Black-Scholes pricing and Newton-Raphson implied volatility"""

import math
from typing import Optional

DEFAULT_RISK_FREE_RATE = 0.05

# Abramowitz-Stegun 7.1.26 coefficients
_A1 = 0.254829592
_A2 = -0.284496736
_A3 = 1.421413741
_A4 = -1.453152027
_A5 = 1.061405429
_P = 0.3275911

IV_SEED_BOUNDS = (0.01, 5.0)
IV_STEP_BOUNDS = (0.001, 10.0)


def normal_cdf(x: float) -> float:
    """
    Standard normal cumulative distribution

    Polynomial approximation of erf, absolute error below 1.5e-7.
    """
    sign = -1.0 if x < 0 else 1.0
    x = abs(x) / math.sqrt(2.0)

    t = 1.0 / (1.0 + _P * x)
    y = 1.0 - (((((_A5 * t + _A4) * t) + _A3) * t + _A2) * t + _A1) * t * math.exp(-x * x)

    return 0.5 * (1.0 + sign * y)


def normal_pdf(x: float) -> float:
    """Standard normal probability density"""
    return math.exp(-0.5 * x * x) / math.sqrt(2.0 * math.pi)


def d1_d2(spot: float, strike: float, years_to_expiry: float,
          risk_free_rate: float, volatility: float) -> tuple[float, float]:
    """Black-Scholes d1 and d2 terms. Caller guarantees positive inputs."""
    vol_sqrt_t = volatility * math.sqrt(years_to_expiry)
    d1 = (math.log(spot / strike)
          + (risk_free_rate + volatility * volatility / 2.0) * years_to_expiry) / vol_sqrt_t
    return d1, d1 - vol_sqrt_t


def intrinsic_value(spot: float, strike: float, is_call: bool = True) -> float:
    """Exercise value of an option at expiry"""
    return max(0.0, spot - strike) if is_call else max(0.0, strike - spot)


def black_scholes_price(
    spot: float,
    strike: float,
    years_to_expiry: float,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    volatility: float = 0.35,
    is_call: bool = True
) -> Optional[float]:
    """
    European option price under Black-Scholes

    Args:
        spot: Underlying price
        strike: Strike price
        years_to_expiry: Time to expiration in years
        risk_free_rate: Annualized flat risk-free rate
        volatility: Annualized volatility (0.35 = 35%)
        is_call: Call if True, put otherwise

    Returns:
        Theoretical price; intrinsic value when years_to_expiry <= 0;
        None for non-positive spot or strike, or non-positive volatility
        with time remaining
    """
    if spot <= 0 or strike <= 0:
        return None

    if years_to_expiry <= 0:
        return intrinsic_value(spot, strike, is_call)

    if volatility <= 0:
        return None

    d1, d2 = d1_d2(spot, strike, years_to_expiry, risk_free_rate, volatility)
    discount = math.exp(-risk_free_rate * years_to_expiry)

    if is_call:
        return spot * normal_cdf(d1) - strike * discount * normal_cdf(d2)
    return strike * discount * normal_cdf(-d2) - spot * normal_cdf(-d1)


def implied_volatility(
    observed_price: float,
    spot: float,
    strike: float,
    years_to_expiry: float,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    is_call: bool = True,
    max_iterations: int = 100,
    precision: float = 1e-4,
    min_vega: float = 1e-5
) -> Optional[float]:
    """
    Solve for the volatility that reproduces an observed option price

    Newton-Raphson seeded from the at-the-money approximation
    sqrt(2*pi/T) * price/spot. Each estimate is held inside IV_STEP_BOUNDS.
    When vega (per vol point) falls below min_vega the Newton step is
    useless, so the solve restarts as a bisection over IV_STEP_BOUNDS.

    Returns:
        Implied volatility, the last estimate if the iteration budget runs
        out, or None for invalid inputs or when no volatility inside
        IV_STEP_BOUNDS reaches the observed price
    """
    if years_to_expiry <= 0 or observed_price <= 0 or spot <= 0 or strike <= 0:
        return None

    sigma = math.sqrt(2.0 * math.pi / years_to_expiry) * (observed_price / spot)
    sigma = max(IV_SEED_BOUNDS[0], min(IV_SEED_BOUNDS[1], sigma))

    for _ in range(max_iterations):
        price = black_scholes_price(spot, strike, years_to_expiry, risk_free_rate, sigma, is_call)
        raw_vega = _raw_vega(spot, strike, years_to_expiry, risk_free_rate, sigma)

        if raw_vega / 100.0 < min_vega:
            return _bisect_volatility(observed_price, spot, strike, years_to_expiry,
                                      risk_free_rate, is_call, max_iterations, precision)

        diff = observed_price - price
        if abs(diff) < precision:
            return sigma

        sigma = sigma + diff / raw_vega
        sigma = max(IV_STEP_BOUNDS[0], min(IV_STEP_BOUNDS[1], sigma))

    return sigma


def _bisect_volatility(
    observed_price: float,
    spot: float,
    strike: float,
    years_to_expiry: float,
    risk_free_rate: float,
    is_call: bool,
    max_iterations: int,
    precision: float
) -> Optional[float]:
    """Bracketing fallback; price is monotonic in volatility."""
    low, high = IV_STEP_BOUNDS
    low_price = black_scholes_price(spot, strike, years_to_expiry, risk_free_rate, low, is_call)
    high_price = black_scholes_price(spot, strike, years_to_expiry, risk_free_rate, high, is_call)

    if observed_price < low_price - precision or observed_price > high_price + precision:
        return None

    mid = (low + high) / 2.0
    for _ in range(max_iterations):
        mid = (low + high) / 2.0
        diff = observed_price - black_scholes_price(
            spot, strike, years_to_expiry, risk_free_rate, mid, is_call)
        if abs(diff) < precision:
            return mid
        if diff > 0:
            low = mid
        else:
            high = mid

    return mid


def _raw_vega(spot: float, strike: float, years_to_expiry: float,
              risk_free_rate: float, volatility: float) -> float:
    d1, _ = d1_d2(spot, strike, years_to_expiry, risk_free_rate, volatility)
    return spot * math.sqrt(years_to_expiry) * normal_pdf(d1)
