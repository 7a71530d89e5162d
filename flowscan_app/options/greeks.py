"""Option Greeks from a solved implied volatility"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .black_scholes import (
    DEFAULT_RISK_FREE_RATE,
    black_scholes_price,
    d1_d2,
    implied_volatility,
    normal_cdf,
    normal_pdf,
)

DAYS_PER_YEAR = 365.0


class Moneyness(str, Enum):
    """Strike position relative to the underlying"""
    DEEP_ITM = "deep_itm"
    ITM = "itm"
    ATM = "atm"
    OTM = "otm"
    DEEP_OTM = "deep_otm"


@dataclass(frozen=True)
class Greeks:
    """Sensitivities of one option at one point in time"""
    spot: float
    strike: float
    days_to_expiry: float
    option_price: float
    is_call: bool
    implied_volatility: float
    theoretical_price: float

    delta: float
    gamma: float
    theta: float            # Per calendar day
    vega: float             # Per 1 vol point
    rho: float              # Per 1 rate point

    moneyness: float        # spot / strike
    moneyness_label: Moneyness
    leverage: float         # |delta| * spot / option_price


def delta(spot: float, strike: float, years_to_expiry: float,
          risk_free_rate: float, volatility: float, is_call: bool = True) -> float:
    if years_to_expiry <= 0:
        if is_call:
            return 1.0 if spot > strike else 0.0
        return -1.0 if spot < strike else 0.0

    d1, _ = d1_d2(spot, strike, years_to_expiry, risk_free_rate, volatility)
    return normal_cdf(d1) if is_call else normal_cdf(d1) - 1.0


def gamma(spot: float, strike: float, years_to_expiry: float,
          risk_free_rate: float, volatility: float) -> float:
    if years_to_expiry <= 0:
        return 0.0

    d1, _ = d1_d2(spot, strike, years_to_expiry, risk_free_rate, volatility)
    return normal_pdf(d1) / (spot * volatility * math.sqrt(years_to_expiry))


def theta(spot: float, strike: float, years_to_expiry: float,
          risk_free_rate: float, volatility: float, is_call: bool = True) -> float:
    """Time decay per calendar day"""
    if years_to_expiry <= 0:
        return 0.0

    d1, d2 = d1_d2(spot, strike, years_to_expiry, risk_free_rate, volatility)
    decay = -(spot * normal_pdf(d1) * volatility) / (2.0 * math.sqrt(years_to_expiry))
    carry = risk_free_rate * strike * math.exp(-risk_free_rate * years_to_expiry)

    if is_call:
        return (decay - carry * normal_cdf(d2)) / DAYS_PER_YEAR
    return (decay + carry * normal_cdf(-d2)) / DAYS_PER_YEAR


def vega(spot: float, strike: float, years_to_expiry: float,
         risk_free_rate: float, volatility: float) -> float:
    """Price change for a 1 point change in implied volatility"""
    if years_to_expiry <= 0:
        return 0.0

    d1, _ = d1_d2(spot, strike, years_to_expiry, risk_free_rate, volatility)
    return spot * math.sqrt(years_to_expiry) * normal_pdf(d1) / 100.0


def rho(spot: float, strike: float, years_to_expiry: float,
        risk_free_rate: float, volatility: float, is_call: bool = True) -> float:
    """Price change for a 1 point change in the risk-free rate"""
    if years_to_expiry <= 0:
        return 0.0

    _, d2 = d1_d2(spot, strike, years_to_expiry, risk_free_rate, volatility)
    discounted = strike * years_to_expiry * math.exp(-risk_free_rate * years_to_expiry)

    if is_call:
        return discounted * normal_cdf(d2) / 100.0
    return -discounted * normal_cdf(-d2) / 100.0


def classify_moneyness(spot: float, strike: float, is_call: bool = True) -> Moneyness:
    ratio = spot / strike
    if ratio > 1.05:
        return Moneyness.DEEP_ITM if is_call else Moneyness.DEEP_OTM
    if ratio > 1.01:
        return Moneyness.ITM if is_call else Moneyness.OTM
    if ratio > 0.99:
        return Moneyness.ATM
    if ratio > 0.95:
        return Moneyness.OTM if is_call else Moneyness.ITM
    return Moneyness.DEEP_OTM if is_call else Moneyness.DEEP_ITM


def compute_greeks(
    spot: float,
    strike: float,
    days_to_expiry: float,
    option_price: float,
    is_call: bool = True,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    max_iterations: int = 100,
    precision: float = 1e-4,
    min_vega: float = 1e-5
) -> Optional[Greeks]:
    """
    Solve implied volatility from an observed premium and derive all Greeks

    Returns:
        Greeks record, or None when implied volatility cannot be solved
        (expired contract, non-positive premium, or vega underflow)
    """
    years = days_to_expiry / DAYS_PER_YEAR
    iv = implied_volatility(
        option_price, spot, strike, years, risk_free_rate, is_call,
        max_iterations=max_iterations, precision=precision, min_vega=min_vega,
    )
    if iv is None or iv <= 0:
        return None

    option_delta = delta(spot, strike, years, risk_free_rate, iv, is_call)

    return Greeks(
        spot=spot,
        strike=strike,
        days_to_expiry=days_to_expiry,
        option_price=option_price,
        is_call=is_call,
        implied_volatility=iv,
        theoretical_price=black_scholes_price(spot, strike, years, risk_free_rate, iv, is_call),
        delta=option_delta,
        gamma=gamma(spot, strike, years, risk_free_rate, iv),
        theta=theta(spot, strike, years, risk_free_rate, iv, is_call),
        vega=vega(spot, strike, years, risk_free_rate, iv),
        rho=rho(spot, strike, years, risk_free_rate, iv, is_call),
        moneyness=spot / strike,
        moneyness_label=classify_moneyness(spot, strike, is_call),
        leverage=abs(option_delta) * spot / option_price,
    )


def estimate_option_price_move(greeks: Greeks, underlying_percent_move: float) -> float:
    """
    Per-share option price change for a percent move in the underlying

    Delta term plus the gamma correction: delta*dS + 0.5*gamma*dS^2.
    """
    price_move = greeks.spot * (underlying_percent_move / 100.0)
    return greeks.delta * price_move + 0.5 * greeks.gamma * price_move * price_move
