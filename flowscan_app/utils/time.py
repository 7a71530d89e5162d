"""
Time semantics utilities for market vs wall-clock time handling.

Market timestamps carried on signals and ticks are authoritative. Wall-clock
time is only a fallback when an input arrives without a timestamp. Trade dates
are calendar dates in the exchange time zone.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

MARKET_TIMEZONE = ZoneInfo("America/New_York")


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def get_market_time(timestamp_ms: Optional[int] = None) -> datetime:
    """
    Get the market time, preferring a market timestamp over wall-clock time.

    Args:
        timestamp_ms: Optional market timestamp in epoch milliseconds

    Returns:
        Market time as UTC datetime, falling back to wall-clock time if unavailable
    """
    if timestamp_ms is not None:
        return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)

    return datetime.now(timezone.utc)


def trade_date_for(timestamp_ms: Optional[int] = None) -> date:
    """Exchange-local calendar date for a market timestamp."""
    return get_market_time(timestamp_ms).astimezone(MARKET_TIMEZONE).date()


def roll_past_weekend(day: date) -> date:
    """Move a Saturday or Sunday forward to the following Monday."""
    while day.weekday() >= 5:
        day += timedelta(days=1)
    return day


def expiration_after(as_of: date, days_to_expiration: int) -> date:
    """Calendar expiration `days_to_expiration` days out, never on a weekend."""
    return roll_past_weekend(as_of + timedelta(days=days_to_expiration))

