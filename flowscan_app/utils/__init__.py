"""
Utility functions module.

Time Semantics:
- Market timestamps on signals and ticks are ALWAYS authoritative
- Wall-clock time is only used as a fallback for inputs without one
- Trade dates are exchange-local calendar dates
- Option expirations never land on a weekend
"""
