"""
FlowScan Engine - Signal Scoring and Paper Position Lifecycle

Turns detected equity market events into bounded heat scores, derives
option trade recommendations from them, and simulates the resulting paper
positions tick by tick under daily risk circuit breakers.
"""

__version__ = "0.1.0"
__author__ = "FlowScan Team"
