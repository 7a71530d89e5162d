"""Signal records and classification of raw detections"""

from .catalog import SignalCatalog, parse_direction
from .models import (
    BlockTradeSignal,
    BreakoutSignal,
    CrossDirection,
    Direction,
    GapSignal,
    MarketTick,
    MomentumSurgeSignal,
    NewHighSignal,
    NewLowSignal,
    RelativeStrengthSignal,
    Signal,
    SignalType,
    UnknownSignal,
    VolumeSpikeSignal,
    VwapCrossSignal,
)

__all__ = [
    "SignalCatalog",
    "parse_direction",
    "Signal",
    "SignalType",
    "Direction",
    "CrossDirection",
    "MarketTick",
    "VolumeSpikeSignal",
    "BlockTradeSignal",
    "MomentumSurgeSignal",
    "BreakoutSignal",
    "GapSignal",
    "VwapCrossSignal",
    "NewHighSignal",
    "NewLowSignal",
    "RelativeStrengthSignal",
    "UnknownSignal",
]
