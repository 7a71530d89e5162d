"""
Error classification for the scoring and paper-trading engine.

Data quality errors cover bad inputs that are skipped for one ticker or one
tick. System failures cover configuration and state-machine faults. Recovery
categories describe how a caller should react.
"""

from .data_quality import (
    DataQualityError,
    InvalidInputError,
    MalformedSignalError,
)
from .system_failures import (
    SystemFailureError,
    ConfigurationError,
    StateTransitionError,
    DeliveryError,
)
from .recovery import (
    GracefulDegradationError,
)

__all__ = [
    # Data Quality Errors
    "DataQualityError",
    "InvalidInputError",
    "MalformedSignalError",
    # System Failures
    "SystemFailureError",
    "ConfigurationError",
    "StateTransitionError",
    "DeliveryError",
    # Recovery Categories
    "GracefulDegradationError",
]
