"""
System failure error classifications.

These exceptions represent faults that should stop the caller: a bad
configuration at startup or an illegal lifecycle transition. Delivery
failures are caught by the dispatcher and only logged.
"""

from typing import Optional, Dict, Any


class SystemFailureError(Exception):
    """Base class for unrecoverable system failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class ConfigurationError(SystemFailureError):
    """Configuration failed validation; raised before the evaluation loop starts."""

    def __init__(self, message: str, errors: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.errors = errors or []


class StateTransitionError(SystemFailureError):
    """Invalid lifecycle transition requested of a state machine."""

    def __init__(self, message: str, current_state: Optional[str] = None,
                 attempted_transition: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.current_state = current_state
        self.attempted_transition = attempted_transition


class DeliveryError(SystemFailureError):
    """Alert delivery system failures."""

    def __init__(self, message: str, delivery_method: Optional[str] = None,
                 event: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.delivery_method = delivery_method
        self.event = event
