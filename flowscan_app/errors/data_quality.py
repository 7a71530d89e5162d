"""
Data quality error classifications for signal and tick processing.

These exceptions describe inputs that are wrong for a single ticker or a
single tick. They are always recoverable: the engine skips the offending
input and keeps evaluating everything else.
"""

from typing import Optional, Dict, Any


class DataQualityError(Exception):
    """Base class for data quality issues that can be handled gracefully."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class InvalidInputError(DataQualityError):
    """A numeric input is outside the domain an operation accepts."""

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Optional[Any] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value


class MalformedSignalError(DataQualityError):
    """A raw detection payload cannot be turned into a signal record."""

    def __init__(self, message: str, raw_data: Optional[Dict[str, Any]] = None,
                 missing_fields: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_data = raw_data
        self.missing_fields = missing_fields or []
