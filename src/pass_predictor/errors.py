"""
Error taxonomy for pass prediction.

Precondition failures (bad orbital elements, bad parameters) are fatal for a
whole request and are raised before any sampling happens. Per-sample
propagation failures are recovered inside the sweep and only surface as
exceptions from single-instant look-ups.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Stable error codes exposed to callers."""

    INVALID_ORBITAL_ELEMENTS = "INVALID_ORBITAL_ELEMENTS"
    INVALID_PARAMETERS = "INVALID_PARAMETERS"
    PROPAGATION_UNAVAILABLE = "PROPAGATION_UNAVAILABLE"


class PassPredictionError(Exception):
    """Base class for all pass prediction errors."""

    code: ErrorCode = ErrorCode.INVALID_PARAMETERS

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class InvalidOrbitalElementsError(PassPredictionError, ValueError):
    """Raised when the element set cannot initialize the propagator."""

    code = ErrorCode.INVALID_ORBITAL_ELEMENTS


class InvalidParametersError(PassPredictionError, ValueError):
    """Raised for non-finite or out-of-range observer, window or threshold values."""

    code = ErrorCode.INVALID_PARAMETERS


class PropagationUnavailableError(PassPredictionError):
    """Raised when a position is required at an instant the propagator cannot serve."""

    code = ErrorCode.PROPAGATION_UNAVAILABLE

    def __init__(self, message: str, timestamp: Optional[Any] = None, **details: Any) -> None:
        if timestamp is not None:
            details["timestamp"] = str(timestamp)
        super().__init__(message, **details)
