"""
Satellite Pass Predictor

Predicts when an orbiting object is observable from a fixed ground
location: visibility windows above an elevation threshold, with refined
AOS/LOS times and the time, elevation and bearing of closest approach.
"""

from .errors import (
    ErrorCode,
    InvalidOrbitalElementsError,
    InvalidParametersError,
    PassPredictionError,
    PropagationUnavailableError,
)
from .finder import PassFinder, find_passes
from .geometry import ObserverLocation
from .orbit import SatelliteOrbit
from .passes import Pass, PassSearchResult
from .sampling import TimeWindow

__version__ = "0.1.0"
__author__ = "Pass Predictor Team"

__all__ = [
    "ErrorCode",
    "InvalidOrbitalElementsError",
    "InvalidParametersError",
    "ObserverLocation",
    "Pass",
    "PassFinder",
    "PassPredictionError",
    "PassSearchResult",
    "PropagationUnavailableError",
    "SatelliteOrbit",
    "TimeWindow",
    "find_passes",
]
