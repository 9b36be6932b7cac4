"""
Synthetic propagators for tests.

They follow the same interface as SatelliteOrbit (``propagate`` and
``sidereal_angle``) but with scripted elevation profiles, so expected pass
times are known exactly.
"""

import math
from datetime import datetime
from typing import Callable, Optional

import numpy as np

from pass_predictor.geometry import ObserverLocation, observer_ecef


def triangle_profile(peak_deg: float = 90.0, half_span_seconds: float = 300.0) -> Callable[[float], float]:
    """Elevation peaking at dt=0 and falling linearly to 0° at dt=±half_span."""

    def profile(dt: float) -> float:
        return max(peak_deg * (1.0 - abs(dt) / half_span_seconds), -90.0)

    return profile


class ScriptedPropagator:
    """
    Propagator whose look angles follow a scripted elevation profile.

    Positions are placed at a fixed slant range from the observer, to the
    west before t0 and to the east after it. The sidereal angle is always
    zero, so inertial and Earth-fixed frames coincide.
    """

    def __init__(
        self,
        observer: ObserverLocation,
        t0: datetime,
        elevation_fn: Callable[[float], float],
        range_km: float = 1000.0,
        unavailable: Optional[Callable[[float], bool]] = None,
    ) -> None:
        self.satellite_name = "SCRIPTED"
        self.t0 = t0
        self.elevation_fn = elevation_fn
        self.range_km = range_km
        self.unavailable = unavailable
        self.calls = 0

        lat = math.radians(observer.latitude_deg)
        lon = math.radians(observer.longitude_deg)
        self._origin = observer_ecef(observer)
        self._up = np.array([math.cos(lat) * math.cos(lon), math.cos(lat) * math.sin(lon), math.sin(lat)])
        self._east = np.array([-math.sin(lon), math.cos(lon), 0.0])

    def offset(self, timestamp: datetime) -> float:
        return (timestamp - self.t0).total_seconds()

    def elevation_at(self, timestamp: datetime) -> float:
        return self.elevation_fn(self.offset(timestamp))

    def propagate(self, timestamp: datetime) -> Optional[np.ndarray]:
        self.calls += 1
        dt = self.offset(timestamp)
        if self.unavailable is not None and self.unavailable(dt):
            return None
        elevation = math.radians(self.elevation_fn(dt))
        side = 1.0 if dt >= 0 else -1.0
        direction = math.cos(elevation) * side * self._east + math.sin(elevation) * self._up
        return self._origin + self.range_km * direction

    def sidereal_angle(self, timestamp: datetime) -> float:
        return 0.0


class UnavailablePropagator:
    """Decayed object: no position at any time."""

    satellite_name = "DECAYED"

    def propagate(self, timestamp: datetime) -> None:
        return None

    def sidereal_angle(self, timestamp: datetime) -> float:
        return 0.0



def periodic_profile(
    period_seconds: float = 3600.0,
    peak_deg: float = 60.0,
    half_span_seconds: float = 300.0,
) -> Callable[[float], float]:
    """Repeating triangle profile with a peak every period, first peak at dt=0."""
    triangle = triangle_profile(peak_deg, half_span_seconds)

    def profile(dt: float) -> float:
        return triangle((dt + period_seconds / 2) % period_seconds - period_seconds / 2)

    return profile
