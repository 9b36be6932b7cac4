"""
Observer geometry and look-angle calculations.

This module converts inertial (TEME) satellite positions into Earth-fixed
coordinates using the sidereal rotation angle, and from there into
observer-relative look angles (elevation, azimuth, slant range).

All functions are pure: no state, no I/O.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Sequence

import numpy as np

from .errors import InvalidParametersError
from .utils import validate_coordinates

# =============================================================================
# CONSTANTS
# =============================================================================

# WGS-84 ellipsoid
WGS84_EQUATORIAL_RADIUS_KM = 6378.137
WGS84_FLATTENING = 1.0 / 298.257223563
WGS84_ECCENTRICITY_SQ = WGS84_FLATTENING * (2.0 - WGS84_FLATTENING)

# Accepted observer altitude range (km)
MIN_OBSERVER_ALTITUDE_KM = -1.0
MAX_OBSERVER_ALTITUDE_KM = 100.0


@dataclass(frozen=True)
class ObserverLocation:
    """
    Fixed ground observer in geodetic coordinates.

    Altitude is height above the WGS-84 ellipsoid in kilometers and
    defaults to sea level.
    """

    latitude_deg: float
    longitude_deg: float
    altitude_km: float = 0.0

    def __post_init__(self) -> None:
        """Validate observer coordinates."""
        if not validate_coordinates(self.latitude_deg, self.longitude_deg):
            raise InvalidParametersError(
                f"Invalid observer coordinates: ({self.latitude_deg}, {self.longitude_deg}). "
                f"Latitude must be in [-90, 90] and longitude in [-180, 180] degrees.",
                latitude_deg=self.latitude_deg,
                longitude_deg=self.longitude_deg,
            )
        if not (
            math.isfinite(self.altitude_km)
            and MIN_OBSERVER_ALTITUDE_KM <= self.altitude_km <= MAX_OBSERVER_ALTITUDE_KM
        ):
            raise InvalidParametersError(
                f"Invalid observer altitude: {self.altitude_km} km. Must be between "
                f"{MIN_OBSERVER_ALTITUDE_KM} and {MAX_OBSERVER_ALTITUDE_KM} km.",
                altitude_km=self.altitude_km,
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitude_deg": self.latitude_deg,
            "longitude_deg": self.longitude_deg,
            "altitude_km": self.altitude_km,
        }


@dataclass(frozen=True)
class LookAngles:
    """Topocentric direction from observer to object."""

    elevation_deg: float  # [-90, 90], negative below horizon
    azimuth_deg: float  # [0, 360), clockwise from north
    range_km: float


def observer_ecef(observer: ObserverLocation) -> np.ndarray:
    """
    Earth-fixed position of the observer.

    Args:
        observer: Observer location

    Returns:
        ECEF vector (x, y, z) in km
    """
    lat_rad = math.radians(observer.latitude_deg)
    lon_rad = math.radians(observer.longitude_deg)
    sin_lat = math.sin(lat_rad)
    cos_lat = math.cos(lat_rad)

    # Prime vertical radius of curvature; never zero since e^2 < 1
    n = WGS84_EQUATORIAL_RADIUS_KM / math.sqrt(1.0 - WGS84_ECCENTRICITY_SQ * sin_lat * sin_lat)

    x = (n + observer.altitude_km) * cos_lat * math.cos(lon_rad)
    y = (n + observer.altitude_km) * cos_lat * math.sin(lon_rad)
    z = (n * (1.0 - WGS84_ECCENTRICITY_SQ) + observer.altitude_km) * sin_lat

    return np.array([x, y, z])


def eci_to_ecef(position: Sequence[float], sidereal_angle: float) -> np.ndarray:
    """
    Rotate an inertial position into the Earth-fixed frame.

    Args:
        position: Inertial position (km)
        sidereal_angle: Greenwich sidereal angle (radians)

    Returns:
        Earth-fixed position (km)
    """
    x, y, z = position
    cos_t = math.cos(sidereal_angle)
    sin_t = math.sin(sidereal_angle)
    return np.array([
        x * cos_t + y * sin_t,
        -x * sin_t + y * cos_t,
        z,
    ])


def look_angles(
    position: Sequence[float],
    observer: ObserverLocation,
    sidereal_angle: float,
) -> LookAngles:
    """
    Calculate look angles from an observer to an inertial position.

    Elevation uses the geodetic local horizontal plane. Degenerate geometry
    (zero range, observer at a pole) yields finite values instead of raising.

    Args:
        position: Inertial (TEME) position in km
        observer: Observer location
        sidereal_angle: Greenwich sidereal angle for the position's epoch (radians)

    Returns:
        LookAngles with elevation, azimuth and slant range
    """
    rho = eci_to_ecef(position, sidereal_angle) - observer_ecef(observer)

    lat_rad = math.radians(observer.latitude_deg)
    lon_rad = math.radians(observer.longitude_deg)
    sin_lat, cos_lat = math.sin(lat_rad), math.cos(lat_rad)
    sin_lon, cos_lon = math.sin(lon_rad), math.cos(lon_rad)

    # Topocentric south-east-zenith components
    south = sin_lat * cos_lon * rho[0] + sin_lat * sin_lon * rho[1] - cos_lat * rho[2]
    east = -sin_lon * rho[0] + cos_lon * rho[1]
    zenith = cos_lat * cos_lon * rho[0] + cos_lat * sin_lon * rho[1] + sin_lat * rho[2]

    range_km = float(np.linalg.norm(rho))
    elevation_deg = math.degrees(math.atan2(zenith, math.hypot(south, east)))

    azimuth_deg = math.degrees(math.atan2(east, -south)) % 360.0
    if azimuth_deg >= 360.0:
        # tiny negative angles round up to 360
        azimuth_deg = 0.0

    return LookAngles(
        elevation_deg=elevation_deg,
        azimuth_deg=azimuth_deg,
        range_km=range_km,
    )
