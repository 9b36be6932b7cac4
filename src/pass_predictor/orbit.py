"""
Satellite orbit propagation and TLE handling module.

This module provides functionality to load TLE data and propagate satellite
orbits. Element sets are validated and loaded with the orbit-predictor
library; inertial (TEME) positions and the Greenwich sidereal angle come
from the SGP4 implementation underneath it.
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union
import logging
import math

from orbit_predictor.sources import get_predictor_from_tle_lines
from sgp4.api import SGP4_ERRORS, Satrec, jday
from sgp4.propagation import gstime
import numpy as np

from .errors import InvalidOrbitalElementsError
from .utils import to_naive_utc

logger = logging.getLogger(__name__)

TLE_LINE_LENGTH = 69

# Fallback orbital period for LEO satellites
DEFAULT_ORBITAL_PERIOD_MINUTES = 90.0


def tle_checksum(line: str) -> int:
    """
    Compute the modulo-10 checksum of a TLE line.

    Digits count their value, minus signs count one, everything else zero.
    """
    total = 0
    for char in line[:TLE_LINE_LENGTH - 1]:
        if char.isdigit():
            total += int(char)
        elif char == "-":
            total += 1
    return total % 10


def validate_tle_lines(line1: str, line2: str) -> Tuple[str, str]:
    """
    Validate the structure of a TLE line pair.

    Args:
        line1: First TLE line
        line2: Second TLE line

    Returns:
        Stripped (line1, line2)

    Raises:
        InvalidOrbitalElementsError: If the lines are structurally malformed
    """
    line1 = (line1 or "").strip()
    line2 = (line2 or "").strip()

    for number, line in ((1, line1), (2, line2)):
        if not line.startswith(f"{number} "):
            raise InvalidOrbitalElementsError(
                f'TLE line{number} must start with "{number} "', line=number
            )
        if len(line) < TLE_LINE_LENGTH:
            raise InvalidOrbitalElementsError(
                f"TLE line{number} must be at least {TLE_LINE_LENGTH} characters",
                line=number,
                length=len(line),
            )

    if line1[2:7] != line2[2:7]:
        raise InvalidOrbitalElementsError(
            "TLE lines refer to different catalog numbers",
            line1_catalog=line1[2:7],
            line2_catalog=line2[2:7],
        )

    for number, line in ((1, line1), (2, line2)):
        expected = tle_checksum(line)
        if line[TLE_LINE_LENGTH - 1] != str(expected):
            logger.warning(
                f"TLE line{number} checksum mismatch (expected {expected}, "
                f"found {line[TLE_LINE_LENGTH - 1]})"
            )

    return line1, line2


def _julian_date(timestamp: datetime) -> Tuple[float, float]:
    timestamp = to_naive_utc(timestamp)
    return jday(
        timestamp.year,
        timestamp.month,
        timestamp.day,
        timestamp.hour,
        timestamp.minute,
        timestamp.second + timestamp.microsecond * 1e-6,
    )


class SatelliteOrbit:
    """
    Represents a satellite orbit with TLE-based propagation capabilities.

    Instances serve as the propagator for pass prediction: they expose
    ``propagate`` (inertial position or None) and ``sidereal_angle``.
    Construction fails for malformed element sets, so a live instance is
    always usable.
    """

    def __init__(self, tle_lines: Sequence[str], satellite_name: Optional[str] = None) -> None:
        """
        Initialize satellite orbit from TLE data.

        Args:
            tle_lines: TLE data as [name, line1, line2] or [line1, line2]
            satellite_name: Name of the satellite (defaults to the TLE name line)

        Raises:
            InvalidOrbitalElementsError: If TLE data is invalid
        """
        tle_lines = [line for line in tle_lines if line and line.strip()]
        if len(tle_lines) == 3:
            name_line, line1, line2 = tle_lines
        elif len(tle_lines) == 2:
            name_line = None
            line1, line2 = tle_lines
        else:
            raise InvalidOrbitalElementsError(
                f"Expected 2 or 3 TLE lines, got {len(tle_lines)}",
                line_count=len(tle_lines),
            )

        line1, line2 = validate_tle_lines(line1, line2)
        self.tle_lines: List[str] = [line1, line2]
        self.satellite_name = (
            satellite_name or (name_line.strip() if name_line else None) or f"NORAD {line1[2:7].strip()}"
        )

        try:
            self.predictor = get_predictor_from_tle_lines(self.tle_lines)
            self.satrec = Satrec.twoline2rv(line1, line2)
        except Exception as e:
            logger.error(f"Failed to initialize satellite orbit: {e}")
            raise InvalidOrbitalElementsError(
                f"Invalid TLE data for satellite {self.satellite_name}: {e}",
                satellite_name=self.satellite_name,
            ) from e

        if self.satrec.error != 0:
            reason = SGP4_ERRORS.get(self.satrec.error, "unknown error")
            raise InvalidOrbitalElementsError(
                f"Invalid TLE data for satellite {self.satellite_name}: {reason}",
                satellite_name=self.satellite_name,
                sgp4_error=self.satrec.error,
            )

        logger.info(f"Successfully loaded orbit for satellite: {self.satellite_name}")

    @classmethod
    def from_tle_file(cls, tle_file_path: Union[str, Path], satellite_name: str) -> "SatelliteOrbit":
        """
        Create SatelliteOrbit instance from TLE file.

        Args:
            tle_file_path: Path to TLE file in three-line format
            satellite_name: Name of the satellite to extract from TLE file

        Returns:
            SatelliteOrbit instance

        Raises:
            FileNotFoundError: If TLE file doesn't exist
            InvalidOrbitalElementsError: If satellite not found in TLE file
        """
        tle_path = Path(tle_file_path)
        if not tle_path.exists():
            raise FileNotFoundError(f"TLE file not found: {tle_file_path}")

        with open(tle_path, 'r') as f:
            lines = [line.strip() for line in f.readlines() if line.strip()]

        for i in range(0, len(lines) - 2, 3):
            name_line = lines[i]
            if satellite_name.upper() in name_line.upper():
                return cls(lines[i:i + 3], satellite_name)

        raise InvalidOrbitalElementsError(
            f"Satellite '{satellite_name}' not found in TLE file",
            tle_file=str(tle_path),
        )

    def propagate(self, timestamp: datetime) -> Optional[np.ndarray]:
        """
        Inertial (TEME) position at a timestamp.

        Never raises: decayed orbits, SGP4 errors and non-finite output
        all return None.

        Args:
            timestamp: UTC datetime

        Returns:
            Position vector in km, or None if unavailable
        """
        try:
            jd, fr = _julian_date(timestamp)
            error, position, _velocity = self.satrec.sgp4(jd, fr)
        except Exception as e:
            logger.debug(f"Propagation failed at {timestamp}: {e}")
            return None

        if error != 0:
            logger.debug(f"Propagation unavailable at {timestamp}: {SGP4_ERRORS.get(error, error)}")
            return None

        position = np.asarray(position, dtype=float)
        if not np.all(np.isfinite(position)):
            return None
        return position

    def sidereal_angle(self, timestamp: datetime) -> float:
        """
        Greenwich mean sidereal angle.

        Args:
            timestamp: UTC datetime

        Returns:
            Angle in radians, [0, 2*pi)
        """
        jd, fr = _julian_date(timestamp)
        return gstime(jd + fr) % (2.0 * math.pi)

    def get_orbital_period(self) -> timedelta:
        """
        Calculate orbital period of the satellite.

        Returns:
            Orbital period as timedelta
        """
        try:
            # period is a property in minutes
            period_minutes = self.predictor.period
            return timedelta(minutes=period_minutes)
        except Exception as e:
            logger.error(f"Error calculating orbital period: {e}")
            return timedelta(minutes=DEFAULT_ORBITAL_PERIOD_MINUTES)

    def __repr__(self) -> str:
        """String representation of the satellite orbit."""
        period = self.get_orbital_period()
        return f"SatelliteOrbit(name='{self.satellite_name}', period={period})"
