"""
Fixed-step sampling of look angles over a search window.

The sampler walks a half-open interval [start, end) and produces one
Sample per tick by calling the propagator and the coordinate transformer.
Propagation failures yield invalid samples instead of exceptions.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterator

from .errors import InvalidParametersError
from .geometry import ObserverLocation, look_angles
from .utils import to_naive_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeWindow:
    """Half-open search interval [start, end) walked at a fixed step."""

    start: datetime
    end: datetime
    step_seconds: float

    def __post_init__(self) -> None:
        """Normalize timestamps to naive UTC and validate the window."""
        object.__setattr__(self, "start", to_naive_utc(self.start))
        object.__setattr__(self, "end", to_naive_utc(self.end))

        if not self.start < self.end:
            raise InvalidParametersError(
                f"Invalid time window: start {self.start} must be before end {self.end}",
                start=self.start.isoformat(),
                end=self.end.isoformat(),
            )
        if not (math.isfinite(self.step_seconds) and self.step_seconds > 0):
            raise InvalidParametersError(
                f"Invalid step: {self.step_seconds} s. Must be a positive number of seconds.",
                step_seconds=self.step_seconds,
            )
        if not math.isfinite(self.duration_seconds / self.step_seconds):
            raise InvalidParametersError(
                f"Invalid step: {self.step_seconds} s is too small for a "
                f"{self.duration_seconds} s window.",
                step_seconds=self.step_seconds,
            )

    @property
    def duration_seconds(self) -> float:
        return (self.end - self.start).total_seconds()

    @property
    def sample_count(self) -> int:
        """Number of ticks in [start, end)."""
        return int(math.ceil(self.duration_seconds / self.step_seconds))

    def tick(self, index: int) -> datetime:
        return self.start + timedelta(seconds=index * self.step_seconds)

    def ticks(self) -> Iterator[datetime]:
        """Tick timestamps, computed by index so no rounding accumulates."""
        index = 0
        current = self.start
        while current < self.end:
            yield current
            index += 1
            current = self.tick(index)


@dataclass(frozen=True)
class Sample:
    """Look angles at one instant; invalid when no position was available."""

    time: datetime
    elevation_deg: float
    azimuth_deg: float
    range_km: float
    valid: bool = True

    @classmethod
    def unavailable(cls, time: datetime) -> "Sample":
        return cls(
            time=time,
            elevation_deg=-math.inf,
            azimuth_deg=math.nan,
            range_km=math.nan,
            valid=False,
        )

    def is_visible(self, min_elevation_deg: float) -> bool:
        """Visible means valid and at or above the threshold."""
        return self.valid and self.elevation_deg >= min_elevation_deg


def sample_at(propagator: Any, observer: ObserverLocation, timestamp: datetime) -> Sample:
    """
    Evaluate look angles at a single instant.

    Args:
        propagator: Object with ``propagate(time)`` and ``sidereal_angle(time)``
        observer: Observer location
        timestamp: UTC datetime

    Returns:
        Sample (invalid if the propagator returned no position)
    """
    position = propagator.propagate(timestamp)
    if position is None:
        return Sample.unavailable(timestamp)

    angles = look_angles(position, observer, propagator.sidereal_angle(timestamp))
    if not math.isfinite(angles.elevation_deg):
        return Sample.unavailable(timestamp)

    return Sample(
        time=timestamp,
        elevation_deg=angles.elevation_deg,
        azimuth_deg=angles.azimuth_deg,
        range_km=angles.range_km,
    )


def sample(propagator: Any, observer: ObserverLocation, window: TimeWindow) -> Iterator[Sample]:
    """
    Lazily sample look angles over a window.

    Yields one Sample per tick in strictly increasing time order, from
    window.start inclusive to window.end exclusive.

    Args:
        propagator: Object with ``propagate(time)`` and ``sidereal_angle(time)``
        observer: Observer location
        window: Search window

    Yields:
        Sample per tick
    """
    for timestamp in window.ticks():
        yield sample_at(propagator, observer, timestamp)
