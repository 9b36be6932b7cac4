"""
Visibility state machine.

Converts a stream of samples into discrete Pass records. The machine is an
explicit immutable value (TrackerState) threaded through a pure transition
function, so it can be driven by a scripted list of samples without any
propagator.

    tracker = TrackerState()
    for s in samples:
        tracker, finished = advance(tracker, s, min_elevation_deg)
        ...
    finished = close(tracker, window_end)
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Tuple

from .passes import Pass
from .sampling import Sample

logger = logging.getLogger(__name__)

# (sample before crossing, sample after crossing) -> crossing time
CrossingFunction = Callable[[Sample, Sample], datetime]


class VisibilityState(Enum):
    """Whether the object is currently above the elevation threshold."""

    BELOW_THRESHOLD = "below_threshold"
    VISIBLE = "visible"


@dataclass(frozen=True)
class OpenPass:
    """Provisional pass: AOS known, LOS not yet seen."""

    aos: datetime
    aos_azimuth_deg: float
    max_elevation_deg: float
    max_elevation_time: datetime
    azimuth_at_max: float
    range_at_max_km: float
    truncated_start: bool = False

    def update(self, sample: Sample) -> "OpenPass":
        """Track the maximum; ties keep the earliest time."""
        if sample.elevation_deg > self.max_elevation_deg:
            return OpenPass(
                aos=self.aos,
                aos_azimuth_deg=self.aos_azimuth_deg,
                max_elevation_deg=sample.elevation_deg,
                max_elevation_time=sample.time,
                azimuth_at_max=sample.azimuth_deg,
                range_at_max_km=sample.range_km,
                truncated_start=self.truncated_start,
            )
        return self

    def finish(self, los: datetime, los_azimuth_deg: float, truncated_end: bool = False) -> Pass:
        return Pass(
            aos=self.aos,
            los=los,
            max_elevation_deg=self.max_elevation_deg,
            max_elevation_time=self.max_elevation_time,
            azimuth_at_max=self.azimuth_at_max,
            aos_azimuth_deg=self.aos_azimuth_deg,
            los_azimuth_deg=los_azimuth_deg,
            range_at_max_km=self.range_at_max_km,
            truncated_start=self.truncated_start,
            truncated_end=truncated_end,
        )


@dataclass(frozen=True)
class TrackerState:
    """State machine value: current state, open pass and last sample seen."""

    state: VisibilityState = VisibilityState.BELOW_THRESHOLD
    current: Optional[OpenPass] = None
    previous: Optional[Sample] = None


def _rising_crossing(before: Sample, after: Sample) -> datetime:
    return after.time


def _falling_crossing(before: Sample, after: Sample) -> datetime:
    return before.time


def advance(
    tracker: TrackerState,
    sample: Sample,
    min_elevation_deg: float,
    crossing: Optional[CrossingFunction] = None,
) -> Tuple[TrackerState, Optional[Pass]]:
    """
    Feed one sample to the state machine.

    Args:
        tracker: Current state machine value
        sample: Next sample in time order
        min_elevation_deg: Elevation threshold; equality counts as visible
        crossing: Optional refiner for boundary times. Without it AOS is the
            first visible sample and LOS the last visible sample.

    Returns:
        Tuple of (new tracker state, completed Pass or None)
    """
    visible = sample.is_visible(min_elevation_deg)
    previous = tracker.previous

    if tracker.state is VisibilityState.BELOW_THRESHOLD:
        if not visible:
            return TrackerState(previous=sample), None

        if previous is None:
            # First sample of the window is already visible: synthetic AOS
            aos = sample.time
            truncated_start = True
        else:
            aos = (crossing or _rising_crossing)(previous, sample)
            truncated_start = False

        opened = OpenPass(
            aos=aos,
            aos_azimuth_deg=sample.azimuth_deg,
            max_elevation_deg=sample.elevation_deg,
            max_elevation_time=sample.time,
            azimuth_at_max=sample.azimuth_deg,
            range_at_max_km=sample.range_km,
            truncated_start=truncated_start,
        )
        return TrackerState(VisibilityState.VISIBLE, opened, sample), None

    if visible:
        return TrackerState(VisibilityState.VISIBLE, tracker.current.update(sample), sample), None

    # VISIBLE -> BELOW_THRESHOLD; previous is the last visible sample
    los = (crossing or _falling_crossing)(previous, sample)
    finished = tracker.current.finish(los, previous.azimuth_deg)
    if finished.max_elevation_deg < min_elevation_deg:
        logger.debug(f"Discarding pass at {finished.aos} below threshold")
        return TrackerState(previous=sample), None
    return TrackerState(previous=sample), finished


def close(tracker: TrackerState, end: datetime) -> Optional[Pass]:
    """
    Close a pass still open at the end of the search window.

    Args:
        tracker: Final state machine value
        end: Search window end, used as LOS

    Returns:
        Pass flagged truncated_end, or None if nothing was open
    """
    if tracker.state is not VisibilityState.VISIBLE or tracker.current is None:
        return None
    return tracker.current.finish(end, tracker.previous.azimuth_deg, truncated_end=True)
