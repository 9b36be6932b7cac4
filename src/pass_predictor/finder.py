"""
Satellite pass prediction.

This module provides the pass search over a fixed ground observer: a
fixed-step sweep feeding the visibility state machine, with bisection
refinement of AOS/LOS and an output cap.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Iterator, Optional, Sequence

from .config import PassFinderConfig, validate_min_elevation
from .errors import InvalidParametersError, PropagationUnavailableError
from .geometry import LookAngles, ObserverLocation
from .orbit import SatelliteOrbit
from .passes import Pass, PassAggregator, PassSearchResult
from .refine import refine_crossing, refine_peak
from .sampling import Sample, TimeWindow, sample, sample_at
from .visibility import TrackerState, advance, close

logger = logging.getLogger(__name__)


class PassFinder:
    """
    Finds passes of one satellite over one ground observer.

    The propagator is any object providing ``propagate(time)`` (inertial
    position in km, or None when unavailable) and ``sidereal_angle(time)``
    (radians); SatelliteOrbit is the production implementation.

    A PassFinder holds no state between searches, so repeated calls with
    the same arguments return identical results.
    """

    def __init__(
        self,
        propagator: Any,
        observer: ObserverLocation,
        min_elevation_deg: Optional[float] = None,
        config: Optional[PassFinderConfig] = None,
    ) -> None:
        """
        Initialize pass finder.

        Args:
            propagator: Orbit propagator (e.g. SatelliteOrbit)
            observer: Ground observer location
            min_elevation_deg: Elevation threshold (defaults to config value)
            config: Search configuration (defaults to PassFinderConfig())

        Raises:
            InvalidParametersError: If the threshold is out of range
        """
        self.propagator = propagator
        self.observer = observer
        self.config = config or PassFinderConfig()
        self.min_elevation_deg = (
            self.config.min_elevation_deg if min_elevation_deg is None else min_elevation_deg
        )
        validate_min_elevation(self.min_elevation_deg)

        name = getattr(propagator, "satellite_name", type(propagator).__name__)
        logger.info(
            f"Initialized PassFinder for {name} at "
            f"({observer.latitude_deg:.4f}, {observer.longitude_deg:.4f}), "
            f"min elevation {self.min_elevation_deg}°"
        )

    def sample_at(self, timestamp: datetime) -> Sample:
        return sample_at(self.propagator, self.observer, timestamp)

    def look_angles_at(self, timestamp: datetime) -> LookAngles:
        """
        Look angles at a single instant.

        Raises:
            PropagationUnavailableError: If the propagator has no position
        """
        s = self.sample_at(timestamp)
        if not s.valid:
            raise PropagationUnavailableError(
                "Propagator could not produce a position", timestamp=timestamp
            )
        return LookAngles(elevation_deg=s.elevation_deg, azimuth_deg=s.azimuth_deg, range_km=s.range_km)

    def is_visible(self, timestamp: datetime) -> bool:
        """
        Check if the satellite is at or above the threshold at a timestamp.

        Unavailable positions count as not visible.
        """
        return self.sample_at(timestamp).is_visible(self.min_elevation_deg)

    def make_window(self, start: datetime, end: datetime, step_seconds: Optional[float] = None) -> TimeWindow:
        """
        Build and validate a search window.

        Raises:
            InvalidParametersError: For bad bounds, step or too many samples
        """
        window = TimeWindow(
            start=start,
            end=end,
            step_seconds=self.config.step_seconds if step_seconds is None else step_seconds,
        )
        if window.sample_count > self.config.max_samples:
            raise InvalidParametersError(
                f"Search would need {window.sample_count} samples, more than the limit of "
                f"{self.config.max_samples}. Use a shorter window or a larger step.",
                sample_count=window.sample_count,
                max_samples=self.config.max_samples,
            )
        return window

    def find_passes(
        self,
        start: datetime,
        end: datetime,
        step_seconds: Optional[float] = None,
        max_passes: Optional[int] = None,
    ) -> PassSearchResult:
        """
        Find all passes within a time window.

        Args:
            start: Start of search window (UTC, inclusive)
            end: End of search window (UTC, exclusive)
            step_seconds: Sampling step (defaults to config value)
            max_passes: Output cap (defaults to config value)

        Returns:
            PassSearchResult, possibly empty

        Raises:
            InvalidParametersError: If the window, step or cap is invalid
        """
        window = self.make_window(start, end, step_seconds)
        return self.search(window, max_passes)

    def iter_passes(self, window: TimeWindow) -> Iterator[Pass]:
        """
        Lazily sweep a validated window, yielding passes as they complete.

        Sampling stops as soon as the caller stops consuming, so a caller
        that only needs the first pass pays only for the samples up to it.

        Args:
            window: Search window

        Yields:
            Pass objects in chronological order
        """
        refinement_evaluations = 0

        def evaluate(timestamp: datetime) -> Sample:
            nonlocal refinement_evaluations
            refinement_evaluations += 1
            return self.sample_at(timestamp)

        def crossing(before: Sample, after: Sample) -> datetime:
            return refine_crossing(
                evaluate,
                before,
                after,
                self.min_elevation_deg,
                tolerance_seconds=self.config.refine_tolerance_seconds,
                max_evaluations=self.config.refine_max_evaluations,
            )

        def polish(finished: Pass) -> Pass:
            if not self.config.refine_peak:
                return finished
            return refine_peak(
                evaluate,
                finished,
                window.step_seconds,
                max_evaluations=self.config.peak_max_evaluations,
            )

        tracker = TrackerState()
        sample_count = 0
        unavailable_count = 0

        try:
            for s in sample(self.propagator, self.observer, window):
                sample_count += 1
                if not s.valid:
                    unavailable_count += 1

                tracker, finished = advance(tracker, s, self.min_elevation_deg, crossing)
                if finished is not None:
                    yield polish(finished)

            finished = close(tracker, window.end)
            if finished is not None:
                yield polish(finished)
        finally:
            if unavailable_count:
                logger.warning(
                    f"Propagation unavailable for {unavailable_count} of {sample_count} samples"
                )
            logger.debug(
                f"Fixed-step search: {sample_count} samples ({unavailable_count} unavailable), "
                f"{refinement_evaluations} refinement evaluations over "
                f"{window.duration_seconds / 3600:.1f}h"
            )

    def search(self, window: TimeWindow, max_passes: Optional[int] = None) -> PassSearchResult:
        """
        Run the fixed-step sweep over a validated window.

        Args:
            window: Search window
            max_passes: Output cap (defaults to config value)

        Returns:
            PassSearchResult
        """
        if max_passes is None:
            max_passes = self.config.max_passes
        if not isinstance(max_passes, int) or max_passes < 0:
            raise InvalidParametersError(
                f"max_passes must be a non-negative integer, got {max_passes!r}",
                max_passes=max_passes,
            )

        logger.info(
            f"Finding passes from {window.start} to {window.end} "
            f"(step {window.step_seconds}s, {window.sample_count} samples)"
        )

        aggregator = PassAggregator(max_passes)
        passes = self.iter_passes(window)
        try:
            for finished in passes:
                aggregator.add(finished)
                if aggregator.is_full:
                    logger.info(f"Pass limit of {max_passes} exceeded, stopping search early")
                    break
        finally:
            passes.close()

        result = aggregator.finalize(max_passes)
        logger.info(
            f"Found {result.pass_count} passes"
            + (" (truncated)" if result.truncated else "")
        )
        return result

    def get_next_pass(
        self,
        start_time: datetime,
        max_search_hours: float = 48,
        step_seconds: Optional[float] = None,
    ) -> Optional[Pass]:
        """
        Get the next pass after a start time.

        The sweep stops at the first completed pass. A pass already in
        progress at start_time is returned with truncated_start set.

        Args:
            start_time: Start search time (UTC)
            max_search_hours: Maximum hours to search ahead
            step_seconds: Sampling step (defaults to config value)

        Returns:
            Next Pass or None if no pass found
        """
        end_time = start_time + timedelta(hours=max_search_hours)
        window = self.make_window(start_time, end_time, step_seconds)
        passes = self.iter_passes(window)
        try:
            return next(passes, None)
        finally:
            passes.close()


def find_passes(
    tle_lines: Sequence[str],
    observer: ObserverLocation,
    window: TimeWindow,
    min_elevation_deg: Optional[float] = None,
    max_passes: Optional[int] = None,
    config: Optional[PassFinderConfig] = None,
) -> PassSearchResult:
    """
    Find passes of a TLE-described satellite over an observer.

    All precondition failures are raised before any sampling.

    Args:
        tle_lines: TLE as [name, line1, line2] or [line1, line2]
        observer: Ground observer location
        window: Search window and step
        min_elevation_deg: Elevation threshold (defaults to config value)
        max_passes: Output cap (defaults to config value)
        config: Search configuration

    Returns:
        PassSearchResult

    Raises:
        InvalidOrbitalElementsError: If the TLE cannot initialize the propagator
        InvalidParametersError: If observer, window, threshold or cap is invalid
    """
    satellite = SatelliteOrbit(tle_lines)
    finder = PassFinder(satellite, observer, min_elevation_deg=min_elevation_deg, config=config)
    checked = finder.make_window(window.start, window.end, window.step_seconds)
    return finder.search(checked, max_passes)
