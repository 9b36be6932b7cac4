"""
Tests for the pass finder using synthetic propagators.

The overhead profile peaks at 90° at t0 and reaches 0° at t0 ± 300 s, so
with a 10° threshold the exact boundaries are t0 ± 266.67 s.
"""

import math
from datetime import datetime, timedelta
from typing import Tuple

import pytest

from pass_predictor import find_passes
from pass_predictor.config import PassFinderConfig
from pass_predictor.errors import (
    ErrorCode,
    InvalidOrbitalElementsError,
    InvalidParametersError,
    PropagationUnavailableError,
)
from pass_predictor.finder import PassFinder
from pass_predictor.geometry import ObserverLocation
from pass_predictor.sampling import TimeWindow
from propagators import (
    ScriptedPropagator,
    UnavailablePropagator,
    periodic_profile,
    triangle_profile,
)

THRESHOLD = 10.0
EXACT_OFFSET = 300.0 * (1.0 - THRESHOLD / 90.0)


def offset(t: datetime, t0: datetime) -> float:
    return (t - t0).total_seconds()


@pytest.fixture
def finder(overhead_propagator: ScriptedPropagator, equator_observer: ObserverLocation) -> PassFinder:
    return PassFinder(overhead_propagator, equator_observer, min_elevation_deg=THRESHOLD)


@pytest.fixture
def window(base_datetime: datetime) -> Tuple[datetime, datetime]:
    return base_datetime - timedelta(seconds=600), base_datetime + timedelta(seconds=600)


class TestSinglePass:
    """Overhead pass centered in the window."""

    def test_one_pass_found(self, finder: PassFinder, window, base_datetime: datetime) -> None:
        result = finder.find_passes(*window, step_seconds=10.0)

        assert result.pass_count == 1
        assert not result.truncated
        p = result.passes[0]
        assert offset(p.aos, base_datetime) == pytest.approx(-EXACT_OFFSET, abs=1.0)
        assert offset(p.los, base_datetime) == pytest.approx(EXACT_OFFSET, abs=1.0)
        assert p.duration_seconds == pytest.approx(2 * EXACT_OFFSET, abs=2.0)
        assert p.max_elevation_deg == pytest.approx(90.0)
        assert p.max_elevation_time == base_datetime
        assert p.aos_azimuth_deg == pytest.approx(270.0)
        assert p.los_azimuth_deg == pytest.approx(90.0)
        assert p.range_at_max_km == pytest.approx(1000.0)
        assert not p.truncated

    def test_refined_boundaries_sit_on_threshold(
        self, finder: PassFinder, overhead_propagator: ScriptedPropagator, window
    ) -> None:
        p = finder.find_passes(*window, step_seconds=10.0).passes[0]
        # 0.3°/s slope, 0.5 s tolerance
        assert overhead_propagator.elevation_at(p.aos) == pytest.approx(THRESHOLD, abs=0.15)
        assert overhead_propagator.elevation_at(p.los) == pytest.approx(THRESHOLD, abs=0.15)

    def test_boundary_precision_independent_of_step(self, finder: PassFinder, window) -> None:
        fine = finder.find_passes(*window, step_seconds=10.0).passes[0]
        coarse = finder.find_passes(*window, step_seconds=60.0).passes[0]
        assert abs((fine.aos - coarse.aos).total_seconds()) < 1.0
        assert abs((fine.los - coarse.los).total_seconds()) < 1.0

    def test_pass_invariants(self, finder: PassFinder, window) -> None:
        p = finder.find_passes(*window, step_seconds=10.0).passes[0]
        assert p.aos <= p.max_elevation_time <= p.los
        assert p.max_elevation_deg >= THRESHOLD

    def test_idempotent(self, finder: PassFinder, window) -> None:
        first = finder.find_passes(*window, step_seconds=10.0)
        second = finder.find_passes(*window, step_seconds=10.0)
        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_default_step_from_config(self, finder: PassFinder, window) -> None:
        result = finder.find_passes(*window)
        assert result.pass_count == 1

    def test_higher_threshold_shortens_pass(
        self, overhead_propagator: ScriptedPropagator, equator_observer: ObserverLocation, window
    ) -> None:
        low = PassFinder(overhead_propagator, equator_observer, min_elevation_deg=0.0)
        high = PassFinder(overhead_propagator, equator_observer, min_elevation_deg=45.0)
        low_pass = low.find_passes(*window, step_seconds=10.0).passes[0]
        high_pass = high.find_passes(*window, step_seconds=10.0).passes[0]
        assert low_pass.duration_seconds > high_pass.duration_seconds
        assert high_pass.duration_seconds == pytest.approx(300.0, abs=2.0)


class TestNoPasses:
    """Searches that find nothing."""

    def test_always_below_threshold(self, equator_observer: ObserverLocation, window) -> None:
        propagator = ScriptedPropagator(equator_observer, window[0], lambda dt: 5.0)
        result = PassFinder(propagator, equator_observer, THRESHOLD).find_passes(*window, step_seconds=10.0)
        assert result.passes == []
        assert result.pass_count == 0
        assert not result.truncated

    def test_propagation_always_unavailable(self, equator_observer: ObserverLocation, window, caplog) -> None:
        finder = PassFinder(UnavailablePropagator(), equator_observer, THRESHOLD)
        with caplog.at_level("WARNING"):
            result = finder.find_passes(*window, step_seconds=10.0)
        assert result.passes == []
        assert not result.truncated
        assert "unavailable" in caplog.text


class TestTruncation:
    """Passes cut by the window boundaries."""

    def test_window_ends_mid_pass(self, finder: PassFinder, base_datetime: datetime) -> None:
        start = base_datetime - timedelta(seconds=600)
        end = base_datetime + timedelta(seconds=100)

        result = finder.find_passes(start, end, step_seconds=10.0)

        assert result.pass_count == 1
        p = result.passes[0]
        assert p.los == end
        assert p.truncated_end
        assert not p.truncated_start
        assert offset(p.aos, base_datetime) == pytest.approx(-EXACT_OFFSET, abs=1.0)

    def test_window_starts_mid_pass(self, finder: PassFinder, base_datetime: datetime) -> None:
        start = base_datetime - timedelta(seconds=100)
        end = base_datetime + timedelta(seconds=600)

        p = finder.find_passes(start, end, step_seconds=10.0).passes[0]

        assert p.aos == start
        assert p.truncated_start
        assert not p.truncated_end
        assert offset(p.los, base_datetime) == pytest.approx(EXACT_OFFSET, abs=1.0)

    def test_window_shorter_than_step(self, finder: PassFinder, base_datetime: datetime) -> None:
        end = base_datetime + timedelta(seconds=5)
        result = finder.find_passes(base_datetime, end, step_seconds=10.0)

        assert result.pass_count == 1
        p = result.passes[0]
        assert (p.aos, p.los) == (base_datetime, end)
        assert p.truncated_start and p.truncated_end

    def test_gap_in_propagation_splits_pass(
        self, equator_observer: ObserverLocation, base_datetime: datetime, window
    ) -> None:
        propagator = ScriptedPropagator(
            equator_observer,
            base_datetime,
            triangle_profile(),
            unavailable=lambda dt: -30 <= dt < 30,
        )
        result = PassFinder(propagator, equator_observer, THRESHOLD).find_passes(*window, step_seconds=10.0)

        assert result.pass_count == 2
        first, second = result.passes
        assert first.los <= base_datetime - timedelta(seconds=30)
        assert second.aos >= base_datetime + timedelta(seconds=20)
        assert first.los < second.aos


class TestMultiplePasses:
    """Periodic passes and the output cap."""

    @pytest.fixture
    def periodic(self, equator_observer: ObserverLocation, base_datetime: datetime) -> ScriptedPropagator:
        return ScriptedPropagator(equator_observer, base_datetime, periodic_profile(3600.0, 60.0, 300.0))

    @pytest.fixture
    def ten_hours(self, base_datetime: datetime) -> Tuple[datetime, datetime]:
        start = base_datetime - timedelta(seconds=1800)
        return start, start + timedelta(hours=10)

    def test_all_passes_found_in_order(
        self, periodic: ScriptedPropagator, equator_observer: ObserverLocation, ten_hours, base_datetime: datetime
    ) -> None:
        result = PassFinder(periodic, equator_observer, THRESHOLD).find_passes(*ten_hours, step_seconds=30.0)

        assert result.pass_count == 10
        assert not result.truncated
        for i, p in enumerate(result.passes):
            assert p.max_elevation_time == base_datetime + timedelta(hours=i)
            assert p.max_elevation_deg == pytest.approx(60.0)
        for earlier, later in zip(result.passes, result.passes[1:]):
            assert earlier.aos < later.aos
            assert earlier.los < later.aos

    def test_cap_truncates_result(
        self, periodic: ScriptedPropagator, equator_observer: ObserverLocation, ten_hours, base_datetime: datetime
    ) -> None:
        result = PassFinder(periodic, equator_observer, THRESHOLD).find_passes(
            *ten_hours, step_seconds=30.0, max_passes=3
        )

        assert result.pass_count == 3
        assert result.truncated
        assert [p.max_elevation_time for p in result.passes] == [
            base_datetime + timedelta(hours=i) for i in range(3)
        ]

    def test_cap_stops_sweep_early(
        self, periodic: ScriptedPropagator, equator_observer: ObserverLocation, ten_hours
    ) -> None:
        finder = PassFinder(periodic, equator_observer, THRESHOLD)
        window = finder.make_window(*ten_hours, step_seconds=30.0)

        finder.search(window, max_passes=3)

        assert periodic.calls < window.sample_count / 2

    def test_cap_equal_to_count_is_not_truncated(
        self, periodic: ScriptedPropagator, equator_observer: ObserverLocation, ten_hours
    ) -> None:
        result = PassFinder(periodic, equator_observer, THRESHOLD).find_passes(
            *ten_hours, step_seconds=30.0, max_passes=10
        )
        assert result.pass_count == 10
        assert not result.truncated

    def test_zero_cap(self, periodic: ScriptedPropagator, equator_observer: ObserverLocation, ten_hours) -> None:
        result = PassFinder(periodic, equator_observer, THRESHOLD).find_passes(
            *ten_hours, step_seconds=30.0, max_passes=0
        )
        assert result.passes == []
        assert result.truncated


class TestPeakRefinement:
    """Optional golden-section refinement of the maximum."""

    def test_refine_peak_improves_maximum(
        self, overhead_propagator: ScriptedPropagator, equator_observer: ObserverLocation, window
    ) -> None:
        plain = PassFinder(overhead_propagator, equator_observer, THRESHOLD)
        refined = PassFinder(
            overhead_propagator, equator_observer, THRESHOLD, config=PassFinderConfig(refine_peak=True)
        )

        # 7 s step misses the exact peak at t0
        sampled = plain.find_passes(*window, step_seconds=7.0).passes[0]
        improved = refined.find_passes(*window, step_seconds=7.0).passes[0]

        assert sampled.max_elevation_deg < 90.0
        assert improved.max_elevation_deg > sampled.max_elevation_deg
        assert improved.max_elevation_deg == pytest.approx(90.0, abs=0.5)
        assert improved.aos <= improved.max_elevation_time <= improved.los


class TestValidation:
    """Precondition checks."""

    @pytest.mark.parametrize("min_elevation", [-5.0, 95.0, math.nan])
    def test_invalid_threshold(
        self, overhead_propagator: ScriptedPropagator, equator_observer: ObserverLocation, min_elevation: float
    ) -> None:
        with pytest.raises(InvalidParametersError):
            PassFinder(overhead_propagator, equator_observer, min_elevation_deg=min_elevation)

    def test_threshold_defaults_to_config(
        self, overhead_propagator: ScriptedPropagator, equator_observer: ObserverLocation
    ) -> None:
        finder = PassFinder(overhead_propagator, equator_observer, config=PassFinderConfig(min_elevation_deg=25.0))
        assert finder.min_elevation_deg == 25.0

    def test_inverted_window(self, finder: PassFinder, window) -> None:
        with pytest.raises(InvalidParametersError):
            finder.find_passes(window[1], window[0])

    def test_invalid_step(self, finder: PassFinder, window) -> None:
        with pytest.raises(InvalidParametersError):
            finder.find_passes(*window, step_seconds=0.0)

    def test_subnormal_step(self, finder: PassFinder, window) -> None:
        with pytest.raises(InvalidParametersError):
            finder.find_passes(*window, step_seconds=5e-324)

    def test_negative_cap(self, finder: PassFinder, window) -> None:
        with pytest.raises(InvalidParametersError):
            finder.find_passes(*window, step_seconds=10.0, max_passes=-1)

    def test_sample_limit(
        self, overhead_propagator: ScriptedPropagator, equator_observer: ObserverLocation, base_datetime: datetime
    ) -> None:
        finder = PassFinder(overhead_propagator, equator_observer, config=PassFinderConfig(max_samples=100))
        with pytest.raises(InvalidParametersError) as exc_info:
            finder.find_passes(base_datetime, base_datetime + timedelta(hours=1), step_seconds=1.0)
        assert exc_info.value.details["max_samples"] == 100
        assert overhead_propagator.calls == 0


class TestSingleInstant:
    """Look-ups at one timestamp."""

    def test_look_angles_at(self, finder: PassFinder, base_datetime: datetime) -> None:
        angles = finder.look_angles_at(base_datetime + timedelta(seconds=150))
        assert angles.elevation_deg == pytest.approx(45.0)
        assert angles.azimuth_deg == pytest.approx(90.0)

    def test_look_angles_unavailable(self, equator_observer: ObserverLocation, base_datetime: datetime) -> None:
        finder = PassFinder(UnavailablePropagator(), equator_observer)
        with pytest.raises(PropagationUnavailableError) as exc_info:
            finder.look_angles_at(base_datetime)
        assert exc_info.value.code is ErrorCode.PROPAGATION_UNAVAILABLE
        assert exc_info.value.details["timestamp"] == str(base_datetime)

    def test_is_visible(self, finder: PassFinder, base_datetime: datetime) -> None:
        assert finder.is_visible(base_datetime)
        assert not finder.is_visible(base_datetime + timedelta(seconds=290))

    def test_is_visible_unavailable(self, equator_observer: ObserverLocation, base_datetime: datetime) -> None:
        assert not PassFinder(UnavailablePropagator(), equator_observer).is_visible(base_datetime)


class TestNextPass:
    """get_next_pass."""

    def test_next_pass_found(self, finder: PassFinder, base_datetime: datetime) -> None:
        p = finder.get_next_pass(base_datetime - timedelta(minutes=10), max_search_hours=1, step_seconds=10.0)
        assert p is not None
        assert offset(p.aos, base_datetime) == pytest.approx(-EXACT_OFFSET, abs=1.0)

    def test_next_pass_in_progress(self, finder: PassFinder, base_datetime: datetime) -> None:
        p = finder.get_next_pass(base_datetime, max_search_hours=1, step_seconds=10.0)
        assert p is not None
        assert p.aos == base_datetime
        assert p.truncated_start

    def test_next_pass_stops_at_first_pass(
        self, equator_observer: ObserverLocation, base_datetime: datetime
    ) -> None:
        # Second peak is an hour later; reaching it would take ~190 samples
        propagator = ScriptedPropagator(equator_observer, base_datetime, periodic_profile(3600.0, 60.0, 300.0))
        finder = PassFinder(propagator, equator_observer, THRESHOLD)

        p = finder.get_next_pass(base_datetime - timedelta(seconds=1800), max_search_hours=10, step_seconds=30.0)

        assert p is not None
        assert p.max_elevation_time == base_datetime
        assert not p.truncated_start and not p.truncated_end
        assert propagator.calls < 120

    def test_no_next_pass(self, equator_observer: ObserverLocation, base_datetime: datetime) -> None:
        finder = PassFinder(UnavailablePropagator(), equator_observer)
        assert finder.get_next_pass(base_datetime, max_search_hours=1) is None


class TestFindPassesFunction:
    """Module-level entry point."""

    def test_invalid_elements_rejected_first(self, equator_observer: ObserverLocation, window) -> None:
        with pytest.raises(InvalidOrbitalElementsError):
            find_passes(["1 bad", "2 bad"], equator_observer, TimeWindow(*window, 10.0), min_elevation_deg=100.0)

    def test_invalid_threshold_rejected(
        self, sample_tle_lines, equator_observer: ObserverLocation, window
    ) -> None:
        with pytest.raises(InvalidParametersError):
            find_passes(list(sample_tle_lines), equator_observer, TimeWindow(*window, 10.0), min_elevation_deg=100.0)

    def test_sample_limit_checked(self, sample_tle_lines, equator_observer: ObserverLocation, base_datetime) -> None:
        window = TimeWindow(base_datetime, base_datetime + timedelta(days=30), 1.0)
        with pytest.raises(InvalidParametersError):
            find_passes(list(sample_tle_lines), equator_observer, window)
