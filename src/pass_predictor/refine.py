"""
Sub-step refinement of pass boundaries and peaks.

Coarse sampling locates a threshold crossing to within one step. The
functions here narrow it down with a small, fixed budget of extra
evaluations, so timing precision does not depend on the sampling step.
"""

import dataclasses
import logging
import math
from datetime import datetime, timedelta
from typing import Callable, Optional

from .passes import Pass
from .sampling import Sample

logger = logging.getLogger(__name__)

DEFAULT_REFINEMENT_TOLERANCE_SECONDS = 0.5
DEFAULT_MAX_REFINEMENT_EVALUATIONS = 10
DEFAULT_MAX_PEAK_EVALUATIONS = 12

_INV_GOLDEN_RATIO = (math.sqrt(5.0) - 1.0) / 2.0

Evaluator = Callable[[datetime], Sample]


def refine_crossing(
    evaluate: Evaluator,
    before: Sample,
    after: Sample,
    min_elevation_deg: float,
    tolerance_seconds: float = DEFAULT_REFINEMENT_TOLERANCE_SECONDS,
    max_evaluations: int = DEFAULT_MAX_REFINEMENT_EVALUATIONS,
) -> datetime:
    """
    Refine the threshold crossing between two adjacent samples using bisection.

    The bracket is narrowed toward the half whose endpoints disagree on
    visibility. Invalid midpoints count as not visible.

    Args:
        evaluate: Callable returning the Sample at a given time
        before: Earlier sample
        after: Later sample, on the other side of the threshold
        min_elevation_deg: Elevation threshold (degrees)
        tolerance_seconds: Stop once the bracket is narrower than this
        max_evaluations: Maximum calls to evaluate

    Returns:
        Midpoint of the final bracket
    """
    t_left = before.time
    t_right = after.time
    left_visible = before.is_visible(min_elevation_deg)

    if left_visible == after.is_visible(min_elevation_deg):
        # No crossing bracketed - return midpoint
        return t_left + (t_right - t_left) / 2

    tolerance = timedelta(seconds=tolerance_seconds)
    for _ in range(max_evaluations):
        if t_right - t_left <= tolerance:
            break

        t_mid = t_left + (t_right - t_left) / 2
        if evaluate(t_mid).is_visible(min_elevation_deg) == left_visible:
            t_left = t_mid
        else:
            t_right = t_mid

    return t_left + (t_right - t_left) / 2


def refine_peak(
    evaluate: Evaluator,
    pass_: Pass,
    step_seconds: float,
    max_evaluations: int = DEFAULT_MAX_PEAK_EVALUATIONS,
) -> Pass:
    """
    Refine the maximum elevation of a pass with a golden-section search.

    The search covers one step either side of the sampled maximum, clipped
    to [aos, los], so the returned pass keeps aos <= max time <= los.

    Args:
        evaluate: Callable returning the Sample at a given time
        pass_: Pass with a sample-granularity maximum
        step_seconds: Sampling step used to find the pass
        max_evaluations: Maximum calls to evaluate

    Returns:
        A new Pass if a higher elevation was found, otherwise pass_
    """
    step = timedelta(seconds=step_seconds)
    t_low = max(pass_.aos, pass_.max_elevation_time - step)
    t_high = min(pass_.los, pass_.max_elevation_time + step)
    span = (t_high - t_low).total_seconds()
    if span <= 0 or max_evaluations < 2:
        return pass_

    best: Optional[Sample] = None

    def elevation_at(offset: float) -> float:
        nonlocal best
        sample = evaluate(t_low + timedelta(seconds=offset))
        if not sample.valid:
            return -math.inf
        if best is None or sample.elevation_deg > best.elevation_deg:
            best = sample
        return sample.elevation_deg

    a, b = 0.0, span
    c = b - _INV_GOLDEN_RATIO * (b - a)
    d = a + _INV_GOLDEN_RATIO * (b - a)
    fc, fd = elevation_at(c), elevation_at(d)

    for _ in range(max_evaluations - 2):
        if fc >= fd:
            b, d, fd = d, c, fc
            c = b - _INV_GOLDEN_RATIO * (b - a)
            fc = elevation_at(c)
        else:
            a, c, fc = c, d, fd
            d = a + _INV_GOLDEN_RATIO * (b - a)
            fd = elevation_at(d)

    if best is None or best.elevation_deg <= pass_.max_elevation_deg:
        return pass_

    logger.debug(
        f"Peak refined from {pass_.max_elevation_deg:.3f}° to {best.elevation_deg:.3f}°"
    )
    return dataclasses.replace(
        pass_,
        max_elevation_deg=best.elevation_deg,
        max_elevation_time=best.time,
        azimuth_at_max=best.azimuth_deg,
        range_at_max_km=best.range_km,
    )
