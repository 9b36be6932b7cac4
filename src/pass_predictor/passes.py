"""
Pass records and the pass aggregator.

A Pass is immutable once built. The aggregator collects passes in
chronological order and applies the output cap.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .utils import format_utc

logger = logging.getLogger(__name__)

DEFAULT_MAX_PASSES = 50


@dataclass(frozen=True)
class Pass:
    """A visibility window of the satellite above the elevation threshold."""

    aos: datetime
    los: datetime
    max_elevation_deg: float
    max_elevation_time: datetime
    azimuth_at_max: float  # degrees
    aos_azimuth_deg: float
    los_azimuth_deg: float
    range_at_max_km: float
    truncated_start: bool = False  # AOS is the search window start
    truncated_end: bool = False  # LOS is the search window end

    @property
    def duration_seconds(self) -> float:
        return max((self.los - self.aos).total_seconds(), 0.0)

    @property
    def truncated(self) -> bool:
        """True when either boundary was cut by the search window."""
        return self.truncated_start or self.truncated_end

    def to_dict(self) -> Dict[str, Any]:
        """Convert pass to dictionary with ISO-8601 UTC timestamps."""
        return {
            "aos": format_utc(self.aos),
            "los": format_utc(self.los),
            "max_elevation_deg": round(self.max_elevation_deg, 2),
            "max_elevation_time": format_utc(self.max_elevation_time),
            "azimuth_at_max": round(self.azimuth_at_max, 2),
            "duration_seconds": round(self.duration_seconds, 1),
            "aos_azimuth_deg": round(self.aos_azimuth_deg, 2),
            "los_azimuth_deg": round(self.los_azimuth_deg, 2),
            "range_at_max_km": round(self.range_at_max_km, 2),
            "truncated_start": self.truncated_start,
            "truncated_end": self.truncated_end,
            "truncated": self.truncated,
        }

    def __str__(self) -> str:
        """String representation of the pass."""
        return (
            f"Pass {self.aos.strftime('%Y-%m-%d %H:%M:%S')} - "
            f"{self.los.strftime('%H:%M:%S')} UTC, "
            f"Max Elev: {self.max_elevation_deg:.1f}° at az {self.azimuth_at_max:.1f}°"
        )


@dataclass(frozen=True)
class PassSearchResult:
    """Outcome of a pass search."""

    passes: List[Pass] = field(default_factory=list)
    truncated: bool = False  # more passes existed than the cap allowed

    @property
    def pass_count(self) -> int:
        return len(self.passes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "passes": [p.to_dict() for p in self.passes],
            "pass_count": self.pass_count,
            "truncated": self.truncated,
        }


class PassAggregator:
    """
    Collects completed passes in chronological order.

    Passes arrive ordered because the sampler walks time monotonically;
    out-of-order or overlapping input indicates a bug and is rejected.
    """

    def __init__(self, max_count: int = DEFAULT_MAX_PASSES) -> None:
        if max_count < 0:
            raise ValueError(f"max_count must be >= 0, got {max_count}")
        self.max_count = max_count
        self._passes: List[Pass] = []

    def add(self, pass_: Pass) -> None:
        if self._passes and pass_.aos < self._passes[-1].los:
            raise ValueError(
                f"Pass starting {pass_.aos} overlaps or precedes previous pass "
                f"ending {self._passes[-1].los}"
            )
        self._passes.append(pass_)

    @property
    def is_full(self) -> bool:
        """True once more passes are held than the cap allows."""
        return len(self._passes) > self.max_count

    def __len__(self) -> int:
        return len(self._passes)

    def finalize(self, max_count: Optional[int] = None) -> PassSearchResult:
        """
        Truncate to the first max_count passes.

        Args:
            max_count: Output cap (defaults to the aggregator's cap)

        Returns:
            PassSearchResult with the truncated flag set when passes were dropped
        """
        if max_count is None:
            max_count = self.max_count
        truncated = len(self._passes) > max_count
        if truncated:
            logger.debug(f"Truncating {len(self._passes)} passes to {max_count}")
        return PassSearchResult(passes=list(self._passes[:max_count]), truncated=truncated)
