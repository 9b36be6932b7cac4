"""
Pass Prediction Router.

Endpoints:
- GET /api/passes - Find passes of a TLE-described satellite over an observer
"""

import logging
import math
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Query

from backend.schemas.passes import PassSearchResponse
from pass_predictor.config import PassFinderConfig, load_config
from pass_predictor.errors import InvalidParametersError
from pass_predictor.finder import PassFinder
from pass_predictor.geometry import ObserverLocation
from pass_predictor.orbit import SatelliteOrbit
from pass_predictor.utils import get_current_utc, parse_datetime

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["passes"])

_config: Optional[PassFinderConfig] = None


def get_config() -> PassFinderConfig:
    """Pass finder configuration, loaded once per process."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


@router.get("/passes", response_model=PassSearchResponse, response_model_by_alias=True)
def get_passes(
    tle1: Optional[str] = Query(None, description="TLE line 1"),
    tle2: Optional[str] = Query(None, description="TLE line 2"),
    lat: Optional[float] = Query(None, description="Observer latitude (degrees)"),
    lon: Optional[float] = Query(None, description="Observer longitude (degrees)"),
    alt: Optional[float] = Query(None, description="Observer altitude (km)"),
    days: Optional[float] = Query(None, description="Search duration (days)"),
    start: Optional[str] = Query(None, description="Search start, ISO-8601 UTC (default: now)"),
    min_elevation: Optional[float] = Query(None, description="Minimum elevation (degrees)"),
    step: Optional[float] = Query(None, description="Sampling step (seconds)"),
    max_passes: Optional[int] = Query(None, description="Maximum passes returned"),
) -> PassSearchResponse:
    """Find satellite passes over an observer."""
    config = get_config()

    if not tle1 or not tle2:
        raise InvalidParametersError("TLE lines are required")
    satellite = SatelliteOrbit([tle1, tle2])

    if days is None:
        days = config.default_search_days
    if not (math.isfinite(days) and days > 0):
        raise InvalidParametersError(f"Invalid days: {days}. Must be a positive number.", days=days)

    if start:
        try:
            start_time = parse_datetime(start)
        except ValueError as e:
            raise InvalidParametersError(str(e), start=start) from e
    else:
        start_time = get_current_utc()

    observer = ObserverLocation(
        latitude_deg=config.default_latitude_deg if lat is None else lat,
        longitude_deg=config.default_longitude_deg if lon is None else lon,
        altitude_km=config.default_altitude_km if alt is None else alt,
    )

    try:
        end_time = start_time + timedelta(days=days)
    except OverflowError as e:
        raise InvalidParametersError(f"Invalid days: {days}. Search window too long.", days=days) from e

    finder = PassFinder(satellite, observer, min_elevation_deg=min_elevation, config=config)
    result = finder.find_passes(
        start_time,
        end_time,
        step_seconds=step,
        max_passes=max_passes,
    )

    return PassSearchResponse.from_result(result)
