"""
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest and provides:
- Custom markers for test categorization
- Shared fixtures for common test setup
"""

from datetime import datetime, timedelta
from typing import List, Tuple

import pytest
from _pytest.config import Config
from _pytest.python import Function

from pass_predictor.geometry import ObserverLocation
from propagators import ScriptedPropagator, triangle_profile


def pytest_collection_modifyitems(config: Config, items: List[Function]) -> None:
    """Auto-mark integration tests."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


# =============================================================================
# FIXTURES - Common test setup
# =============================================================================


@pytest.fixture
def sample_tle_lines() -> Tuple[str, str]:
    """Sample TLE data for ICEYE-X44."""
    return (
        "1 62707U 25009DC  25306.22031033  .00004207  00000+0  39848-3 0  9995",
        "2 62707  97.7269  23.9854 0002193 135.9671 224.1724 14.94137357 66022",
    )


@pytest.fixture
def sample_satellite(sample_tle_lines: Tuple[str, str]):
    """Create a sample SatelliteOrbit for testing."""
    from pass_predictor.orbit import SatelliteOrbit

    return SatelliteOrbit(list(sample_tle_lines), "ICEYE-X44")


@pytest.fixture
def tle_file(sample_tle_lines: Tuple[str, str], tmp_path) -> str:
    """Three-line TLE file containing ICEYE-X44."""
    path = tmp_path / "test.tle"
    path.write_text(f"ICEYE-X44\n{sample_tle_lines[0]}\n{sample_tle_lines[1]}\n")
    return str(path)


@pytest.fixture
def dubai() -> ObserverLocation:
    return ObserverLocation(latitude_deg=25.2048, longitude_deg=55.2708, altitude_km=0.0)


@pytest.fixture
def equator_observer() -> ObserverLocation:
    """Observer at 0°N, 0°E, sea level."""
    return ObserverLocation(latitude_deg=0.0, longitude_deg=0.0, altitude_km=0.0)


@pytest.fixture
def base_datetime() -> datetime:
    """Standard base datetime for tests."""
    return datetime(2025, 11, 8, 0, 0, 0)


@pytest.fixture
def time_range(base_datetime: datetime) -> Tuple[datetime, datetime]:
    """Standard 48-hour time range for tests."""
    return base_datetime, base_datetime + timedelta(hours=48)


@pytest.fixture
def overhead_propagator(equator_observer: ObserverLocation, base_datetime: datetime) -> ScriptedPropagator:
    """Directly overhead at base_datetime, 0° elevation at ±300 s."""
    return ScriptedPropagator(equator_observer, base_datetime, triangle_profile(90.0, 300.0))


@pytest.fixture
def test_client():
    """FastAPI test client for the backend."""
    from fastapi.testclient import TestClient

    from backend.main import app

    return TestClient(app)
