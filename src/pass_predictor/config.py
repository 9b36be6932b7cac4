"""
Pass finder configuration.

Defaults live in PassFinderConfig; a YAML file can override them. The file
is looked up from the PASS_PREDICTOR_CONFIG environment variable, then
config/pass_predictor.yaml at the project root.
"""

import logging
import math
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml  # type: ignore[import-untyped]

from .errors import InvalidParametersError
from .geometry import ObserverLocation
from .passes import DEFAULT_MAX_PASSES
from .refine import (
    DEFAULT_MAX_PEAK_EVALUATIONS,
    DEFAULT_MAX_REFINEMENT_EVALUATIONS,
    DEFAULT_REFINEMENT_TOLERANCE_SECONDS,
)

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PASS_PREDICTOR_CONFIG"
CONFIG_DIR = Path(__file__).resolve().parent.parent.parent / "config"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "pass_predictor.yaml"


@dataclass
class PassFinderConfig:
    """Tunable parameters for pass searches."""

    step_seconds: float = 20.0
    min_elevation_deg: float = 10.0
    max_passes: int = DEFAULT_MAX_PASSES
    max_samples: int = 500_000
    refine_tolerance_seconds: float = DEFAULT_REFINEMENT_TOLERANCE_SECONDS
    refine_max_evaluations: int = DEFAULT_MAX_REFINEMENT_EVALUATIONS
    refine_peak: bool = False
    peak_max_evaluations: int = DEFAULT_MAX_PEAK_EVALUATIONS

    # Request defaults (Moscow, 50 m)
    default_latitude_deg: float = 55.7558
    default_longitude_deg: float = 37.6173
    default_altitude_km: float = 0.05
    default_search_days: float = 7.0

    def __post_init__(self) -> None:
        """Validate configuration values."""
        self._require_positive("step_seconds", self.step_seconds)
        self._require_positive("refine_tolerance_seconds", self.refine_tolerance_seconds)
        self._require_positive("default_search_days", self.default_search_days)

        validate_min_elevation(self.min_elevation_deg)

        for name in ("max_samples", "refine_max_evaluations", "peak_max_evaluations"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 1:
                raise InvalidParametersError(f"{name} must be a positive integer, got {value!r}")

        if not isinstance(self.max_passes, int) or self.max_passes < 0:
            raise InvalidParametersError(
                f"max_passes must be a non-negative integer, got {self.max_passes!r}"
            )

        # Raises for invalid default coordinates
        self.default_observer()

    @staticmethod
    def _require_positive(name: str, value: Any) -> None:
        if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
            raise InvalidParametersError(f"{name} must be a positive number, got {value!r}")

    def default_observer(self) -> ObserverLocation:
        return ObserverLocation(
            latitude_deg=self.default_latitude_deg,
            longitude_deg=self.default_longitude_deg,
            altitude_km=self.default_altitude_km,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PassFinderConfig":
        """Create config from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {', '.join(unknown)}")
        return cls(**{key: value for key, value in data.items() if key in known})


def validate_min_elevation(min_elevation_deg: float) -> None:
    """Elevation threshold must be finite and within [0, 90] degrees."""
    if not (
        isinstance(min_elevation_deg, (int, float))
        and math.isfinite(min_elevation_deg)
        and 0 <= min_elevation_deg <= 90
    ):
        raise InvalidParametersError(
            f"Invalid minimum elevation: {min_elevation_deg}. Must be between 0 and 90 degrees.",
            min_elevation_deg=min_elevation_deg,
        )


def load_config(config_path: Optional[Union[str, Path]] = None) -> PassFinderConfig:
    """
    Load pass finder configuration from YAML.

    Args:
        config_path: Explicit YAML path. Defaults to $PASS_PREDICTOR_CONFIG,
            then config/pass_predictor.yaml.

    Returns:
        PassFinderConfig (built-in defaults if no file exists)

    Raises:
        FileNotFoundError: If an explicitly requested file is missing
        InvalidParametersError: If the file holds invalid values
    """
    explicit = config_path is not None or bool(os.environ.get(CONFIG_ENV_VAR))
    path = Path(config_path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILE)

    if not path.exists():
        if explicit:
            raise FileNotFoundError(f"Config file not found: {path}")
        logger.debug(f"No config file at {path}, using defaults")
        return PassFinderConfig()

    with open(path, "r") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise InvalidParametersError(f"Config file {path} must contain a mapping")

    # Settings may be nested under a top-level "pass_finder" key
    section = raw.get("pass_finder", raw)
    config = PassFinderConfig.from_dict(section)
    logger.info(f"Loaded configuration from {path}")
    return config
