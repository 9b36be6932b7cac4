"""
Utility functions for the pass predictor.

This module provides logging setup, UTC time handling and formatting
helpers used throughout the pass prediction tool.
"""

from datetime import datetime, timezone
from typing import Optional
import logging
import math
import os

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV_VAR = "PASS_PREDICTOR_LOG_LEVEL"


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Set up logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path

    Environment Variables:
        PASS_PREDICTOR_LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_level = os.environ.get(LOG_LEVEL_ENV_VAR)
    if env_level:
        level = env_level
    log_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logger.info(f"Logging configured at {level} level")


def to_naive_utc(timestamp: datetime) -> datetime:
    """
    Normalize a datetime to naive UTC.

    Naive inputs are assumed to already be UTC.
    """
    if timestamp.tzinfo is not None:
        return timestamp.astimezone(timezone.utc).replace(tzinfo=None)
    return timestamp


def parse_datetime(date_string: str) -> datetime:
    """
    Parse datetime string in various formats.

    Args:
        date_string: Date string to parse

    Returns:
        Parsed datetime object (naive UTC)

    Raises:
        ValueError: If date string cannot be parsed
    """
    formats = [
        "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%d %H:%M",
        "%Y-%m-%dT%H:%M:%S",
        "%Y-%m-%dT%H:%M:%SZ",
        "%Y-%m-%dT%H:%M:%S.%fZ",
        "%Y-%m-%d",
    ]

    for fmt in formats:
        try:
            return to_naive_utc(datetime.strptime(date_string, fmt))
        except ValueError:
            continue

    # Offsets such as +00:00
    try:
        return to_naive_utc(datetime.fromisoformat(date_string))
    except ValueError:
        pass

    raise ValueError(f"Could not parse datetime string: {date_string}")


def format_utc(timestamp: datetime) -> str:
    """
    Format a timestamp as ISO-8601 UTC with millisecond precision.

    The output is accepted by parse_datetime.
    """
    return to_naive_utc(timestamp).isoformat(timespec="milliseconds") + "Z"


def get_current_utc() -> datetime:
    """
    Get current UTC datetime.

    Returns:
        Current UTC datetime (timezone-naive)
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def validate_coordinates(latitude: float, longitude: float) -> bool:
    """
    Validate latitude and longitude coordinates.

    Args:
        latitude: Latitude in degrees
        longitude: Longitude in degrees

    Returns:
        True if coordinates are finite and within range
    """
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        return False
    return (-90 <= latitude <= 90) and (-180 <= longitude <= 180)


def format_duration(seconds: float) -> str:
    """
    Format duration in seconds to human-readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes, secs = divmod(int(round(seconds)), 60)
        return f"{minutes}m {secs:02d}s"
    else:
        hours = seconds / 3600
        return f"{hours:.1f}h"
