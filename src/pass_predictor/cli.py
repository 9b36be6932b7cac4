"""
Command-line interface for the satellite pass predictor.

This module provides a CLI for finding satellite passes over a ground
observer from the command line.
"""

from datetime import timedelta
from typing import Optional
import json
import logging
import sys

import click
from tabulate import tabulate

from .config import PassFinderConfig, load_config
from .errors import PassPredictionError
from .finder import PassFinder
from .geometry import ObserverLocation
from .orbit import SatelliteOrbit
from .utils import format_duration, get_current_utc, parse_datetime, setup_logging

logger = logging.getLogger(__name__)


def _load_satellite(
    tle: Optional[str], satellite: Optional[str], line1: Optional[str], line2: Optional[str]
) -> SatelliteOrbit:
    if tle:
        if not satellite:
            raise click.UsageError("--satellite is required with --tle")
        return SatelliteOrbit.from_tle_file(tle, satellite)
    if line1 and line2:
        return SatelliteOrbit([line1, line2], satellite)
    raise click.UsageError("Provide --tle and --satellite, or --line1 and --line2")


def _build_observer(
    config: PassFinderConfig, lat: Optional[float], lon: Optional[float], alt: Optional[float]
) -> ObserverLocation:
    return ObserverLocation(
        latitude_deg=config.default_latitude_deg if lat is None else lat,
        longitude_deg=config.default_longitude_deg if lon is None else lon,
        altitude_km=config.default_altitude_km if alt is None else alt,
    )


def satellite_options(func):
    """Options shared by commands that load a satellite and observer."""
    options = [
        click.option('--tle', type=click.Path(exists=True), help='Path to TLE file'),
        click.option('--satellite', help='Satellite name (must match name in TLE file)'),
        click.option('--line1', help='TLE line 1 (alternative to --tle)'),
        click.option('--line2', help='TLE line 2 (alternative to --tle)'),
        click.option('--lat', type=float, help='Observer latitude in degrees (default: from config)'),
        click.option('--lon', type=float, help='Observer longitude in degrees (default: from config)'),
        click.option('--alt', type=float, help='Observer altitude in km (default: from config)'),
        click.option('--min-elevation', type=float,
                     help='Minimum elevation angle in degrees (default: from config)'),
        click.option('--step', type=float, help='Sampling step in seconds (default: from config)'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option('--log-level', default='INFO',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Set logging level')
@click.option('--log-file', type=click.Path(), help='Log file path')
@click.option('--config', 'config_path', type=click.Path(exists=True),
              help='YAML configuration file')
@click.pass_context
def main(ctx: click.Context, log_level: str, log_file: Optional[str], config_path: Optional[str]) -> None:
    """Satellite Pass Predictor - Find when a satellite is visible from a ground location."""
    setup_logging(log_level, log_file)
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(config_path)
    except PassPredictionError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@satellite_options
@click.option('--start-time', type=str,
              help='Start time (YYYY-MM-DD HH:MM:SS UTC, default: now)')
@click.option('--days', type=float, help='Search duration in days (default: from config)')
@click.option('--max-passes', type=int, help='Maximum passes to report (default: from config)')
@click.option('--format', 'output_format', default='table',
              type=click.Choice(['table', 'json']),
              help='Output format')
@click.pass_context
def passes(
    ctx: click.Context,
    tle: Optional[str],
    satellite: Optional[str],
    line1: Optional[str],
    line2: Optional[str],
    lat: Optional[float],
    lon: Optional[float],
    alt: Optional[float],
    min_elevation: Optional[float],
    step: Optional[float],
    start_time: Optional[str],
    days: Optional[float],
    max_passes: Optional[int],
    output_format: str,
) -> None:
    """Find all passes of a satellite over an observer.

    Example:
    passes --tle data.tle --satellite "ISS" --lat 55.75 --lon 37.62 --days 3
    """
    config: PassFinderConfig = ctx.obj["config"]

    try:
        start_dt = parse_datetime(start_time) if start_time else get_current_utc()
        end_dt = start_dt + timedelta(days=config.default_search_days if days is None else days)

        sat = _load_satellite(tle, satellite, line1, line2)
        observer = _build_observer(config, lat, lon, alt)
        finder = PassFinder(sat, observer, min_elevation_deg=min_elevation, config=config)
        result = finder.find_passes(start_dt, end_dt, step_seconds=step, max_passes=max_passes)
    except (PassPredictionError, ValueError, FileNotFoundError) as e:
        logger.error(f"Pass prediction failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if output_format == 'json':
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if not result.passes:
        click.echo(f"No passes found for {sat.satellite_name} between {start_dt} and {end_dt} UTC")
        return

    table = [
        [
            i + 1,
            p.aos.strftime('%Y-%m-%d %H:%M:%S'),
            p.max_elevation_time.strftime('%H:%M:%S'),
            p.los.strftime('%H:%M:%S'),
            f"{p.max_elevation_deg:.1f}",
            f"{p.aos_azimuth_deg:.0f} → {p.azimuth_at_max:.0f} → {p.los_azimuth_deg:.0f}",
            format_duration(p.duration_seconds),
            "yes" if p.truncated else "",
        ]
        for i, p in enumerate(result.passes)
    ]
    click.echo(f"\nPasses of {sat.satellite_name} (UTC):")
    click.echo(tabulate(
        table,
        headers=["#", "AOS", "Max", "LOS", "Max Elev", "Azimuth", "Duration", "Truncated"],
        tablefmt="simple",
    ))
    click.echo(f"\nTotal passes: {result.pass_count}" + (" (limit reached)" if result.truncated else ""))


@main.command()
@satellite_options
@click.option('--hours', default=48.0, type=float,
              help='Hours to search ahead (default: 48)')
@click.pass_context
def next_pass(
    ctx: click.Context,
    tle: Optional[str],
    satellite: Optional[str],
    line1: Optional[str],
    line2: Optional[str],
    lat: Optional[float],
    lon: Optional[float],
    alt: Optional[float],
    min_elevation: Optional[float],
    step: Optional[float],
    hours: float,
) -> None:
    """Find the next satellite pass over an observer."""
    config: PassFinderConfig = ctx.obj["config"]

    try:
        sat = _load_satellite(tle, satellite, line1, line2)
        observer = _build_observer(config, lat, lon, alt)
        finder = PassFinder(sat, observer, min_elevation_deg=min_elevation, config=config)
        p = finder.get_next_pass(get_current_utc(), max_search_hours=hours, step_seconds=step)
    except (PassPredictionError, ValueError, FileNotFoundError) as e:
        logger.error(f"Next pass calculation failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if p is None:
        click.echo(f"No passes found for {sat.satellite_name} in the next {hours:g} hours")
        return

    click.echo(f"\nNext pass of {sat.satellite_name}:")
    click.echo(f"AOS:      {p.aos.strftime('%Y-%m-%d %H:%M:%S')} UTC")
    click.echo(f"Max Elev: {p.max_elevation_time.strftime('%Y-%m-%d %H:%M:%S')} UTC ({p.max_elevation_deg:.1f}°)")
    click.echo(f"LOS:      {p.los.strftime('%Y-%m-%d %H:%M:%S')} UTC")
    click.echo(f"Azimuth:  {p.aos_azimuth_deg:.1f}° → {p.azimuth_at_max:.1f}° → {p.los_azimuth_deg:.1f}°")
    click.echo(f"Duration: {format_duration(p.duration_seconds)}")


if __name__ == '__main__':
    main()
