"""
Formatting utilities for display.

Used by the live session state and by saved run records.
"""

import math

from .formulas import pace_seconds_per_km

NO_VALUE = "--"


def format_clock(total_seconds: float) -> str:
    """
    Format elapsed time as 'M:SS' or 'H:MM:SS'.

    Args:
        total_seconds: Elapsed time in seconds (negative clamps to 0)

    Returns:
        Formatted string (e.g., '5:07' or '1:02:09')
    """
    safe_seconds = max(0, math.floor(total_seconds))
    h = safe_seconds // 3600
    m = (safe_seconds % 3600) // 60
    s = safe_seconds % 60

    if h > 0:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m}:{s:02d}"


def format_pace(elapsed_seconds: float, distance_km: float) -> str:
    """
    Format pace as 'M:SS' per km.

    Args:
        elapsed_seconds: Run time in seconds
        distance_km: Distance in kilometers

    Returns:
        Formatted string (e.g., '5:03'), or '--' without distance
    """
    pace = pace_seconds_per_km(elapsed_seconds, distance_km)
    if pace is None:
        return NO_VALUE

    minutes = pace // 60
    seconds = pace % 60
    return f"{minutes}:{seconds:02d}"


def format_number(value: float | None, digits: int = 1) -> str:
    """Fixed-point number, or '--' for missing/non-finite values."""
    if value is None or not math.isfinite(value):
        return NO_VALUE
    return f"{value:.{digits}f}"


def format_distance_km(km: float) -> str:
    """
    Format distance.

    Args:
        km: Distance in kilometers

    Returns:
        Formatted string (e.g., '12.50 km' or '850 m')
    """
    if km < 1:
        return f"{int(km * 1000)} m"
    return f"{km:.2f} km"
