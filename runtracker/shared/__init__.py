"""
Shared utilities (NOT business logic).

Usage:
    from runtracker.shared import distance_km, format_pace
    from runtracker.shared.formulas import calories_burned
"""
from .geo import (
    haversine,
    distance_km,
    is_valid_coordinate,
    calculate_total_distance,
    EARTH_RADIUS_KM,
)
from .formatters import (
    format_clock,
    format_pace,
    format_number,
    format_distance_km,
)
from .formulas import (
    round_half_up,
    pace_seconds_per_km,
    average_speed_kmh,
    calories_burned,
    estimate_steps,
    cadence_spm,
    speed_mps_to_kmh,
)
from .constants import RunStatus, StepSource
from .repository import BaseRepository

__all__ = [
    # geo
    "haversine",
    "distance_km",
    "is_valid_coordinate",
    "calculate_total_distance",
    "EARTH_RADIUS_KM",
    # formatters
    "format_clock",
    "format_pace",
    "format_number",
    "format_distance_km",
    # formulas
    "round_half_up",
    "pace_seconds_per_km",
    "average_speed_kmh",
    "calories_burned",
    "estimate_steps",
    "cadence_spm",
    "speed_mps_to_kmh",
    # constants
    "RunStatus",
    "StepSource",
    # repository
    "BaseRepository",
]
