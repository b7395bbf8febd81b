"""
Derived run metrics.

Pace, speed, calorie, cadence and step-estimate formulas used by the live
session state and by the persistence pipeline. Centralizing them here keeps
the live display and the saved record consistent.
"""

import math

# Energy cost of running on flat ground, kcal per km per kg of body mass
KCAL_PER_KM_PER_KG = 1.036

# Average running stride used when no step sensor is available
DEFAULT_STRIDE_M = 0.78

# Device speed is reported in m/s
MPS_TO_KMH = 3.6


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero.

    Python's round() uses banker's rounding; saved metrics must not flip
    between neighbours on exact halves.
    """
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def pace_seconds_per_km(elapsed_seconds: float, distance_km: float) -> int | None:
    """
    Calculate pace as whole seconds per kilometer.

    Args:
        elapsed_seconds: Total run time in seconds
        distance_km: Distance covered in kilometers

    Returns:
        Seconds per km, or None when distance is zero or values are invalid
    """
    if not (math.isfinite(elapsed_seconds) and math.isfinite(distance_km)):
        return None
    if distance_km <= 0:
        return None
    return round_half_up(elapsed_seconds / distance_km)


def average_speed_kmh(distance_km: float, elapsed_seconds: float) -> float:
    """Average speed over the session, 0 before the first second elapses."""
    if elapsed_seconds <= 0:
        return 0.0
    return distance_km / (elapsed_seconds / 3600)


def calories_burned(distance_km: float, weight_kg: float) -> int:
    """
    Estimate calories for a run.

    Formula: kcal = distance_km * weight_kg * 1.036

    Args:
        distance_km: Distance in kilometers
        weight_kg: Body weight in kilograms

    Returns:
        Calories, never negative
    """
    return max(0, round_half_up(distance_km * weight_kg * KCAL_PER_KM_PER_KG))


def estimate_steps(distance_km: float, stride_m: float = DEFAULT_STRIDE_M) -> int:
    """Estimate steps from distance using a fixed stride length."""
    if stride_m <= 0:
        return 0
    return max(0, round_half_up((distance_km * 1000) / stride_m))


def cadence_spm(steps: int, elapsed_seconds: float) -> int:
    """Steps per minute; 0 before the clock starts."""
    if elapsed_seconds <= 0:
        return 0
    return round_half_up((steps / elapsed_seconds) * 60)


def speed_mps_to_kmh(speed_mps: float | None) -> float:
    """
    Convert a device-reported speed to km/h.

    Missing, non-finite or non-positive speeds map to 0 so the display falls
    back to the session average.
    """
    if speed_mps is None:
        return 0.0
    try:
        speed = float(speed_mps)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(speed) or speed <= 0:
        return 0.0
    return speed * MPS_TO_KMH
