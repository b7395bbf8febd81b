"""
Geographic utility functions.

This is the SINGLE SOURCE OF TRUTH for geographic calculations.
DO NOT duplicate these functions elsewhere.
"""
import math
from typing import Iterable, Protocol

# Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0


class HasCoordinates(Protocol):
    latitude: float
    longitude: float


def haversine(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    Calculate great-circle distance between two points.

    Args:
        lat1, lon1: First point coordinates (degrees)
        lat2, lon2: Second point coordinates (degrees)

    Returns:
        Distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(lat1_rad) * math.cos(lat2_rad) *
        math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance_km(a: HasCoordinates, b: HasCoordinates) -> float:
    """Great-circle distance in km between two points with lat/lon attributes."""
    return haversine(a.latitude, a.longitude, b.latitude, b.longitude)


def is_valid_coordinate(latitude, longitude) -> bool:
    """True if both values are finite numbers within lat/lon range."""
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError):
        return False
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def calculate_total_distance(points: Iterable[HasCoordinates]) -> float:
    """
    Calculate total distance for a route.

    Args:
        points: Ordered points (anything with latitude/longitude)

    Returns:
        Total distance in kilometers
    """
    total = 0.0
    previous = None

    for point in points:
        if previous is not None:
            total += distance_km(previous, point)
        previous = point

    return total


def offset_north(latitude: float, longitude: float, km: float) -> tuple[float, float]:
    """
    Move a point due north by a distance along the meridian.

    Args:
        latitude, longitude: Start point (degrees)
        km: Distance to move (negative moves south)

    Returns:
        (latitude, longitude) of the moved point
    """
    return latitude + math.degrees(km / EARTH_RADIUS_KM), longitude
