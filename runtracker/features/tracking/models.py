"""
Run tracking domain models.

Models:
- GeoPoint: An immutable coordinate pair
- LocationFix: A raw observation from the location provider
- RunSession: The mutable aggregate owned by the session controller
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from runtracker.shared.constants import RunStatus, StepSource


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """A coordinate in decimal degrees."""

    latitude: float
    longitude: float

    def to_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True, slots=True)
class LocationFix:
    """
    A single raw location observation.

    Attributes:
        latitude: Latitude in decimal degrees (may be garbage from the device).
        longitude: Longitude in decimal degrees.
        accuracy_m: Horizontal accuracy radius in meters, if reported.
        speed_mps: Device speed in meters/second, if reported.
        altitude_m: Altitude in meters, if reported.
        timestamp_ms: Unix epoch milliseconds, if reported.
    """

    latitude: float
    longitude: float
    accuracy_m: Optional[float] = None
    speed_mps: Optional[float] = None
    altitude_m: Optional[float] = None
    timestamp_ms: Optional[int] = None

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(float(self.latitude), float(self.longitude))


@dataclass
class RunSession:
    """
    Live state of one run.

    Owned by exactly one RunSessionController. The signal filter mutates it
    only when the controller hands it a fix.
    """

    status: RunStatus = RunStatus.IDLE
    started_at: Optional[int] = None
    elapsed_seconds: int = 0

    trajectory: list[GeoPoint] = field(default_factory=list)
    distance_km: float = 0.0
    elevation_gain_m: float = 0.0

    step_count: int = 0
    step_source: StepSource = StepSource.ESTIMATED

    last_accepted_point: Optional[GeoPoint] = None
    last_accepted_timestamp: Optional[int] = None
    last_altitude: Optional[float] = None

    current_point: Optional[GeoPoint] = None
    instant_speed_kmh: float = 0.0

    def reset(self) -> None:
        """Return every accumulator to rest and the status to Idle."""
        self.status = RunStatus.IDLE
        self.started_at = None
        self.elapsed_seconds = 0
        self.trajectory = []
        self.distance_km = 0.0
        self.elevation_gain_m = 0.0
        self.step_count = 0
        self.step_source = StepSource.ESTIMATED
        self.last_accepted_point = None
        self.last_accepted_timestamp = None
        self.last_altitude = None
        self.current_point = None
        self.instant_speed_kmh = 0.0
