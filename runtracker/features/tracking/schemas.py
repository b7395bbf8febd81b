"""
Run tracking schemas.

Pydantic schemas for live session state and sensor input at the API edge.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from runtracker.shared.constants import RunStatus, StepSource

from .models import LocationFix


class PointOut(BaseModel):
    """A coordinate for drawing."""
    latitude: float
    longitude: float


class LiveSessionState(BaseModel):
    """Everything the run screen displays, recomputed on every read."""
    status: RunStatus
    status_text: str
    is_running: bool
    is_busy: bool
    elapsed_seconds: int
    clock: str = Field(..., description="Elapsed time as M:SS or H:MM:SS")
    distance_km: float
    pace: str = Field(..., description="M:SS per km or '--'")
    speed_kmh: float = Field(..., description="Instant speed, else average")
    average_speed_kmh: float
    cadence_spm: int
    calories: int
    elevation_gain_m: float
    steps: int
    step_source: StepSource
    current_point: Optional[PointOut] = None
    trajectory: List[PointOut] = Field(default_factory=list)
    message: Optional[str] = None


class LocationFixIn(BaseModel):
    """A fix pushed by the device."""
    latitude: float
    longitude: float
    accuracy_m: Optional[float] = None
    speed_mps: Optional[float] = None
    altitude_m: Optional[float] = None
    timestamp_ms: Optional[int] = None

    def to_fix(self) -> LocationFix:
        return LocationFix(
            latitude=self.latitude,
            longitude=self.longitude,
            accuracy_m=self.accuracy_m,
            speed_mps=self.speed_mps,
            altitude_m=self.altitude_m,
            timestamp_ms=self.timestamp_ms,
        )


class StepCountIn(BaseModel):
    """Cumulative step count pushed by the device pedometer."""
    steps: int = Field(..., ge=0)


class StartRequest(BaseModel):
    """Device capabilities reported when a run starts."""
    location_permission: bool = True
    location_services_enabled: bool = True
    step_sensor_available: bool = False
    step_permission: bool = False


class StopResponse(BaseModel):
    """Outcome of a stop request."""
    outcome: str = Field(..., description="saved | too_short | failed | ignored")
    message: str
    record_id: Optional[str] = None
