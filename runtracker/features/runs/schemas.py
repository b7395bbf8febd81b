"""
Run record schemas.

Pydantic schemas for the persisted run record contract. Attributes are
snake_case; serialized keys are camelCase (the durable format other views
read), so dump with by_alias=True.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from runtracker.shared.constants import StepSource


class CamelModel(BaseModel):
    """Base schema serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class RoutePoint(CamelModel):
    """One trajectory point of a saved run."""
    latitude: float
    longitude: float


class RunRecord(CamelModel):
    """
    A completed run, immutable once written.

    time is seconds, distance is km rounded to 2 decimals, pace is 'm:ss'
    per km or '--'. Timestamps are epoch milliseconds.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        frozen=True,
    )

    time: int = Field(..., ge=0, description="Elapsed seconds")
    distance: float = Field(..., ge=0, description="Distance in km")
    pace: str
    route: List[RoutePoint] = Field(default_factory=list)
    map_image: Optional[str] = None
    steps: int = Field(..., ge=0)
    step_source: StepSource
    average_speed_kmh: float
    elevation_gain_m: float
    calories: int = Field(..., ge=0)
    created_at: int
    started_at: int
    ended_at: int


class StoredRun(RunRecord):
    """A run record as read back from the store."""
    id: str


class RunSummary(CamelModel):
    """Lifetime totals for a user's runs."""
    total_runs: int = 0
    total_distance_km: float = 0.0
    total_time_s: int = 0
    total_calories: int = 0
    longest_distance_km: float = 0.0
