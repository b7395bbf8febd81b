"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

from pathlib import Path
from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, ConfigDict

from runtracker.shared.constants import (
    DEFAULT_INITIAL_FIX_ATTEMPTS,
    DEFAULT_INITIAL_FIX_TIMEOUT_S,
    DEFAULT_MAX_ELEVATION_STEP_M,
    DEFAULT_MAX_LOCATION_ACCURACY_M,
    DEFAULT_MAX_RUNNING_SPEED_KMH,
    DEFAULT_MAX_SEGMENT_KM,
    DEFAULT_MIN_SAVE_DISTANCE_KM,
    DEFAULT_MIN_SAVE_SECONDS,
    DEFAULT_MIN_SEGMENT_KM,
    DEFAULT_TARGET_INITIAL_ACCURACY_M,
    DEFAULT_TIMER_INTERVAL_S,
    DEFAULT_WEIGHT_KG,
)
from runtracker.shared.formulas import DEFAULT_STRIDE_M

# Project root (contains runtracker/)
PROJECT_ROOT = Path(__file__).parent.parent


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # === Database ===
    database_url: str = Field(
        default="sqlite:///./runtracker.db",
        description="Database connection URL"
    )

    # === CORS ===
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:8081", "http://localhost:19006"],
        description="Allowed CORS origins"
    )

    # === Map snapshots ===
    maps_api_key: Optional[str] = Field(
        default=None,
        description="Static maps API key; snapshots are disabled without it"
    )
    static_maps_url: str = Field(
        default="https://maps.googleapis.com/maps/api/staticmap",
        description="Static maps endpoint"
    )
    snapshot_dir: Path = Field(
        default=PROJECT_ROOT / "snapshots",
        description="Where captured run map images are stored"
    )
    snapshot_timeout_s: float = Field(default=10.0)

    # === Athlete defaults ===
    default_weight_kg: float = Field(default=DEFAULT_WEIGHT_KG, gt=0)

    # === Signal filter ===
    max_location_accuracy_m: float = Field(default=DEFAULT_MAX_LOCATION_ACCURACY_M)
    max_segment_km: float = Field(default=DEFAULT_MAX_SEGMENT_KM)
    min_segment_km: float = Field(default=DEFAULT_MIN_SEGMENT_KM)
    max_running_speed_kmh: float = Field(default=DEFAULT_MAX_RUNNING_SPEED_KMH)
    max_elevation_step_m: float = Field(default=DEFAULT_MAX_ELEVATION_STEP_M)
    stride_m: float = Field(default=DEFAULT_STRIDE_M, gt=0)

    # === Session lifecycle ===
    initial_fix_attempts: int = Field(default=DEFAULT_INITIAL_FIX_ATTEMPTS, ge=1)
    target_initial_accuracy_m: float = Field(default=DEFAULT_TARGET_INITIAL_ACCURACY_M)
    initial_fix_timeout_s: float = Field(default=DEFAULT_INITIAL_FIX_TIMEOUT_S)
    timer_interval_s: float = Field(default=DEFAULT_TIMER_INTERVAL_S)

    # === Save gate ===
    min_save_seconds: int = Field(default=DEFAULT_MIN_SAVE_SECONDS)
    min_save_distance_km: float = Field(default=DEFAULT_MIN_SAVE_DISTANCE_KM)

    @field_validator('database_url')
    @classmethod
    def fix_postgres_url(cls, v: str) -> str:
        """Fix Render/Railway postgres:// URL to postgresql://"""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',')]
        return v

    @field_validator('maps_api_key', mode='before')
    @classmethod
    def empty_key_to_none(cls, v):
        """Treat an empty MAPS_API_KEY as not configured."""
        if v in ("", "null", "None"):
            return None
        return v

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
