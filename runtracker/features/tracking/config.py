"""
Run tracking configuration.

Thresholds are product tuning values, not correctness requirements, so the
engine takes them as a plain dataclass that settings can override.
"""

from dataclasses import dataclass

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


@dataclass(frozen=True)
class TrackingConfig:
    """Configuration for filtering, session lifecycle and the save gate."""

    # Signal filter
    max_location_accuracy_m: float = DEFAULT_MAX_LOCATION_ACCURACY_M
    max_segment_km: float = DEFAULT_MAX_SEGMENT_KM
    min_segment_km: float = DEFAULT_MIN_SEGMENT_KM
    max_running_speed_kmh: float = DEFAULT_MAX_RUNNING_SPEED_KMH
    max_elevation_step_m: float = DEFAULT_MAX_ELEVATION_STEP_M
    stride_m: float = DEFAULT_STRIDE_M

    # Session lifecycle
    initial_fix_attempts: int = DEFAULT_INITIAL_FIX_ATTEMPTS
    target_initial_accuracy_m: float = DEFAULT_TARGET_INITIAL_ACCURACY_M
    initial_fix_timeout_s: float = DEFAULT_INITIAL_FIX_TIMEOUT_S
    timer_interval_s: float = DEFAULT_TIMER_INTERVAL_S

    # Save gate
    min_save_seconds: int = DEFAULT_MIN_SAVE_SECONDS
    min_save_distance_km: float = DEFAULT_MIN_SAVE_DISTANCE_KM

    default_weight_kg: float = DEFAULT_WEIGHT_KG

    @classmethod
    def from_settings(cls, settings) -> "TrackingConfig":
        """Build a config from application settings."""
        return cls(
            max_location_accuracy_m=settings.max_location_accuracy_m,
            max_segment_km=settings.max_segment_km,
            min_segment_km=settings.min_segment_km,
            max_running_speed_kmh=settings.max_running_speed_kmh,
            max_elevation_step_m=settings.max_elevation_step_m,
            stride_m=settings.stride_m,
            initial_fix_attempts=settings.initial_fix_attempts,
            target_initial_accuracy_m=settings.target_initial_accuracy_m,
            initial_fix_timeout_s=settings.initial_fix_timeout_s,
            timer_interval_s=settings.timer_interval_s,
            min_save_seconds=settings.min_save_seconds,
            min_save_distance_km=settings.min_save_distance_km,
            default_weight_kg=settings.default_weight_kg,
        )
