"""
Unified constants for run tracking.

This module provides a single source of truth for session states, step
sources and the tuning defaults of the signal filter and save gate.
"""

from enum import Enum


class RunStatus(str, Enum):
    """
    Lifecycle state of a run session.

    Idle -> Preparing -> Tracking -> Stopping -> Idle
    """
    IDLE = "idle"
    PREPARING = "preparing"
    TRACKING = "tracking"
    STOPPING = "stopping"


class StepSource(str, Enum):
    """Where the step count of a run comes from."""
    SENSOR = "sensor"
    ESTIMATED = "estimated"


# =============================================================================
# Signal filter defaults
# =============================================================================
# Tuning values from field use, not derived; all are overridable via settings.

# Fixes reporting a worse horizontal accuracy are dropped (meters)
DEFAULT_MAX_LOCATION_ACCURACY_M = 30.0

# Longer jumps between fixes are treated as GPS teleports (km)
DEFAULT_MAX_SEGMENT_KM = 0.3

# Shorter moves are stationary jitter (km)
DEFAULT_MIN_SEGMENT_KM = 0.003

# Faster implied speeds are not running (km/h)
DEFAULT_MAX_RUNNING_SPEED_KMH = 35.0

# Altitude steps at or above this are sensor jumps, not climbing (meters)
DEFAULT_MAX_ELEVATION_STEP_M = 4.0

# =============================================================================
# Session lifecycle defaults
# =============================================================================

DEFAULT_INITIAL_FIX_ATTEMPTS = 4
DEFAULT_TARGET_INITIAL_ACCURACY_M = 20.0
DEFAULT_INITIAL_FIX_TIMEOUT_S = 12.0
DEFAULT_TIMER_INTERVAL_S = 0.5

# =============================================================================
# Save gate
# =============================================================================

DEFAULT_MIN_SAVE_SECONDS = 15
DEFAULT_MIN_SAVE_DISTANCE_KM = 0.05

DEFAULT_WEIGHT_KG = 65.0
