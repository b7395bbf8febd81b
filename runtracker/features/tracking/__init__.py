"""
Run tracking module.

Usage:
    from runtracker.features.tracking import SignalFilter, TrackingConfig
    from runtracker.features.tracking.session import RunSessionController
    from runtracker.features.tracking.registry import SessionRegistry

The session controller, registry and GPX replay provider depend on the runs
pipeline, so they are imported from their modules directly.

Available components:
- GeoPoint, LocationFix, RunSession: Domain models
- TrackingConfig: Filter, lifecycle and save-gate thresholds
- SignalFilter: Accept/reject decisions for raw location fixes
- LocationProvider, StepSensorProvider: Sensor abstractions
- PushLocationProvider, PushStepSensor: Providers fed by the HTTP API
"""
from .config import TrackingConfig
from .errors import (
    LocationServicesDisabledError,
    NoUserError,
    PermissionDeniedError,
    SessionClosedError,
    TrackingError,
)
from .filter import FilterResult, SignalFilter
from .models import GeoPoint, LocationFix, RunSession
from .providers import (
    LocationProvider,
    NoStepSensor,
    PushLocationProvider,
    PushStepSensor,
    StepSensorProvider,
    Subscription,
)
from .schemas import LiveSessionState, LocationFixIn, StartRequest, StepCountIn, StopResponse

__all__ = [
    # Models
    "GeoPoint",
    "LocationFix",
    "RunSession",
    "TrackingConfig",
    # Filter
    "FilterResult",
    "SignalFilter",
    # Providers
    "LocationProvider",
    "StepSensorProvider",
    "NoStepSensor",
    "PushLocationProvider",
    "PushStepSensor",
    "Subscription",
    # Errors
    "TrackingError",
    "PermissionDeniedError",
    "LocationServicesDisabledError",
    "NoUserError",
    "SessionClosedError",
    # Schemas
    "LiveSessionState",
    "LocationFixIn",
    "StepCountIn",
    "StartRequest",
    "StopResponse",
]
