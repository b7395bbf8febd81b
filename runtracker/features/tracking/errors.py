"""
Run tracking errors.

Raised at the external boundaries (permissions, location services, user
session). The session controller converts them into user-facing messages;
they never escape from event handling.
"""


class TrackingError(Exception):
    """Base tracking error."""

    user_message = "Unable to start location tracking"


class PermissionDeniedError(TrackingError):
    """Location permission was not granted."""

    user_message = "Please allow location permission"


class LocationServicesDisabledError(TrackingError):
    """Location services (GPS) are turned off on the device."""

    user_message = "Please enable location services (GPS)"


class NoUserError(TrackingError):
    """No authenticated user to record the run for."""

    user_message = "User session not found"


class SessionClosedError(TrackingError):
    """The session was disposed while it was still starting."""

    user_message = "Run session closed"
