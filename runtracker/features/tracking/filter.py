"""
GPS signal filter.

Decides, for every incoming location fix, whether it extends the run
trajectory and what distance/elevation it contributes.

Rules (applied per fix, in arrival order, never reordered):
1. Non-finite coordinates or accuracy worse than the cutoff -> dropped.
2. First usable fix of the session -> accepted as the start point.
3. Segment from the last accepted point:
   - longer than max_segment_km      -> teleport, dropped
   - shorter than min_segment_km     -> stationary jitter, display only
   - implied speed > max running     -> dropped
   - otherwise                       -> appended, distance accumulated
4. Altitude: only positive steps below max_elevation_step_m count as gain.
5. Device speed updates the instantaneous speed readout.

The filter never raises for malformed input: a noisy stream degrades to
dropped points, never to an aborted run.
"""

import logging
import math
from enum import Enum
from typing import Optional

from runtracker.shared.geo import distance_km, is_valid_coordinate
from runtracker.shared.formulas import speed_mps_to_kmh

from .config import TrackingConfig
from .models import LocationFix, RunSession

logger = logging.getLogger(__name__)

MS_PER_HOUR = 3_600_000


class FilterResult(str, Enum):
    """Outcome of filtering one fix."""
    FIRST = "first"
    ACCEPTED = "accepted"
    JITTER = "jitter"
    TELEPORT = "teleport"
    TOO_FAST = "too_fast"
    INVALID = "invalid"
    LOW_ACCURACY = "low_accuracy"

    @property
    def extends_trajectory(self) -> bool:
        return self in (FilterResult.FIRST, FilterResult.ACCEPTED)

    @property
    def dropped(self) -> bool:
        """True if the fix left the session completely untouched."""
        return self in (
            FilterResult.TELEPORT,
            FilterResult.TOO_FAST,
            FilterResult.INVALID,
            FilterResult.LOW_ACCURACY,
        )


def finite_or_none(value) -> Optional[float]:
    """Coerce a sensor reading to float, None if missing or not finite."""
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class SignalFilter:
    """
    Filters raw fixes into a validated trajectory.

    Usage:
        signal_filter = SignalFilter(TrackingConfig())
        result = signal_filter.apply(session, fix)
    """

    def __init__(self, config: Optional[TrackingConfig] = None):
        self.config = config or TrackingConfig()

    def apply(self, session: RunSession, fix: LocationFix) -> FilterResult:
        """
        Feed one fix into the session.

        Args:
            session: Session whose accumulators are updated in place
            fix: Raw location observation

        Returns:
            FilterResult describing what happened to the fix
        """
        if not is_valid_coordinate(fix.latitude, fix.longitude):
            logger.debug("Dropped fix with invalid coordinates")
            return FilterResult.INVALID

        accuracy = finite_or_none(fix.accuracy_m)
        if accuracy is not None and accuracy > self.config.max_location_accuracy_m:
            logger.debug(f"Dropped low-accuracy fix ({accuracy:.0f} m)")
            return FilterResult.LOW_ACCURACY

        point = fix.point
        timestamp = finite_or_none(fix.timestamp_ms)
        timestamp_ms = int(timestamp) if timestamp is not None else None
        last_point = session.last_accepted_point

        if last_point is None:
            session.trajectory = [point]
            session.last_accepted_point = point
            session.last_accepted_timestamp = timestamp_ms
            result = FilterResult.FIRST
        else:
            segment = distance_km(last_point, point)

            if segment > self.config.max_segment_km:
                logger.debug(f"Dropped teleport fix ({segment * 1000:.0f} m jump)")
                return FilterResult.TELEPORT

            if segment < self.config.min_segment_km:
                result = FilterResult.JITTER
            else:
                implied_speed = self._implied_speed_kmh(
                    segment, session.last_accepted_timestamp, timestamp_ms
                )
                if (
                    implied_speed is not None
                    and implied_speed > self.config.max_running_speed_kmh
                ):
                    logger.debug(f"Dropped implausible fix ({implied_speed:.1f} km/h)")
                    return FilterResult.TOO_FAST

                session.trajectory.append(point)
                session.distance_km += segment
                session.last_accepted_point = point
                session.last_accepted_timestamp = timestamp_ms
                result = FilterResult.ACCEPTED

        session.current_point = point
        session.instant_speed_kmh = speed_mps_to_kmh(fix.speed_mps)
        self._apply_altitude(session, fix)
        return result

    def apply_step_count(self, session: RunSession, steps) -> bool:
        """
        Record a cumulative step count from the sensor.

        Returns:
            True if the reading was usable and stored
        """
        value = finite_or_none(steps)
        if value is None or value < 0:
            return False
        session.step_count = int(value)
        return True

    @staticmethod
    def _implied_speed_kmh(
        segment_km: float,
        previous_ms: Optional[int],
        current_ms: Optional[int],
    ) -> Optional[float]:
        """Speed implied by a segment, None when timestamps can't tell."""
        if previous_ms is None or current_ms is None:
            return None
        if current_ms <= previous_ms:
            return None
        elapsed_hours = (current_ms - previous_ms) / MS_PER_HOUR
        return segment_km / elapsed_hours

    def _apply_altitude(self, session: RunSession, fix: LocationFix) -> None:
        altitude = finite_or_none(fix.altitude_m)
        if altitude is None:
            return

        if session.last_altitude is not None:
            gain = altitude - session.last_altitude
            if 0 < gain < self.config.max_elevation_step_m:
                session.elevation_gain_m += gain
        session.last_altitude = altitude
