"""
GPX replay provider.

Plays a recorded GPX track into a run session as if it were live GPS,
optionally faster than real time. Used for field-testing filter tuning on
real recordings and by the replay script.
"""

import asyncio
import logging
from datetime import timezone
from typing import List, Optional

import gpxpy
import gpxpy.gpx

from .errors import TrackingError
from .models import LocationFix
from .providers import FixCallback, LocationProvider, Subscription
from .session import epoch_ms

logger = logging.getLogger(__name__)


class ReplayError(TrackingError):
    """The GPX content could not be replayed."""

    user_message = "Recorded track is unavailable"


def parse_gpx_fixes(content: str | bytes, accuracy_m: Optional[float] = 5.0) -> List[LocationFix]:
    """
    Extract location fixes from GPX content.

    Track points are used when present, route points otherwise.

    Args:
        content: GPX document
        accuracy_m: Accuracy to report for every fix (GPX has none)

    Returns:
        Fixes in file order

    Raises:
        ReplayError: If the GPX is invalid or has no points
    """
    if isinstance(content, bytes):
        content = content.decode("utf-8")

    try:
        gpx = gpxpy.parse(content)
    except Exception as e:
        logger.error(f"Failed to parse GPX: {e}")
        raise ReplayError(f"Invalid GPX file: {e}") from e

    points: List[gpxpy.gpx.GPXTrackPoint] = [
        point
        for track in gpx.tracks
        for segment in track.segments
        for point in segment.points
    ]
    if not points:
        points = [point for route in gpx.routes for point in route.points]
    if not points:
        raise ReplayError("GPX file contains no track or route points")

    fixes = []
    for point in points:
        timestamp_ms = None
        if point.time is not None:
            moment = point.time
            if moment.tzinfo is None:
                moment = moment.replace(tzinfo=timezone.utc)
            timestamp_ms = int(moment.timestamp() * 1000)

        fixes.append(LocationFix(
            latitude=point.latitude,
            longitude=point.longitude,
            accuracy_m=accuracy_m,
            speed_mps=getattr(point, "speed", None),
            altitude_m=point.elevation,
            timestamp_ms=timestamp_ms,
        ))
    return fixes


class GPXReplayLocationProvider(LocationProvider):
    """
    Location provider backed by a recorded track.

    The first fix answers get_current_fix(); watch() plays the rest with the
    recorded spacing divided by speedup. now_ms() follows the track's own
    time, so a sped-up replay still produces the recorded elapsed time.

    Usage:
        provider = GPXReplayLocationProvider.from_gpx(content, speedup=20)
        controller = RunSessionController(uid, provider, pipeline, clock=provider.now_ms)
        await controller.start()
        await provider.wait_finished()
        await controller.stop()
    """

    DEFAULT_INTERVAL_S = 1.0

    def __init__(self, fixes: List[LocationFix], speedup: float = 1.0):
        if not fixes:
            raise ReplayError("Nothing to replay")
        if speedup <= 0:
            raise ValueError("speedup must be positive")
        self.fixes = fixes
        self.speedup = speedup
        self._finished = asyncio.Event()
        # Untimed tracks are paced at DEFAULT_INTERVAL_S from the current time
        self._track_ms = fixes[0].timestamp_ms if fixes[0].timestamp_ms is not None else epoch_ms()
        self._offset_ms = 0.0

    @classmethod
    def from_gpx(
        cls,
        content: str | bytes,
        speedup: float = 1.0,
        accuracy_m: Optional[float] = 5.0
    ) -> "GPXReplayLocationProvider":
        return cls(parse_gpx_fixes(content, accuracy_m=accuracy_m), speedup=speedup)

    async def request_permission(self) -> bool:
        return True

    async def get_current_fix(self) -> LocationFix:
        return self.fixes[0]

    async def watch(self, on_fix: FixCallback) -> Subscription:
        task = asyncio.create_task(self._play(on_fix))
        task.add_done_callback(lambda _: self._finished.set())
        return Subscription(task.cancel)

    async def wait_finished(self) -> None:
        await self._finished.wait()

    def now_ms(self) -> int:
        """Replay-time clock: the track time reached so far."""
        return int(self._track_ms + self._offset_ms)

    def _interval_s(self, previous: LocationFix, current: LocationFix) -> float:
        if previous.timestamp_ms is None or current.timestamp_ms is None:
            return self.DEFAULT_INTERVAL_S
        return max(0.0, (current.timestamp_ms - previous.timestamp_ms) / 1000)

    async def _play(self, on_fix: FixCallback) -> None:
        previous = self.fixes[0]
        for fix in self.fixes[1:]:
            interval = self._interval_s(previous, fix)
            await asyncio.sleep(interval / self.speedup)
            self._offset_ms += interval * 1000
            on_fix(fix)
            previous = fix
        logger.info(f"Replay finished: {len(self.fixes)} fixes")
