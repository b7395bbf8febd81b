"""
Test doubles shared by the tracking, runs and API tests.
"""

import asyncio
from typing import Optional

from runtracker.features.runs.schemas import RunRecord
from runtracker.features.runs.store import RunStore, StoreError
from runtracker.features.tracking.config import TrackingConfig
from runtracker.features.tracking.models import LocationFix
from runtracker.features.tracking.providers import PushLocationProvider
from runtracker.shared.geo import offset_north


START_LAT = 43.238949
START_LON = 76.945465
T0 = 1_700_000_000_000

# Fast timeouts so retry paths don't slow the suite down
FAST_CONFIG = TrackingConfig(initial_fix_timeout_s=0.05, timer_interval_s=0.01)


def fix_at(km_north: float, seconds: Optional[float] = None, **kwargs) -> LocationFix:
    """Fix km_north of the start point, seconds after T0."""
    lat, lon = offset_north(START_LAT, START_LON, km_north)
    kwargs.setdefault("accuracy_m", 5.0)
    timestamp_ms = None if seconds is None else int(T0 + seconds * 1000)
    return LocationFix(latitude=lat, longitude=lon, timestamp_ms=timestamp_ms, **kwargs)


class FakeClock:
    """Epoch-ms clock that only moves when told to."""

    def __init__(self, now_ms: int = T0):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)


class MemoryRunStore(RunStore):
    """In-memory run store."""

    def __init__(self, weight_kg: Optional[float] = None, fail_append: bool = False):
        self.weight_kg = weight_kg
        self.fail_append = fail_append
        self.fail_weight = False
        self.records: list[tuple[str, RunRecord]] = []

    async def read_user_weight(self, user_id: str) -> Optional[float]:
        if self.fail_weight:
            raise StoreError("weight lookup failed")
        return self.weight_kg

    async def append_record(self, user_id: str, record: RunRecord) -> str:
        if self.fail_append:
            raise StoreError("disk full")
        self.records.append((user_id, record))
        return f"run-{len(self.records)}"


class ScriptedLocationProvider(PushLocationProvider):
    """
    Push provider whose single-shot fixes follow a script.

    Each script entry is a LocationFix to return, an exception to raise, or
    None to hang until the caller's timeout. Once the script runs out,
    get_current_fix() hangs.
    """

    def __init__(self, script=None, **kwargs):
        super().__init__(**kwargs)
        self.script = list(script or [])
        self.fix_requests = 0
        self.high_accuracy_requested = False

    async def enable_high_accuracy(self) -> None:
        self.high_accuracy_requested = True

    async def get_current_fix(self) -> LocationFix:
        self.fix_requests += 1
        step = self.script.pop(0) if self.script else None
        if step is None:
            await asyncio.Event().wait()
        if isinstance(step, Exception):
            raise step
        return step


async def wait_until(predicate, timeout: float = 1.0) -> None:
    """Yield to the event loop until predicate() holds."""
    async def _poll():
        while not predicate():
            await asyncio.sleep(0)
    await asyncio.wait_for(_poll(), timeout)
