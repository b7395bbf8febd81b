"""
Run persistence pipeline.

Turns a stopped session into a saved run record:
1. Minimum-save gate (too-short runs are discarded, not failed)
2. Derived fields (pace, average speed, steps, calories, elevation)
3. Best-effort map snapshot (never blocks or fails the save)
4. Append-only write to the run store
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from runtracker.features.tracking.config import TrackingConfig
from runtracker.features.tracking.models import RunSession
from runtracker.shared.constants import StepSource
from runtracker.shared.formatters import format_pace
from runtracker.shared.formulas import average_speed_kmh, calories_burned, estimate_steps

from .schemas import RoutePoint, RunRecord
from .snapshot import MapRenderer, NullMapRenderer, SnapshotStorage, build_map_renderer
from .store import RunStore, StoreError

logger = logging.getLogger(__name__)


class SaveOutcome(str, Enum):
    """What happened to a stopped run."""
    SAVED = "saved"
    TOO_SHORT = "too_short"
    FAILED = "failed"


@dataclass(frozen=True)
class SaveResult:
    """Pipeline result with the message to show the user."""
    outcome: SaveOutcome
    message: str
    record_id: Optional[str] = None
    record: Optional[RunRecord] = None


def meets_save_threshold(
    elapsed_seconds: int,
    distance_km: float,
    config: TrackingConfig
) -> bool:
    """Whether a run is long enough to keep."""
    return (
        elapsed_seconds >= config.min_save_seconds
        and distance_km >= config.min_save_distance_km
    )


def assemble_record(
    session: RunSession,
    weight_kg: float,
    ended_at_ms: int,
    config: TrackingConfig,
    map_image: Optional[str] = None,
) -> RunRecord:
    """
    Build the persisted record from a stopped session.

    Distance is rounded to 2 decimals first and every derived field is
    computed from the rounded value, so the record is self-consistent.

    Args:
        session: Stopped session with frozen elapsed_seconds
        weight_kg: User weight for calories
        ended_at_ms: Stop time, epoch ms
        config: Tracking configuration (stride length)
        map_image: Stored snapshot URI, if any

    Returns:
        Immutable RunRecord
    """
    run_seconds = session.elapsed_seconds
    distance = round(session.distance_km, 2)

    if session.step_source == StepSource.SENSOR:
        steps = session.step_count
    else:
        steps = estimate_steps(distance, config.stride_m)

    started_at = session.started_at
    if started_at is None:
        started_at = ended_at_ms - run_seconds * 1000

    return RunRecord(
        time=run_seconds,
        distance=distance,
        pace=format_pace(run_seconds, distance),
        route=[RoutePoint(latitude=p.latitude, longitude=p.longitude) for p in session.trajectory],
        map_image=map_image,
        steps=steps,
        step_source=session.step_source,
        average_speed_kmh=round(average_speed_kmh(distance, run_seconds), 2),
        elevation_gain_m=round(session.elevation_gain_m, 1),
        calories=calories_burned(distance, weight_kg),
        created_at=ended_at_ms,
        started_at=started_at,
        ended_at=ended_at_ms,
    )


class RunPersistencePipeline:
    """
    Persists stopped runs.

    Usage:
        pipeline = RunPersistencePipeline(store, config=config)
        result = await pipeline.persist(user_id, session, weight_kg, ended_at_ms)
    """

    def __init__(
        self,
        store: RunStore,
        config: Optional[TrackingConfig] = None,
        renderer: Optional[MapRenderer] = None,
        storage: Optional[SnapshotStorage] = None,
        capture_timeout_s: float = 15.0,
    ):
        self.store = store
        self.config = config or TrackingConfig()
        self.renderer = renderer or NullMapRenderer()
        self.storage = storage
        self.capture_timeout_s = capture_timeout_s

    async def persist(
        self,
        user_id: Optional[str],
        session: RunSession,
        weight_kg: float,
        ended_at_ms: int,
    ) -> SaveResult:
        """
        Gate, assemble and write one run.

        Never raises: store failures become a FAILED result.
        """
        distance = round(session.distance_km, 2)
        if not meets_save_threshold(session.elapsed_seconds, distance, self.config):
            logger.info(
                f"Run discarded: {session.elapsed_seconds}s / {distance:.2f}km "
                f"below save threshold"
            )
            return SaveResult(
                outcome=SaveOutcome.TOO_SHORT,
                message=(
                    f"Run not saved: it must be at least {self.config.min_save_seconds} "
                    f"seconds and {self.config.min_save_distance_km} km."
                ),
            )

        if not user_id:
            logger.error("Run not saved: no authenticated user")
            return SaveResult(outcome=SaveOutcome.FAILED, message="You are not logged in")

        map_image = await self.capture_map(session, ended_at_ms)
        record = assemble_record(session, weight_kg, ended_at_ms, self.config, map_image)

        try:
            record_id = await self.store.append_record(user_id, record)
        except StoreError as e:
            logger.error(f"Run save failed for {user_id}: {e}")
            return SaveResult(outcome=SaveOutcome.FAILED, message="Failed to save run")
        except Exception as e:
            logger.exception(f"Unexpected error saving run for {user_id}: {e}")
            return SaveResult(outcome=SaveOutcome.FAILED, message="Failed to save run")

        return SaveResult(
            outcome=SaveOutcome.SAVED,
            message="Run saved",
            record_id=record_id,
            record=record,
        )

    async def capture_map(self, session: RunSession, timestamp_ms: int) -> Optional[str]:
        """
        Best-effort route snapshot.

        Returns:
            Stored image URI, or None on any failure
        """
        if not self.renderer.available or self.storage is None or not session.trajectory:
            return None

        try:
            temp_path = await asyncio.wait_for(
                self.renderer.capture(list(session.trajectory)),
                timeout=self.capture_timeout_s,
            )
            return self.storage.store(temp_path, timestamp_ms)
        except Exception as e:
            logger.warning(f"Map snapshot skipped: {e}")
            return None


def build_pipeline(store: RunStore, config: TrackingConfig, settings) -> RunPersistencePipeline:
    """Wire a pipeline from application settings."""
    return RunPersistencePipeline(
        store,
        config=config,
        renderer=build_map_renderer(settings),
        storage=SnapshotStorage(settings.snapshot_dir),
        capture_timeout_s=settings.snapshot_timeout_s + 5.0,
    )
