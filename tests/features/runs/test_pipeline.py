"""
Tests for the run persistence pipeline.

Tests the save gate, record assembly and best-effort map snapshots.
"""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from runtracker.config import Settings
from runtracker.features.runs.pipeline import (
    RunPersistencePipeline,
    SaveOutcome,
    assemble_record,
    build_pipeline,
    meets_save_threshold,
)
from runtracker.features.runs.snapshot import (
    MapCaptureError,
    MapRenderer,
    NullMapRenderer,
    SnapshotStorage,
    StaticMapRenderer,
)
from runtracker.features.runs.store import RunStore, StoreError
from runtracker.features.tracking.config import TrackingConfig
from runtracker.features.tracking.models import GeoPoint, RunSession
from runtracker.shared.constants import RunStatus, StepSource

from tests.helpers import T0, MemoryRunStore


ENDED_AT = T0 + 400_000


def stopped_session(distance_km=1.2345, seconds=400, **kwargs) -> RunSession:
    """A session as the controller hands it to the pipeline."""
    session = RunSession(
        status=RunStatus.STOPPING,
        started_at=T0,
        elapsed_seconds=seconds,
        distance_km=distance_km,
        trajectory=[GeoPoint(43.2, 76.9), GeoPoint(43.21, 76.9)],
        elevation_gain_m=12.34,
    )
    for key, value in kwargs.items():
        setattr(session, key, value)
    return session


class FileRenderer(MapRenderer):
    """Writes a fake image into a directory."""

    def __init__(self, directory: Path):
        self.directory = directory
        self.calls = 0

    @property
    def available(self) -> bool:
        return True

    async def capture(self, route):
        self.calls += 1
        path = self.directory / f"capture-{self.calls}.jpg"
        path.write_bytes(b"\xff\xd8fake-jpeg")
        return path


class FailingRenderer(MapRenderer):
    def __init__(self, error: Exception):
        self.error = error

    @property
    def available(self) -> bool:
        return True

    async def capture(self, route):
        raise self.error


class HangingRenderer(MapRenderer):
    @property
    def available(self) -> bool:
        return True

    async def capture(self, route):
        await asyncio.Event().wait()


# =============================================================================
# Test Save Gate
# =============================================================================

class TestSaveThreshold:
    """Tests for meets_save_threshold."""

    @pytest.mark.parametrize("seconds,distance,expected", [
        (15, 0.05, True),
        (14, 5.0, False),
        (3600, 0.04, False),
        (0, 0.0, False),
    ])
    def test_threshold(self, seconds, distance, expected):
        assert meets_save_threshold(seconds, distance, TrackingConfig()) is expected

    def test_custom_threshold(self):
        config = TrackingConfig(min_save_seconds=60, min_save_distance_km=1.0)
        assert not meets_save_threshold(59, 2.0, config)


# =============================================================================
# Test Record Assembly
# =============================================================================

class TestAssembleRecord:
    """Derived fields are computed from the rounded distance."""

    def test_derived_fields(self):
        record = assemble_record(stopped_session(), 65.0, ENDED_AT, TrackingConfig())

        assert record.time == 400
        assert record.distance == 1.23
        assert record.pace == "5:25"  # 400 / 1.23 = 325.2 s/km
        assert record.average_speed_kmh == pytest.approx(11.07)
        assert record.calories == 83  # 1.23 * 65 * 1.036 = 82.8
        assert record.steps == 1577  # 1230 m / 0.78 m
        assert record.step_source == StepSource.ESTIMATED
        assert record.elevation_gain_m == 12.3
        assert record.started_at == T0
        assert record.created_at == record.ended_at == ENDED_AT
        assert [(p.latitude, p.longitude) for p in record.route] == [(43.2, 76.9), (43.21, 76.9)]

    def test_sensor_steps_used_as_is(self):
        session = stopped_session(step_source=StepSource.SENSOR, step_count=1490)
        record = assemble_record(session, 65.0, ENDED_AT, TrackingConfig())

        assert record.steps == 1490
        assert record.step_source == StepSource.SENSOR

    def test_missing_start_derived_from_elapsed(self):
        session = stopped_session(started_at=None)
        record = assemble_record(session, 65.0, ENDED_AT, TrackingConfig())
        assert record.started_at == ENDED_AT - 400_000

    def test_serialized_with_camel_case_keys(self):
        record = assemble_record(
            stopped_session(), 65.0, ENDED_AT, TrackingConfig(), map_image="file:///m.jpg"
        )
        data = record.model_dump(by_alias=True, mode="json")

        assert data["mapImage"] == "file:///m.jpg"
        assert data["stepSource"] == "estimated"
        assert data["averageSpeedKmh"] == pytest.approx(11.07)
        assert data["elevationGainM"] == 12.3
        assert {"createdAt", "startedAt", "endedAt"} <= set(data)
        assert data["route"][0] == {"latitude": 43.2, "longitude": 76.9}

    def test_record_is_immutable(self):
        record = assemble_record(stopped_session(), 65.0, ENDED_AT, TrackingConfig())
        with pytest.raises(Exception):
            record.distance = 99.0


# =============================================================================
# Test Persist
# =============================================================================

class TestPersist:
    """Tests for RunPersistencePipeline.persist."""

    def test_saved(self):
        store = MemoryRunStore()
        pipeline = RunPersistencePipeline(store)

        result = asyncio.run(pipeline.persist("runner-1", stopped_session(), 65.0, ENDED_AT))

        assert result.outcome == SaveOutcome.SAVED
        assert result.message == "Run saved"
        assert result.record_id == "run-1"
        assert store.records[0][1] == result.record
        assert result.record.map_image is None

    def test_too_short_is_not_written(self):
        store = MemoryRunStore()
        pipeline = RunPersistencePipeline(store)

        result = asyncio.run(
            pipeline.persist("runner-1", stopped_session(seconds=10), 65.0, ENDED_AT)
        )

        assert result.outcome == SaveOutcome.TOO_SHORT
        assert "at least 15 seconds and 0.05 km" in result.message
        assert result.record is None
        assert store.records == []

    def test_distance_gate_uses_rounded_distance(self):
        """0.046 km rounds to 0.05 km and passes the gate."""
        pipeline = RunPersistencePipeline(MemoryRunStore())
        result = asyncio.run(
            pipeline.persist("runner-1", stopped_session(distance_km=0.046), 65.0, ENDED_AT)
        )
        assert result.outcome == SaveOutcome.SAVED
        assert result.record.distance == 0.05

    def test_no_user(self):
        store = MemoryRunStore()
        pipeline = RunPersistencePipeline(store)

        result = asyncio.run(pipeline.persist(None, stopped_session(), 65.0, ENDED_AT))

        assert result.outcome == SaveOutcome.FAILED
        assert result.message == "You are not logged in"
        assert store.records == []

    def test_store_failure(self):
        pipeline = RunPersistencePipeline(MemoryRunStore(fail_append=True))

        result = asyncio.run(pipeline.persist("runner-1", stopped_session(), 65.0, ENDED_AT))

        assert result.outcome == SaveOutcome.FAILED
        assert result.message == "Failed to save run"
        assert result.record_id is None

    def test_store_error_message(self):
        store = MagicMock(spec=RunStore)
        store.append_record = AsyncMock(side_effect=StoreError("connection refused"))
        pipeline = RunPersistencePipeline(store)

        result = asyncio.run(pipeline.persist("runner-1", stopped_session(), 65.0, ENDED_AT))

        store.append_record.assert_awaited_once()
        user_id, record = store.append_record.await_args.args
        assert user_id == "runner-1"
        assert record.distance == 1.23
        assert result.outcome == SaveOutcome.FAILED
        assert result.message == "Failed to save run"

    def test_unexpected_store_error(self):
        class ExplodingStore(MemoryRunStore):
            async def append_record(self, user_id, record):
                raise ValueError("boom")

        pipeline = RunPersistencePipeline(ExplodingStore())
        result = asyncio.run(pipeline.persist("runner-1", stopped_session(), 65.0, ENDED_AT))
        assert result.outcome == SaveOutcome.FAILED


# =============================================================================
# Test Map Snapshots
# =============================================================================

class TestMapSnapshot:
    """Snapshots are optional and never fail a save."""

    def test_snapshot_stored_with_record(self, tmp_path):
        renderer = FileRenderer(tmp_path)
        storage = SnapshotStorage(tmp_path / "snapshots")
        pipeline = RunPersistencePipeline(MemoryRunStore(), renderer=renderer, storage=storage)

        result = asyncio.run(pipeline.persist("runner-1", stopped_session(), 65.0, ENDED_AT))

        stored = tmp_path / "snapshots" / f"run-map-{ENDED_AT}.jpg"
        assert result.outcome == SaveOutcome.SAVED
        assert result.record.map_image == stored.resolve().as_uri()
        assert stored.read_bytes() == b"\xff\xd8fake-jpeg"
        assert not (tmp_path / "capture-1.jpg").exists()

    @pytest.mark.parametrize("error", [
        MapCaptureError("quota exceeded"),
        RuntimeError("renderer crashed"),
    ])
    def test_capture_failure_still_saves(self, tmp_path, error):
        pipeline = RunPersistencePipeline(
            MemoryRunStore(),
            renderer=FailingRenderer(error),
            storage=SnapshotStorage(tmp_path),
        )

        result = asyncio.run(pipeline.persist("runner-1", stopped_session(), 65.0, ENDED_AT))

        assert result.outcome == SaveOutcome.SAVED
        assert result.record.map_image is None

    def test_slow_capture_times_out(self, tmp_path):
        pipeline = RunPersistencePipeline(
            MemoryRunStore(),
            renderer=HangingRenderer(),
            storage=SnapshotStorage(tmp_path),
            capture_timeout_s=0.05,
        )

        result = asyncio.run(pipeline.persist("runner-1", stopped_session(), 65.0, ENDED_AT))

        assert result.outcome == SaveOutcome.SAVED
        assert result.record.map_image is None

    def test_too_short_run_not_captured(self, tmp_path):
        renderer = FileRenderer(tmp_path)
        pipeline = RunPersistencePipeline(
            MemoryRunStore(), renderer=renderer, storage=SnapshotStorage(tmp_path)
        )

        asyncio.run(pipeline.persist("runner-1", stopped_session(seconds=5), 65.0, ENDED_AT))

        assert renderer.calls == 0

    def test_empty_route_not_captured(self, tmp_path):
        renderer = FileRenderer(tmp_path)
        pipeline = RunPersistencePipeline(
            MemoryRunStore(), renderer=renderer, storage=SnapshotStorage(tmp_path)
        )

        result = asyncio.run(
            pipeline.persist("runner-1", stopped_session(trajectory=[]), 65.0, ENDED_AT)
        )

        assert renderer.calls == 0
        assert result.outcome == SaveOutcome.SAVED


# =============================================================================
# Test Wiring
# =============================================================================

class TestBuildPipeline:
    """Tests for build_pipeline from settings."""

    def test_without_maps_key(self, tmp_path):
        settings = Settings(maps_api_key="", snapshot_dir=tmp_path)
        pipeline = build_pipeline(MemoryRunStore(), TrackingConfig(), settings)

        assert isinstance(pipeline.renderer, NullMapRenderer)
        assert pipeline.storage.directory == tmp_path

    def test_with_maps_key(self, tmp_path):
        settings = Settings(maps_api_key="test-key", snapshot_dir=tmp_path)
        pipeline = build_pipeline(MemoryRunStore(), TrackingConfig(), settings)

        assert isinstance(pipeline.renderer, StaticMapRenderer)
        assert pipeline.renderer.available

    def test_tracking_config_from_settings(self):
        settings = Settings(min_save_seconds=30, max_segment_km=0.5)
        config = TrackingConfig.from_settings(settings)

        assert config.min_save_seconds == 30
        assert config.max_segment_km == 0.5
        assert config.max_location_accuracy_m == 30
