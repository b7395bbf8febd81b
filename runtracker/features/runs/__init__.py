"""
Run records module.

Usage:
    from runtracker.features.runs import RunPersistencePipeline, SqlRunStore

Available components:
- RunRecordModel: SQLAlchemy model for a saved run
- RunRecord, StoredRun, RunSummary: Record schemas (camelCase on the wire)
- RunRepository: Data access for run records
- RunStore, SqlRunStore: Storage boundary used by the pipeline
- StaticMapRenderer, SnapshotStorage: Best-effort route map images
- RunPersistencePipeline: Stop -> gate -> snapshot -> record -> append
"""
from .models import RunRecordModel
from .schemas import RoutePoint, RunRecord, RunSummary, StoredRun
from .repository import RunRepository
from .store import RunStore, SqlRunStore, StoreError
from .snapshot import (
    MapCaptureError,
    MapRenderer,
    NullMapRenderer,
    SnapshotStorage,
    StaticMapRenderer,
)
from .pipeline import (
    RunPersistencePipeline,
    SaveOutcome,
    SaveResult,
    assemble_record,
    build_pipeline,
    meets_save_threshold,
)

__all__ = [
    "RunRecordModel",
    "RoutePoint",
    "RunRecord",
    "StoredRun",
    "RunSummary",
    # Storage
    "RunRepository",
    "RunStore",
    "SqlRunStore",
    "StoreError",
    # Snapshot
    "MapCaptureError",
    "MapRenderer",
    "NullMapRenderer",
    "StaticMapRenderer",
    "SnapshotStorage",
    # Pipeline
    "RunPersistencePipeline",
    "SaveOutcome",
    "SaveResult",
    "assemble_record",
    "build_pipeline",
    "meets_save_threshold",
]
