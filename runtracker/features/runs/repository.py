"""
Run record repository.

Data access layer for RunRecordModel. Only appends and reads: saved runs
are never updated or reordered.
"""

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from runtracker.shared.repository import BaseRepository
from .models import RunRecordModel
from .schemas import RunRecord, RunSummary, StoredRun


class RunRepository(BaseRepository[RunRecordModel]):
    """Repository for run records."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, RunRecordModel)

    async def append(self, user_id: str, record: RunRecord) -> RunRecordModel:
        """
        Append a new run under a freshly generated id.

        Args:
            user_id: Owner of the run
            record: Assembled run record

        Returns:
            Created row
        """
        return await self.create(
            user_id=user_id,
            time_s=record.time,
            distance_km=record.distance,
            pace=record.pace,
            route=[point.model_dump() for point in record.route],
            map_image=record.map_image,
            steps=record.steps,
            step_source=record.step_source.value,
            average_speed_kmh=record.average_speed_kmh,
            elevation_gain_m=record.elevation_gain_m,
            calories=record.calories,
            created_at=record.created_at,
            started_at=record.started_at,
            ended_at=record.ended_at,
        )

    async def list_for_user(
        self,
        user_id: str,
        limit: int = 50,
        offset: int = 0
    ) -> list[StoredRun]:
        """
        Get a user's runs, newest first.

        Args:
            user_id: Owner of the runs
            limit: Maximum runs to return
            offset: Runs to skip (pagination)

        Returns:
            List of stored runs
        """
        runs = await self.list_by(
            order_by=RunRecordModel.created_at.desc(),
            limit=limit,
            offset=offset,
            user_id=user_id,
        )
        return [StoredRun.model_validate(run.to_dict()) for run in runs]

    async def summarize(self, user_id: str) -> RunSummary:
        """Lifetime totals for a user."""
        result = await self.db.execute(
            select(
                func.count(RunRecordModel.id),
                func.coalesce(func.sum(RunRecordModel.distance_km), 0.0),
                func.coalesce(func.sum(RunRecordModel.time_s), 0),
                func.coalesce(func.sum(RunRecordModel.calories), 0),
                func.coalesce(func.max(RunRecordModel.distance_km), 0.0),
            ).where(RunRecordModel.user_id == user_id)
        )
        count, distance, time_s, calories, longest = result.one()
        return RunSummary(
            total_runs=count or 0,
            total_distance_km=round(float(distance or 0.0), 2),
            total_time_s=int(time_s or 0),
            total_calories=int(calories or 0),
            longest_distance_km=float(longest or 0.0),
        )
