"""
Run History Routes

Saved runs for the history, dashboard and profile views.
"""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from runtracker.db.session import get_async_db
from runtracker.features.runs import RunRepository, RunSummary, StoredRun

router = APIRouter()


@router.get("/{user_id}/runs", response_model=List[StoredRun])
async def list_runs(
    user_id: str,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_async_db)
):
    """User's runs, newest first."""
    return await RunRepository(db).list_for_user(user_id, limit=limit, offset=offset)


@router.get("/{user_id}/runs/summary", response_model=RunSummary)
async def get_summary(user_id: str, db: AsyncSession = Depends(get_async_db)):
    """Totals across all of the user's runs."""
    return await RunRepository(db).summarize(user_id)
