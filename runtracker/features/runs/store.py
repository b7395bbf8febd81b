"""
Run store.

The persistence boundary used by the session controller and the pipeline:
read the user's weight, append a finished run. SqlRunStore implements it on
top of the async SQLAlchemy repositories, one short transaction per call.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from runtracker.features.users import UserRepository
from .repository import RunRepository
from .schemas import RunRecord, RunSummary, StoredRun

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """The store was unreachable or rejected the operation."""
    pass


class RunStore(ABC):
    """Abstract run store."""

    @abstractmethod
    async def read_user_weight(self, user_id: str) -> Optional[float]:
        """User's weight in kg, or None if not on record."""
        pass

    @abstractmethod
    async def append_record(self, user_id: str, record: RunRecord) -> str:
        """
        Append a run under a newly generated id.

        Returns:
            The new record id

        Raises:
            StoreError: If the write failed
        """
        pass


class SqlRunStore(RunStore):
    """
    Run store backed by the application database.

    Usage:
        store = SqlRunStore(AsyncSessionLocal)
        record_id = await store.append_record(user_id, record)
    """

    def __init__(self, session_factory):
        self._session_factory = session_factory

    async def read_user_weight(self, user_id: str) -> Optional[float]:
        try:
            async with self._session_factory() as db:
                return await UserRepository(db).get_weight_kg(user_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read weight for {user_id}: {e}") from e

    async def append_record(self, user_id: str, record: RunRecord) -> str:
        try:
            try:
                return await self._append(user_id, record)
            except IntegrityError:
                # A concurrent first save created the user row; it exists now
                logger.info(f"User {user_id} created concurrently, retrying save")
                return await self._append(user_id, record)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to save run for {user_id}: {e}") from e

    async def _append(self, user_id: str, record: RunRecord) -> str:
        async with self._session_factory() as db:
            # Identity lives in the auth service; the profile row may not exist yet
            await UserRepository(db).get_or_create(user_id)
            run = await RunRepository(db).append(user_id, record)
            await db.commit()
            logger.info(f"Saved run {run.id} for user {user_id}")
            return run.id

    async def list_records(self, user_id: str, limit: int = 50, offset: int = 0) -> list[StoredRun]:
        try:
            async with self._session_factory() as db:
                return await RunRepository(db).list_for_user(user_id, limit=limit, offset=offset)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list runs for {user_id}: {e}") from e

    async def summarize(self, user_id: str) -> RunSummary:
        try:
            async with self._session_factory() as db:
                return await RunRepository(db).summarize(user_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to summarize runs for {user_id}: {e}") from e
