"""
Base repository with common data access operations.

Feature repositories wrap one model each and share lookups and paging
through this class. All methods take an AsyncSession; callers own
the transaction and commit.

Usage:
    class RunRepository(BaseRepository[RunRecordModel]):
        def __init__(self, db: AsyncSession):
            super().__init__(db, RunRecordModel)
"""

from typing import Any, TypeVar, Generic, Type

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """Generic async repository for one SQLAlchemy model."""

    def __init__(self, db: AsyncSession, model: Type[T]):
        self.db = db
        self.model = model

    def _filtered(self, query: Select, filters: dict[str, Any]) -> Select:
        """Add an equality condition per field name."""
        for key, value in filters.items():
            query = query.where(getattr(self.model, key) == value)
        return query

    async def get_by_id(self, id: str | int) -> T | None:
        """Get entity by primary key, or None."""
        result = await self.db.execute(
            select(self.model).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def list_by(
        self,
        order_by=None,
        limit: int | None = None,
        offset: int = 0,
        **filters
    ) -> list[T]:
        """
        List entities matching field values.

        Args:
            order_by: Column expression to sort by
            limit: Maximum rows, None for all
            offset: Rows to skip
            **filters: Field name-value pairs to match

        Returns:
            Matching entities
        """
        query = self._filtered(select(self.model), filters)
        if order_by is not None:
            query = query.order_by(order_by)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create(self, **kwargs) -> T:
        """
        Add a new entity and flush it.

        Returns:
            Created entity with server defaults loaded
        """
        entity = self.model(**kwargs)
        self.db.add(entity)
        await self.db.flush()
        await self.db.refresh(entity)
        return entity

    async def update(self, entity: T, **kwargs) -> T:
        """Set fields on an entity and flush."""
        for key, value in kwargs.items():
            setattr(entity, key, value)
        await self.db.flush()
        await self.db.refresh(entity)
        return entity
