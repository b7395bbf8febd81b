"""
User repositories.

Data access layer for the User model.
"""

import math

from sqlalchemy.ext.asyncio import AsyncSession

from runtracker.shared.repository import BaseRepository
from .models import User


class UserRepository(BaseRepository[User]):
    """Repository for User operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, User)

    async def get_weight_kg(self, user_id: str) -> float | None:
        """
        Get the user's body weight.

        Args:
            user_id: Auth service user id

        Returns:
            Weight in kg, or None if the user is unknown or the stored value
            is not a positive number
        """
        user = await self.get_by_id(user_id)
        if user is None or user.weight_kg is None:
            return None
        weight = float(user.weight_kg)
        if not math.isfinite(weight) or weight <= 0:
            return None
        return weight

    async def get_or_create(self, user_id: str) -> tuple[User, bool]:
        """
        Get a user or create an empty profile for them.

        Returns:
            (user, created)
        """
        user = await self.get_by_id(user_id)
        if user:
            return user, False
        return await self.create(id=user_id), True
