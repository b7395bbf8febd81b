"""
User Routes

Endpoints for the user profile used by run tracking (weight for calories).
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from runtracker.db.session import get_async_db
from runtracker.features.users import UserProfileUpdate, UserRepository, UserResponse

router = APIRouter()


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, db: AsyncSession = Depends(get_async_db)):
    """Get a user's profile."""
    user = await UserRepository(db).get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    request: UserProfileUpdate,
    db: AsyncSession = Depends(get_async_db)
):
    """
    Create or update a user's profile.

    Creates the user if it doesn't exist.
    """
    user_repo = UserRepository(db)
    user, _ = await user_repo.get_or_create(user_id)

    changes = request.model_dump(exclude_unset=True)
    if changes:
        user = await user_repo.update(user, **changes)
    await db.commit()

    return user
