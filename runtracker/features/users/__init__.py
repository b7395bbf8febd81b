"""
User module.

Usage:
    from runtracker.features.users import User, UserRepository

Models:
- User: Application user (weight for calorie estimates)

Repositories:
- UserRepository: Data access for users
"""

from .models import User
from .repository import UserRepository
from .schemas import UserProfileUpdate, UserResponse

__all__ = [
    "User",
    "UserRepository",
    "UserProfileUpdate",
    "UserResponse",
]
