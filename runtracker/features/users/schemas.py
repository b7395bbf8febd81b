"""
User schemas.

Pydantic models for user operations.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class UserProfileUpdate(BaseModel):
    """Update profile request. Omitted fields are left unchanged."""

    email: Optional[str] = None
    name: Optional[str] = Field(None, max_length=100)
    weight_kg: Optional[float] = Field(None, gt=0, le=400)


class UserResponse(BaseModel):
    """User response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: Optional[str]
    name: Optional[str]
    weight_kg: Optional[float]
    created_at: Optional[datetime] = None
