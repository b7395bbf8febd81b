"""
User-related models.

Models:
- User: Application user; identity comes from the auth service, this table
  only holds what run tracking needs (weight for calories).
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, Float
from sqlalchemy.orm import relationship
import uuid

from runtracker.models.base import Base


class User(Base):
    """
    Application user.

    The id is the auth service's user id (uid).
    """

    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=True)

    # Profile
    name = Column(String(100), nullable=True)
    weight_kg = Column(Float, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    runs = relationship(
        "RunRecordModel",
        back_populates="user",
        lazy="noload",
        cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<User {self.id} ({self.name})>"
