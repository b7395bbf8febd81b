"""
Run record database model.

Records are append-only: written once when a run stops, never updated.
Epoch timestamps are stored in milliseconds, matching the record contract
read by the history, dashboard and profile views.
"""

from sqlalchemy import Column, String, Integer, Float, BigInteger, ForeignKey, JSON
from sqlalchemy.orm import relationship
import uuid

from runtracker.models.base import Base


class RunRecordModel(Base):
    """A completed, persisted run."""

    __tablename__ = "runs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)

    # Core metrics
    time_s = Column(Integer, nullable=False)
    distance_km = Column(Float, nullable=False)
    pace = Column(String(16), nullable=False)  # "m:ss" per km or "--"
    average_speed_kmh = Column(Float, nullable=False)
    elevation_gain_m = Column(Float, nullable=False, default=0.0)
    calories = Column(Integer, nullable=False, default=0)

    # Steps
    steps = Column(Integer, nullable=False, default=0)
    step_source = Column(String(16), nullable=False)  # "sensor" | "estimated"

    # Route as [{"latitude": .., "longitude": ..}, ...]
    route = Column(JSON, nullable=False, default=list)
    map_image = Column(String(1024), nullable=True)

    # Epoch milliseconds
    created_at = Column(BigInteger, nullable=False, index=True)
    started_at = Column(BigInteger, nullable=False)
    ended_at = Column(BigInteger, nullable=False)

    # Relationships
    user = relationship("User", back_populates="runs")

    def __repr__(self):
        return f"<RunRecord {self.id} user={self.user_id} {self.distance_km}km>"

    def to_dict(self) -> dict:
        """Convert to the record contract (camelCase keys)."""
        return {
            "id": self.id,
            "time": self.time_s,
            "distance": self.distance_km,
            "pace": self.pace,
            "route": self.route or [],
            "mapImage": self.map_image,
            "steps": self.steps,
            "stepSource": self.step_source,
            "averageSpeedKmh": self.average_speed_kmh,
            "elevationGainM": self.elevation_gain_m,
            "calories": self.calories,
            "createdAt": self.created_at,
            "startedAt": self.started_at,
            "endedAt": self.ended_at,
        }
