# backend/rideshare/models/vehicle.py
"""
Vehicle availability model for RideShare.

Only the subset of the listing that the booking core reads or writes lives
here. The listing collaborator owns everything else about a vehicle; this
core writes `available` and `total_rentals`, and only through the booking
engine's conditional updates.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class Vehicle(Base):
    """A bookable vehicle and its availability flag."""

    __tablename__ = "vehicles"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    owner_id = Column(String(64), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    daily_rate = Column(Numeric(10, 2), nullable=False)

    available = Column(Boolean, nullable=False, default=True, server_default="1")
    total_rentals = Column(Integer, nullable=False, default=0, server_default="0")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    bookings = relationship("Booking", back_populates="vehicle")

    __table_args__ = (
        CheckConstraint("daily_rate > 0", name="check_vehicle_rate_positive"),
        CheckConstraint("total_rentals >= 0", name="check_total_rentals_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Vehicle {self.id}: owner={self.owner_id}, available={self.available}>"
