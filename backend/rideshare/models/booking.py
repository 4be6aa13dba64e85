# backend/rideshare/models/booking.py
"""
Booking model for RideShare.

A booking reserves one vehicle for a date range. Pricing is computed once at
creation from the vehicle's daily rate and the configured rates, and the
snapshot is never recomputed on later transitions.
"""

from enum import Enum
import os
from typing import Any, Dict

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.config import settings
from ..database import Base

IS_SQLITE = os.getenv("DB_DIALECT", "").lower().startswith("sqlite") or settings.is_sqlite


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"  # Requested by renter, vehicle held
    CONFIRMED = "confirmed"  # Accepted by owner
    ACTIVE = "active"  # Rental underway
    COMPLETED = "completed"  # Vehicle returned
    CANCELLED = "cancelled"  # Cancelled by renter or rejected by owner


class PaymentStatus(str, Enum):
    """Payment axis, independent of the lifecycle status."""

    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})
HOLDING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.ACTIVE})


class Booking(Base):
    """
    Reservation of a vehicle by a renter with frozen pricing.

    Invariants (enforced by the calculator, and by check constraints outside
    SQLite): total_price = subtotal + service_fee and
    owner_earnings = subtotal - commission.
    """

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    renter_id = Column(String(64), nullable=False, index=True)
    owner_id = Column(String(64), nullable=False, index=True)
    vehicle_id = Column(String(26), ForeignKey("vehicles.id"), nullable=False, index=True)
    vehicle_name = Column(String(200), nullable=False)

    pickup_date = Column(DateTime(timezone=True), nullable=False)
    return_date = Column(DateTime(timezone=True), nullable=False)
    rental_days = Column(Integer, nullable=False)

    # Frozen pricing snapshot
    daily_rate = Column(Numeric(10, 2), nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)
    service_fee = Column(Numeric(10, 2), nullable=False)
    commission = Column(Numeric(10, 2), nullable=False)
    commission_rate = Column(Numeric(5, 4), nullable=False)
    service_fee_rate = Column(Numeric(5, 4), nullable=False)
    owner_earnings = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)

    cancelled_by_id = Column(String(64), nullable=True)

    # Renter review, written once after completion
    reviewed = Column(Boolean, nullable=False, default=False, server_default="0")
    review_rating = Column(Integer, nullable=True)
    review_comment = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    activated_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    vehicle = relationship("Vehicle", back_populates="bookings")
    chat_channel = relationship("ChatChannel", back_populates="booking", uselist=False)

    _table_constraints = [
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'active', 'completed', 'cancelled')",
            name="ck_bookings_status",
        ),
        CheckConstraint(
            "payment_status IN ('pending', 'paid', 'refunded')",
            name="ck_bookings_payment_status",
        ),
        CheckConstraint("rental_days >= 1", name="check_rental_days_positive"),
        CheckConstraint("daily_rate > 0", name="check_booking_rate_positive"),
        CheckConstraint("return_date > pickup_date", name="check_return_after_pickup"),
        CheckConstraint(
            "review_rating IS NULL OR (review_rating >= 1 AND review_rating <= 5)",
            name="check_review_rating_range",
        ),
        Index("ix_bookings_vehicle_status", "vehicle_id", "status"),
        Index("ix_bookings_created_status", "created_at", "status"),
    ]

    if not IS_SQLITE:
        _table_constraints.extend(
            [
                CheckConstraint(
                    "total_price = subtotal + service_fee", name="check_total_price_identity"
                ),
                CheckConstraint(
                    "owner_earnings = subtotal - commission", name="check_owner_earnings_identity"
                ),
            ]
        )

    __table_args__ = tuple(_table_constraints)

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: renter={self.renter_id}, owner={self.owner_id}, "
            f"vehicle={self.vehicle_id}, status={self.status}>"
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in {s.value for s in TERMINAL_STATUSES}

    def is_participant(self, user_id: str) -> bool:
        return user_id in (self.renter_id, self.owner_id)

    def other_party(self, user_id: str) -> str:
        return self.owner_id if user_id == self.renter_id else self.renter_id

    def pricing_snapshot(self) -> Dict[str, Any]:
        """Frozen pricing fields, as stored at creation."""
        return {
            "daily_rate": self.daily_rate,
            "rental_days": self.rental_days,
            "subtotal": self.subtotal,
            "service_fee": self.service_fee,
            "commission": self.commission,
            "commission_rate": self.commission_rate,
            "service_fee_rate": self.service_fee_rate,
            "owner_earnings": self.owner_earnings,
            "total_price": self.total_price,
        }
