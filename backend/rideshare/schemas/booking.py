# backend/rideshare/schemas/booking.py
"""
Booking schemas for RideShare.

A booking carries its own frozen pricing snapshot, so responses are built
straight from the row and never recomputed from the vehicle.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator

from ..models.booking import BookingStatus
from ._strict_base import StrictModel, StrictRequestModel


class BookingCreate(StrictRequestModel):
    """Renter request to book a vehicle for a date range."""

    vehicle_id: str = Field(..., min_length=1, description="Vehicle to book")
    pickup_date: datetime = Field(..., description="Pickup instant (ISO 8601)")
    return_date: datetime = Field(..., description="Return instant (ISO 8601)")


class BookingStatusUpdate(StrictRequestModel):
    """Requested status change. Who may ask for which status is decided by the service.

    Clients send ``targetStatus``; ``status`` is still accepted.
    """

    status: BookingStatus = Field(..., alias="targetStatus")

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower()
        return v


class BookingResponse(StrictModel):
    """Booking with its frozen price breakdown."""

    id: str
    renter_id: str
    owner_id: str
    vehicle_id: str
    vehicle_name: str
    pickup_date: datetime
    return_date: datetime
    rental_days: int
    daily_rate: Decimal
    subtotal: Decimal
    service_fee: Decimal
    commission: Decimal
    commission_rate: Decimal
    service_fee_rate: Decimal
    owner_earnings: Decimal
    total_price: Decimal
    status: str
    payment_status: str
    cancelled_by_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    activated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    reviewed: bool = False
    review_rating: Optional[int] = None
    review_comment: Optional[str] = None
    reviewed_at: Optional[datetime] = None


class BookingReviewCreate(StrictRequestModel):
    """Renter's one-time rating of a completed rental."""

    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)
