"""Booking domain events."""
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class BookingCreated:
    """Fired after a booking request is committed and the vehicle is held."""

    booking_id: str
    renter_id: str
    owner_id: str
    vehicle_id: str
    vehicle_name: str
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingConfirmed:
    """Fired after the owner (or a successful payment) confirms a booking."""

    booking_id: str
    renter_id: str
    owner_id: str
    vehicle_name: str
    confirmed_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingActivated:
    """Fired when the rental starts."""

    booking_id: str
    renter_id: str
    owner_id: str
    vehicle_name: str
    activated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingCancelled:
    """Fired after a booking is cancelled by the renter or rejected by the owner."""

    booking_id: str
    renter_id: str
    owner_id: str
    vehicle_name: str
    cancelled_by: str  # user id of the actor
    cancelled_at: datetime
    refunded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingCompleted:
    """Fired after the owner marks the rental complete."""

    booking_id: str
    renter_id: str
    owner_id: str
    vehicle_name: str
    completed_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PaymentConfirmed:
    """Fired after the payment collaborator reports a successful charge."""

    booking_id: str
    renter_id: str
    owner_id: str
    vehicle_name: str
    paid_at: datetime
    total_price: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
