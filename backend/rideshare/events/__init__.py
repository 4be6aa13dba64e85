"""Domain events emitted by the booking engine and chat channel manager."""

from rideshare.events.booking_events import (
    BookingActivated,
    BookingCancelled,
    BookingCompleted,
    BookingConfirmed,
    BookingCreated,
    PaymentConfirmed,
)
from rideshare.events.chat_events import MessageSent
from rideshare.events.publisher import EventPublisher

__all__ = [
    "BookingActivated",
    "BookingCancelled",
    "BookingCompleted",
    "BookingConfirmed",
    "BookingCreated",
    "EventPublisher",
    "MessageSent",
    "PaymentConfirmed",
]
