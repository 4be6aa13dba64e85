# backend/rideshare/models/__init__.py
"""
Database models for RideShare.

All models are imported here so Base.metadata sees every table.
"""

from .booking import Booking, BookingStatus, PaymentStatus
from .chat import ChatChannel, ChatMessage
from .notification import Notification, NotificationType
from .vehicle import Vehicle

__all__ = [
    "Booking",
    "BookingStatus",
    "PaymentStatus",
    "ChatChannel",
    "ChatMessage",
    "Notification",
    "NotificationType",
    "Vehicle",
]
