# backend/rideshare/repositories/__init__.py
"""
Repository layer for RideShare.

Repositories own every query. They flush but never commit; services decide
the transaction boundary.
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .chat_repository import ChatRepository
from .factory import RepositoryFactory
from .notification_repository import NotificationRepository
from .vehicle_repository import VehicleRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "ChatRepository",
    "NotificationRepository",
    "RepositoryFactory",
    "VehicleRepository",
]
