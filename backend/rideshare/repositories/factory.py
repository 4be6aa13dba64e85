# backend/rideshare/repositories/factory.py
"""
Repository Factory for RideShare

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .chat_repository import ChatRepository
    from .notification_repository import NotificationRepository
    from .vehicle_repository import VehicleRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_base_repository(db: Session, model) -> BaseRepository:
        """Create a generic base repository for any model."""
        return BaseRepository(db, model)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for booking operations."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_vehicle_repository(db: Session) -> "VehicleRepository":
        """Create repository for the vehicle availability ledger."""
        from .vehicle_repository import VehicleRepository

        return VehicleRepository(db)

    @staticmethod
    def create_chat_repository(db: Session) -> "ChatRepository":
        """Create repository for chat channels and messages."""
        from .chat_repository import ChatRepository

        return ChatRepository(db)

    @staticmethod
    def create_notification_repository(db: Session) -> "NotificationRepository":
        """Create repository for notification inbox entries."""
        from .notification_repository import NotificationRepository

        return NotificationRepository(db)
