# backend/rideshare/repositories/vehicle_repository.py
"""
Vehicle availability ledger.

Every write to `available` or `total_rentals` goes through one of the
conditional single-statement updates below, issued by the booking engine
inside its own transaction.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.vehicle import Vehicle
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class VehicleRepository(BaseRepository[Vehicle]):
    """Data access for vehicle availability."""

    def __init__(self, db: Session):
        super().__init__(db, Vehicle)

    def claim_availability(self, vehicle_id: str) -> bool:
        """
        Flip available true -> false in one conditional statement.

        Returns False when no row matched, meaning another booking already
        holds the vehicle (or it was never bookable).
        """
        try:
            updated = (
                self.db.query(Vehicle)
                .filter(Vehicle.id == vehicle_id, Vehicle.available.is_(True))
                .update({"available": False}, synchronize_session="fetch")
            )
            return updated == 1
        except SQLAlchemyError as e:
            self.logger.error(f"Error claiming vehicle {vehicle_id}: {str(e)}")
            raise RepositoryException(f"Failed to claim vehicle availability: {str(e)}")

    def mark_unavailable(self, vehicle_id: str) -> bool:
        """Set available = false. Idempotent; False only if the vehicle is gone."""
        try:
            updated = (
                self.db.query(Vehicle)
                .filter(Vehicle.id == vehicle_id)
                .update({"available": False}, synchronize_session="fetch")
            )
            return updated == 1
        except SQLAlchemyError as e:
            self.logger.error(f"Error marking vehicle {vehicle_id} unavailable: {str(e)}")
            raise RepositoryException(f"Failed to update vehicle availability: {str(e)}")

    def release_availability(self, vehicle_id: str, count_rental: bool = False) -> bool:
        """Set available = true, optionally bumping total_rentals in the same statement."""
        values = {"available": True}
        if count_rental:
            values["total_rentals"] = Vehicle.total_rentals + 1
        try:
            updated = (
                self.db.query(Vehicle)
                .filter(Vehicle.id == vehicle_id)
                .update(values, synchronize_session="fetch")
            )
            return updated == 1
        except SQLAlchemyError as e:
            self.logger.error(f"Error releasing vehicle {vehicle_id}: {str(e)}")
            raise RepositoryException(f"Failed to release vehicle availability: {str(e)}")
