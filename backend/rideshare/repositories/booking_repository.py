# backend/rideshare/repositories/booking_repository.py
"""
Booking Repository for RideShare

Queries and conditional status writes for bookings. Status changes are
single UPDATE statements guarded by the expected prior status, so two
concurrent transitions cannot both succeed.
"""

from datetime import datetime
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking import (
    HOLDING_STATUSES,
    TERMINAL_STATUSES,
    Booking,
    BookingStatus,
    PaymentStatus,
)
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def list_for_renter(self, renter_id: str, status: Optional[str] = None) -> List[Booking]:
        query = self.db.query(Booking).filter(Booking.renter_id == renter_id)
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()

    def list_for_owner(self, owner_id: str, status: Optional[str] = None) -> List[Booking]:
        query = self.db.query(Booking).filter(Booking.owner_id == owner_id)
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()

    def count_holding_for_vehicle(self, vehicle_id: str) -> int:
        """Bookings that currently hold the vehicle (pending, confirmed or active)."""
        return (
            self.db.query(Booking)
            .filter(
                Booking.vehicle_id == vehicle_id,
                Booking.status.in_([s.value for s in HOLDING_STATUSES]),
            )
            .count()
        )

    def transition_status(
        self,
        booking_id: str,
        expected_status: str,
        target_status: str,
        now: datetime,
        extra: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Write target_status only if the row still holds expected_status.

        Cancellation also flips a paid booking to refunded in the same
        statement. Returns False when a concurrent writer got there first.
        """
        values: Dict[str, Any] = {"status": target_status, "updated_at": now}
        timestamp_column = {
            BookingStatus.CONFIRMED.value: "confirmed_at",
            BookingStatus.ACTIVE.value: "activated_at",
            BookingStatus.COMPLETED.value: "completed_at",
            BookingStatus.CANCELLED.value: "cancelled_at",
        }.get(target_status)
        if timestamp_column:
            values[timestamp_column] = now
        if target_status == BookingStatus.CANCELLED.value:
            values["payment_status"] = case(
                (Booking.payment_status == PaymentStatus.PAID.value, PaymentStatus.REFUNDED.value),
                else_=Booking.payment_status,
            )
        if extra:
            values.update(extra)

        try:
            updated = (
                self.db.query(Booking)
                .filter(Booking.id == booking_id, Booking.status == expected_status)
                .update(values, synchronize_session=False)
            )
            return updated == 1
        except SQLAlchemyError as e:
            self.logger.error(f"Error transitioning booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to update booking status: {str(e)}")

    def record_payment(self, booking_id: str, now: datetime, auto_confirm: bool) -> bool:
        """
        Mark a non-terminal booking as paid.

        With auto_confirm, a pending booking is confirmed by the same statement.
        """
        values: Dict[str, Any] = {
            "payment_status": PaymentStatus.PAID.value,
            "paid_at": now,
            "updated_at": now,
        }
        if auto_confirm:
            is_pending = Booking.status == BookingStatus.PENDING.value
            values["status"] = case(
                (is_pending, BookingStatus.CONFIRMED.value), else_=Booking.status
            )
            values["confirmed_at"] = case((is_pending, now), else_=Booking.confirmed_at)

        try:
            updated = (
                self.db.query(Booking)
                .filter(
                    Booking.id == booking_id,
                    Booking.status.notin_([s.value for s in TERMINAL_STATUSES]),
                    Booking.payment_status == PaymentStatus.PENDING.value,
                )
                .update(values, synchronize_session=False)
            )
            return updated == 1
        except SQLAlchemyError as e:
            self.logger.error(f"Error recording payment for booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to record payment: {str(e)}")

    def record_review(
        self,
        booking_id: str,
        renter_id: str,
        rating: int,
        comment: Optional[str],
        now: datetime,
    ) -> bool:
        """
        Store the renter's review on a completed, not yet reviewed booking.

        Returns False when the booking is not completed, belongs to someone
        else, or a review was already written.
        """
        try:
            updated = (
                self.db.query(Booking)
                .filter(
                    Booking.id == booking_id,
                    Booking.renter_id == renter_id,
                    Booking.status == BookingStatus.COMPLETED.value,
                    Booking.reviewed.is_(False),
                )
                .update(
                    {
                        "reviewed": True,
                        "review_rating": rating,
                        "review_comment": comment,
                        "reviewed_at": now,
                        "updated_at": now,
                    },
                    synchronize_session=False,
                )
            )
            return updated == 1
        except SQLAlchemyError as e:
            self.logger.error(f"Error recording review for booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to record review: {str(e)}")

    # Commission reporting

    def _report_filters(
        self,
        start: Optional[datetime],
        end: Optional[datetime],
        statuses: Optional[Iterable[str]],
    ) -> List[Any]:
        filters: List[Any] = []
        if start is not None:
            filters.append(Booking.created_at >= start)
        if end is not None:
            filters.append(Booking.created_at <= end)
        if statuses:
            filters.append(Booking.status.in_(list(statuses)))
        return filters

    def list_for_commission_report(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        statuses: Optional[Iterable[str]] = None,
    ) -> List[Booking]:
        return (
            self.db.query(Booking)
            .filter(*self._report_filters(start, end, statuses))
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .all()
        )

    def commission_totals(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        statuses: Optional[Iterable[str]] = None,
    ) -> Tuple[Any, Any, int, int]:
        """
        Aggregate commission and revenue in a single query.

        Returns (total_commission, total_revenue, total_bookings,
        completed_bookings). Sums are 0 when nothing matches.
        """
        completed = case((Booking.status == BookingStatus.COMPLETED.value, 1), else_=0)
        try:
            row = (
                self.db.query(
                    func.coalesce(func.sum(Booking.commission), 0),
                    func.coalesce(func.sum(Booking.total_price), 0),
                    func.count(Booking.id),
                    func.coalesce(func.sum(completed), 0),
                )
                .filter(*self._report_filters(start, end, statuses))
                .one()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error aggregating commissions: {str(e)}")
            raise RepositoryException(f"Failed to aggregate commissions: {str(e)}")
        total_commission, total_revenue, total_bookings, completed_bookings = row
        return total_commission, total_revenue, int(total_bookings), int(completed_bookings)
