# backend/rideshare/services/booking_service.py
"""
Booking Service for RideShare

The single authoritative writer for booking status and vehicle availability.
Every state change is one conditional UPDATE on the booking plus the matching
availability write, committed together. Domain events are published only
after commit, and a failing subscriber never fails the booking call.
"""

from datetime import datetime, timezone
from decimal import Decimal
import logging
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    AlreadyActiveException,
    AlreadyCompletedException,
    AlreadyTerminalException,
    ConflictException,
    DomainException,
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
    ServiceException,
    ValidationException,
    VehicleUnavailableException,
)
from ..events.booking_events import (
    BookingActivated,
    BookingCancelled,
    BookingCompleted,
    BookingConfirmed,
    BookingCreated,
    PaymentConfirmed,
)
from ..events.publisher import Event, EventPublisher
from ..models.booking import TERMINAL_STATUSES, Booking, BookingStatus, PaymentStatus
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.vehicle_repository import VehicleRepository
from .base import BaseService
from .pricing_service import as_utc, calculate_rental_days, calculate_rental_pricing

logger = logging.getLogger(__name__)

REVIEW_COMMENT_MAX_LENGTH = 500

OWNER = "owner"
RENTER = "renter"

# (from, to) -> parties allowed to request it
TRANSITIONS: Dict[Tuple[BookingStatus, BookingStatus], FrozenSet[str]] = {
    (BookingStatus.PENDING, BookingStatus.CONFIRMED): frozenset({OWNER}),
    (BookingStatus.PENDING, BookingStatus.ACTIVE): frozenset({OWNER}),
    (BookingStatus.CONFIRMED, BookingStatus.ACTIVE): frozenset({OWNER}),
    (BookingStatus.CONFIRMED, BookingStatus.COMPLETED): frozenset({OWNER}),
    (BookingStatus.ACTIVE, BookingStatus.COMPLETED): frozenset({OWNER}),
    (BookingStatus.PENDING, BookingStatus.CANCELLED): frozenset({OWNER, RENTER}),
    (BookingStatus.CONFIRMED, BookingStatus.CANCELLED): frozenset({OWNER, RENTER}),
}

# Who may ask for a given target at all, independent of the current status
TARGET_ACTORS: Dict[BookingStatus, FrozenSet[str]] = {
    BookingStatus.CONFIRMED: frozenset({OWNER}),
    BookingStatus.ACTIVE: frozenset({OWNER}),
    BookingStatus.COMPLETED: frozenset({OWNER}),
    BookingStatus.CANCELLED: frozenset({OWNER, RENTER}),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingService(BaseService):
    """
    Service layer for the booking lifecycle.

    Handles creation with the atomic availability claim, owner and renter
    status transitions, payment confirmation and participant reads.
    """

    def __init__(
        self,
        db: Session,
        event_publisher: Optional[EventPublisher] = None,
        booking_repository: Optional[BookingRepository] = None,
        vehicle_repository: Optional[VehicleRepository] = None,
        commission_rate: Optional[Decimal] = None,
        service_fee_rate: Optional[Decimal] = None,
        auto_confirm_on_payment: Optional[bool] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize booking service.

        Args:
            db: Database session
            event_publisher: Receives domain events after commit
            booking_repository: Optional BookingRepository instance
            vehicle_repository: Optional VehicleRepository instance
            commission_rate: Overrides settings.commission_rate
            service_fee_rate: Overrides settings.service_fee_rate
            auto_confirm_on_payment: Overrides settings.auto_confirm_on_payment
            clock: Returns the current aware datetime
        """
        super().__init__(db)
        self.event_publisher = event_publisher
        self.repository = booking_repository or RepositoryFactory.create_booking_repository(db)
        self.vehicle_repository = vehicle_repository or RepositoryFactory.create_vehicle_repository(
            db
        )
        self.commission_rate = (
            commission_rate if commission_rate is not None else settings.commission_rate
        )
        self.service_fee_rate = (
            service_fee_rate if service_fee_rate is not None else settings.service_fee_rate
        )
        self.auto_confirm_on_payment = (
            auto_confirm_on_payment
            if auto_confirm_on_payment is not None
            else settings.auto_confirm_on_payment
        )
        self._clock = clock or _utcnow

    # Creation

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        renter_id: str,
        vehicle_id: str,
        pickup_date: datetime,
        return_date: datetime,
    ) -> Booking:
        """
        Create a pending booking and hold the vehicle.

        The vehicle is claimed with a conditional update on available = true.
        If another booking won the claim, nothing is written and
        VehicleUnavailableException is raised.

        Raises:
            InvalidDatesException: return_date is not after pickup_date
            NotFoundException: Vehicle does not exist
            ValidationException: Renter owns the vehicle
            VehicleUnavailableException: Vehicle is already held
        """
        self.log_operation("create_booking", renter_id=renter_id, vehicle_id=vehicle_id)

        pickup = as_utc(pickup_date)
        returned = as_utc(return_date)
        rental_days = calculate_rental_days(pickup, returned)

        vehicle = self.vehicle_repository.get_fresh(vehicle_id)
        if not vehicle:
            raise NotFoundException("Vehicle not found", code="VEHICLE_NOT_FOUND")
        if vehicle.owner_id == renter_id:
            raise ValidationException("You cannot book your own vehicle", code="OWN_VEHICLE")
        if not vehicle.available:
            prometheus_metrics.inc_availability_conflict()
            raise VehicleUnavailableException(vehicle_id)

        pricing = calculate_rental_pricing(
            vehicle.daily_rate, rental_days, self.commission_rate, self.service_fee_rate
        )
        now = self._clock()

        with self.transaction():
            if not self.vehicle_repository.claim_availability(vehicle_id):
                prometheus_metrics.inc_availability_conflict()
                raise VehicleUnavailableException(vehicle_id)

            booking = self.repository.create(
                renter_id=renter_id,
                owner_id=vehicle.owner_id,
                vehicle_id=vehicle.id,
                vehicle_name=vehicle.name,
                pickup_date=pickup,
                return_date=returned,
                rental_days=pricing.rental_days,
                daily_rate=pricing.daily_rate,
                subtotal=pricing.subtotal,
                service_fee=pricing.service_fee,
                commission=pricing.commission,
                commission_rate=pricing.commission_rate,
                service_fee_rate=pricing.service_fee_rate,
                owner_earnings=pricing.owner_earnings,
                total_price=pricing.total_price,
                status=BookingStatus.PENDING.value,
                payment_status=PaymentStatus.PENDING.value,
                created_at=now,
                updated_at=now,
            )

        self.logger.info(
            f"Booking {booking.id} created for vehicle {vehicle_id}",
            extra={"booking_id": booking.id, "total_price": str(booking.total_price)},
        )
        self._publish(
            BookingCreated(
                booking_id=booking.id,
                renter_id=booking.renter_id,
                owner_id=booking.owner_id,
                vehicle_id=booking.vehicle_id,
                vehicle_name=booking.vehicle_name,
                created_at=now,
            )
        )
        return booking

    # Transitions

    @BaseService.measure_operation("transition_status")
    def transition_status(
        self,
        booking_id: str,
        actor_id: str,
        target_status: Union[BookingStatus, str],
    ) -> Booking:
        """
        Move a booking to target_status on behalf of actor_id.

        Guards run in order: not found, already terminal, forbidden, invalid
        transition. The owner may confirm, activate, complete or reject; the
        renter may cancel.
        """
        target = self._parse_status(target_status)
        self.log_operation(
            "transition_status", booking_id=booking_id, actor_id=actor_id, target=target.value
        )

        booking = self._get_booking_or_404(booking_id)
        current = BookingStatus(booking.status)

        if current in TERMINAL_STATUSES:
            raise AlreadyTerminalException(current.value, target.value)

        role = self._role_of(booking, actor_id)
        if role is None or role not in TARGET_ACTORS.get(target, frozenset()):
            raise ForbiddenException(
                "You are not allowed to change this booking",
                details={"booking_id": booking_id, "target_status": target.value},
            )

        allowed = TRANSITIONS.get((current, target))
        if allowed is None or role not in allowed:
            raise InvalidTransitionException(current.value, target.value)

        return self._apply_transition(booking, actor_id, current, target)

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(self, booking_id: str, renter_id: str) -> Booking:
        """
        Renter cancellation.

        Distinguishes "too late to cancel" (already completed or active) from a
        booking that is already cancelled.
        """
        self.log_operation("cancel_booking", booking_id=booking_id, renter_id=renter_id)

        booking = self._get_booking_or_404(booking_id)
        if booking.renter_id != renter_id:
            raise ForbiddenException(
                "Only the renter can cancel this booking", details={"booking_id": booking_id}
            )

        current = BookingStatus(booking.status)
        self._raise_if_not_cancellable(current)

        return self._apply_transition(booking, renter_id, current, BookingStatus.CANCELLED)

    # Reviews

    @BaseService.measure_operation("submit_review")
    def submit_review(
        self,
        booking_id: str,
        renter_id: str,
        rating: int,
        comment: Optional[str] = None,
    ) -> Booking:
        """
        Record the renter's rating of a completed rental.

        A booking takes exactly one review. The write is conditional on
        reviewed = false, so two concurrent submissions store one review.

        Raises:
            ValidationException: Rating out of range, comment too long, or the
                booking is not completed
            NotFoundException: Booking does not exist
            ForbiddenException: Caller is not the renter
            ConflictException: A review was already submitted
        """
        self.log_operation("submit_review", booking_id=booking_id, renter_id=renter_id)

        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationException("Rating must be between 1 and 5", code="INVALID_RATING")
        if comment is not None:
            comment = comment.strip() or None
        if comment is not None and len(comment) > REVIEW_COMMENT_MAX_LENGTH:
            raise ValidationException(
                f"Review comment cannot exceed {REVIEW_COMMENT_MAX_LENGTH} characters",
                code="REVIEW_TOO_LONG",
            )

        booking = self._get_booking_or_404(booking_id)
        if booking.renter_id != renter_id:
            raise ForbiddenException(
                "Only the renter can review this booking", details={"booking_id": booking_id}
            )
        self._raise_if_not_reviewable(booking)

        now = self._clock()
        with self.transaction():
            if not self.repository.record_review(booking_id, renter_id, rating, comment, now):
                self._raise_if_not_reviewable(self._get_booking_or_404(booking_id))
                raise ServiceException("Review could not be recorded", code="REVIEW_NOT_RECORDED")

        self.logger.info(
            f"Review recorded for booking {booking_id}",
            extra={"booking_id": booking_id, "rating": rating},
        )
        return self._get_booking_or_404(booking_id)

    # Payments

    @BaseService.measure_operation("record_payment_confirmed")
    def record_payment_confirmed(self, booking_id: str) -> Booking:
        """
        Consume the payment collaborator's "payment confirmed" signal.

        Marks the booking paid and, when auto-confirmation is enabled, confirms a
        pending booking in the same statement. A repeated signal for an already
        paid booking returns it unchanged.
        """
        self.log_operation("record_payment_confirmed", booking_id=booking_id)

        booking = self._get_booking_or_404(booking_id)
        if booking.is_terminal:
            raise AlreadyTerminalException(booking.status, BookingStatus.CONFIRMED.value)
        if booking.payment_status == PaymentStatus.PAID.value:
            self.logger.info(f"Payment for booking {booking_id} already recorded")
            return booking

        was_pending = booking.status == BookingStatus.PENDING.value
        now = self._clock()

        with self.transaction():
            if not self.repository.record_payment(booking_id, now, self.auto_confirm_on_payment):
                latest = self._get_booking_or_404(booking_id)
                if latest.is_terminal:
                    raise AlreadyTerminalException(latest.status, BookingStatus.CONFIRMED.value)
                if latest.payment_status != PaymentStatus.PAID.value:
                    raise ServiceException(
                        "Payment could not be recorded", code="PAYMENT_NOT_RECORDED"
                    )
                # A concurrent delivery of the same signal already recorded it
                return latest
            if self.auto_confirm_on_payment and was_pending:
                self._require_vehicle_write(
                    self.vehicle_repository.mark_unavailable(booking.vehicle_id), booking
                )

        booking = self._get_booking_or_404(booking_id)
        self._publish(
            PaymentConfirmed(
                booking_id=booking.id,
                renter_id=booking.renter_id,
                owner_id=booking.owner_id,
                vehicle_name=booking.vehicle_name,
                paid_at=now,
                total_price=str(booking.total_price),
            )
        )
        if was_pending and booking.status == BookingStatus.CONFIRMED.value:
            prometheus_metrics.record_booking_transition(
                BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value
            )
            self._publish(
                BookingConfirmed(
                    booking_id=booking.id,
                    renter_id=booking.renter_id,
                    owner_id=booking.owner_id,
                    vehicle_name=booking.vehicle_name,
                    confirmed_at=now,
                )
            )
        return booking

    # Reads

    @BaseService.measure_operation("get_booking_for_user")
    def get_booking_for_user(self, booking_id: str, user_id: str) -> Booking:
        booking = self._get_booking_or_404(booking_id)
        if not booking.is_participant(user_id):
            raise ForbiddenException(
                "You do not have access to this booking", details={"booking_id": booking_id}
            )
        return booking

    @BaseService.measure_operation("list_bookings_for_renter")
    def list_bookings_for_renter(
        self, renter_id: str, status: Optional[Union[BookingStatus, str]] = None
    ) -> List[Booking]:
        status_value = self._parse_status(status).value if status else None
        return self.repository.list_for_renter(renter_id, status_value)

    @BaseService.measure_operation("list_bookings_for_owner")
    def list_bookings_for_owner(
        self, owner_id: str, status: Optional[Union[BookingStatus, str]] = None
    ) -> List[Booking]:
        status_value = self._parse_status(status).value if status else None
        return self.repository.list_for_owner(owner_id, status_value)

    # Internals

    def _apply_transition(
        self,
        booking: Booking,
        actor_id: str,
        current: BookingStatus,
        target: BookingStatus,
    ) -> Booking:
        now = self._clock()
        extra: Dict[str, Any] = {}
        if target == BookingStatus.CANCELLED:
            extra["cancelled_by_id"] = actor_id
        was_paid = booking.payment_status == PaymentStatus.PAID.value

        with self.transaction():
            if not self.repository.transition_status(
                booking.id, current.value, target.value, now, extra
            ):
                raise self._lost_race_error(
                    booking.id,
                    target,
                    renter_cancel=self._is_renter_cancel(booking, actor_id, target),
                )

            if target in (BookingStatus.CONFIRMED, BookingStatus.ACTIVE):
                written = self.vehicle_repository.mark_unavailable(booking.vehicle_id)
            elif target == BookingStatus.COMPLETED:
                written = self.vehicle_repository.release_availability(
                    booking.vehicle_id, count_rental=True
                )
            else:
                written = self.vehicle_repository.release_availability(booking.vehicle_id)
            self._require_vehicle_write(written, booking)

        updated = self._get_booking_or_404(booking.id)
        prometheus_metrics.record_booking_transition(current.value, target.value)
        self.logger.info(
            f"Booking {updated.id} moved {current.value} -> {target.value} by {actor_id}",
            extra={
                "booking_id": updated.id,
                "from_status": current.value,
                "to_status": target.value,
            },
        )
        self._publish(self._event_for(updated, target, actor_id, now, was_paid))
        return updated

    def _event_for(
        self,
        booking: Booking,
        target: BookingStatus,
        actor_id: str,
        now: datetime,
        was_paid: bool,
    ) -> Event:
        common = {
            "booking_id": booking.id,
            "renter_id": booking.renter_id,
            "owner_id": booking.owner_id,
            "vehicle_name": booking.vehicle_name,
        }
        if target == BookingStatus.CONFIRMED:
            return BookingConfirmed(confirmed_at=now, **common)
        if target == BookingStatus.ACTIVE:
            return BookingActivated(activated_at=now, **common)
        if target == BookingStatus.COMPLETED:
            return BookingCompleted(completed_at=now, **common)
        return BookingCancelled(
            cancelled_by=actor_id,
            cancelled_at=now,
            refunded=was_paid and booking.payment_status == PaymentStatus.REFUNDED.value,
            **common,
        )

    def _lost_race_error(
        self, booking_id: str, target: BookingStatus, renter_cancel: bool = False
    ) -> DomainException:
        """Explain why the conditional status write matched no row."""
        latest = self._get_booking_or_404(booking_id)
        latest_status = BookingStatus(latest.status)
        self.logger.warning(
            f"Concurrent update on booking {booking_id}: now {latest_status.value}, "
            f"wanted {target.value}"
        )
        if renter_cancel:
            try:
                self._raise_if_not_cancellable(latest_status)
            except DomainException as exc:
                return exc
        if latest_status in TERMINAL_STATUSES:
            return AlreadyTerminalException(latest_status.value, target.value)
        return InvalidTransitionException(latest_status.value, target.value)

    @staticmethod
    def _is_renter_cancel(booking: Booking, actor_id: str, target: BookingStatus) -> bool:
        return target == BookingStatus.CANCELLED and actor_id == booking.renter_id

    @staticmethod
    def _raise_if_not_cancellable(current: BookingStatus) -> None:
        if current == BookingStatus.COMPLETED:
            raise AlreadyCompletedException()
        if current == BookingStatus.ACTIVE:
            raise AlreadyActiveException()
        if current == BookingStatus.CANCELLED:
            raise AlreadyTerminalException(current.value, BookingStatus.CANCELLED.value)

    @staticmethod
    def _raise_if_not_reviewable(booking: Booking) -> None:
        if booking.status != BookingStatus.COMPLETED.value:
            raise ValidationException(
                "Only completed bookings can be reviewed",
                code="BOOKING_NOT_COMPLETED",
                details={"booking_id": booking.id, "status": booking.status},
            )
        if booking.reviewed:
            raise ConflictException(
                "Review already submitted for this booking",
                code="ALREADY_REVIEWED",
                details={"booking_id": booking.id},
            )

    @staticmethod
    def _require_vehicle_write(written: bool, booking: Booking) -> None:
        if not written:
            raise ServiceException(
                "Vehicle availability could not be updated",
                code="AVAILABILITY_UPDATE_FAILED",
                details={"booking_id": booking.id, "vehicle_id": booking.vehicle_id},
            )

    @staticmethod
    def _role_of(booking: Booking, actor_id: str) -> Optional[str]:
        if actor_id == booking.owner_id:
            return OWNER
        if actor_id == booking.renter_id:
            return RENTER
        return None

    @staticmethod
    def _parse_status(value: Union[BookingStatus, str]) -> BookingStatus:
        try:
            return BookingStatus(value)
        except ValueError:
            raise ValidationException(f"Unknown booking status: {value}", code="INVALID_STATUS")

    def _get_booking_or_404(self, booking_id: str) -> Booking:
        booking = self.repository.get_fresh(booking_id)
        if not booking:
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        return booking

    def _publish(self, event: Event) -> None:
        if self.event_publisher is None:
            return
        try:
            self.event_publisher.publish(event)
        except Exception as e:
            self.logger.error(f"Failed to publish {type(event).__name__}: {str(e)}")
