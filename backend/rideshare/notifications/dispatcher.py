"""
Notification dispatcher.

Turns committed domain events into in-app notifications. Delivery runs on a
small thread pool with its own database sessions, so a slow or failing write
never holds up or fails the request that produced the event. A delivery that
cannot commit within the configured window after the event was accepted is
rolled back and dropped.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
import logging
from threading import Lock
import time
from typing import Any, Callable, List, Optional, Set

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import NotificationDeliveryFailed
from ..events.booking_events import (
    BookingCancelled,
    BookingCompleted,
    BookingConfirmed,
    BookingCreated,
    PaymentConfirmed,
)
from ..events.chat_events import MessageSent
from ..events.publisher import EventPublisher
from ..models.notification import NotificationType
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..services.notification_service import NotificationService, NotificationSpec

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


def build_notifications(event: Any) -> List[NotificationSpec]:
    """Map a domain event to the inbox entries it produces."""
    if isinstance(event, BookingCreated):
        return [
            NotificationSpec(
                user_id=event.owner_id,
                type=NotificationType.BOOKING_REQUEST,
                title="New Booking Request",
                message=f'A renter has requested to book your vehicle "{event.vehicle_name}"',
                related_id=event.booking_id,
                related_type="booking",
            )
        ]
    if isinstance(event, BookingConfirmed):
        return [
            NotificationSpec(
                user_id=event.renter_id,
                type=NotificationType.BOOKING_CONFIRMED,
                title="Booking Confirmed",
                message=f'Your booking for "{event.vehicle_name}" has been confirmed by the owner.',
                related_id=event.booking_id,
                related_type="booking",
            )
        ]
    if isinstance(event, BookingCancelled):
        if event.cancelled_by == event.renter_id:
            recipient = event.owner_id
            message = f'The renter cancelled their booking for "{event.vehicle_name}".'
        else:
            recipient = event.renter_id
            message = f'Your booking for "{event.vehicle_name}" was declined by the owner.'
        if event.refunded:
            message += " The payment will be refunded."
        return [
            NotificationSpec(
                user_id=recipient,
                type=NotificationType.BOOKING_CANCELLED,
                title="Booking Cancelled",
                message=message,
                related_id=event.booking_id,
                related_type="booking",
            )
        ]
    if isinstance(event, BookingCompleted):
        return [
            NotificationSpec(
                user_id=event.renter_id,
                type=NotificationType.BOOKING_COMPLETED,
                title="Booking Completed",
                message=(
                    f'Your rental of "{event.vehicle_name}" is complete. '
                    "Please rate your experience!"
                ),
                related_id=event.booking_id,
                related_type="booking",
            ),
            NotificationSpec(
                user_id=event.owner_id,
                type=NotificationType.BOOKING_COMPLETED,
                title="Booking Completed",
                message=f'The rental of your vehicle "{event.vehicle_name}" is complete.',
                related_id=event.booking_id,
                related_type="booking",
            ),
        ]
    if isinstance(event, MessageSent):
        if event.suppress_notification:
            return []
        about = f' about "{event.vehicle_name}"' if event.vehicle_name else ""
        return [
            NotificationSpec(
                user_id=event.receiver_id,
                type=NotificationType.MESSAGE,
                title="New Message",
                message=f"You have a new message{about}.",
                related_id=event.channel_id,
                related_type="chat",
            )
        ]
    if isinstance(event, PaymentConfirmed):
        return [
            NotificationSpec(
                user_id=event.owner_id,
                type=NotificationType.PAYMENT_RECEIVED,
                title="Payment Received",
                message=f'Payment received for the booking of "{event.vehicle_name}".',
                related_id=event.booking_id,
                related_type="booking",
            )
        ]
    return []


class NotificationDispatcher:
    """
    Best-effort fan-out of domain events to notification records.

    Args:
        session_factory: Creates a fresh session per delivery
        timeout_seconds: Window from acceptance to commit; later deliveries are dropped
        max_workers: Size of the delivery thread pool
        run_inline: Deliver on the publishing thread (tests and scripts)
        clock: Monotonic clock used for the delivery window
    """

    EVENT_TYPES = (
        BookingCreated,
        BookingConfirmed,
        BookingCancelled,
        BookingCompleted,
        MessageSent,
        PaymentConfirmed,
    )

    def __init__(
        self,
        session_factory: SessionFactory,
        timeout_seconds: Optional[float] = None,
        max_workers: Optional[int] = None,
        run_inline: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.session_factory = session_factory
        self.timeout_seconds = (
            timeout_seconds
            if timeout_seconds is not None
            else settings.notification_timeout_seconds
        )
        self.run_inline = run_inline
        self._clock = clock
        self._executor: Optional[ThreadPoolExecutor] = None
        if not run_inline:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers or settings.notification_max_workers,
                thread_name_prefix="notification-dispatch",
            )
        self._pending: Set[Future] = set()
        self._lock = Lock()

    def register(self, publisher: EventPublisher) -> None:
        for event_type in self.EVENT_TYPES:
            publisher.subscribe(event_type, self.handle)

    def handle(self, event: Any) -> None:
        """Accept an event. Never raises into the publisher."""
        accepted_at = self._clock()
        event_name = type(event).__name__

        if isinstance(event, MessageSent) and event.suppress_notification:
            logger.debug(f"Notification suppressed for message {event.message_id}")
            prometheus_metrics.record_notification_outcome(event_name, "suppressed")
            return

        specs = build_notifications(event)
        if specs:
            self._submit(event_name, specs, accepted_at)

    def notify(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        related_id: Optional[str] = None,
        related_type: Optional[str] = None,
    ) -> None:
        """Fire-and-forget write of a single notification."""
        spec = NotificationSpec(
            user_id=user_id,
            type=NotificationType(type),
            title=title,
            message=message,
            related_id=related_id,
            related_type=related_type,
        )
        self._submit("notify", [spec], self._clock())

    def _submit(self, event_name: str, specs: List[NotificationSpec], accepted_at: float) -> None:
        if self.run_inline or self._executor is None:
            self._deliver(event_name, specs, accepted_at)
            return

        try:
            future = self._executor.submit(self._deliver, event_name, specs, accepted_at)
        except RuntimeError as e:
            # Executor already shut down
            logger.warning(f"Dropping {event_name} notification: {str(e)}")
            prometheus_metrics.record_notification_outcome(event_name, "dropped")
            return
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until queued deliveries finish. Returns False on timeout."""
        with self._lock:
            pending = set(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait_for_pending: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait_for_pending)

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def _expired(self, accepted_at: float) -> bool:
        return self._clock() - accepted_at > self.timeout_seconds

    def _deliver(self, event_name: str, specs: List[NotificationSpec], accepted_at: float) -> None:
        recipients = [spec.user_id for spec in specs]
        if self._expired(accepted_at):
            self._drop(event_name, recipients)
            return

        db: Optional[Session] = None
        try:
            db = self.session_factory()
            service = NotificationService(db)
            committed = service.deliver(
                specs, still_wanted=lambda: not self._expired(accepted_at)
            )
            if not committed:
                self._drop(event_name, recipients)
                return
            prometheus_metrics.record_notification_outcome(event_name, "delivered")
            prometheus_metrics.observe_notification_dispatch(
                event_name, self._clock() - accepted_at
            )
            logger.debug(f"Delivered {len(specs)} notification(s) for {event_name}")
        except NotificationDeliveryFailed as e:
            logger.error(f"Notification delivery failed for {event_name}: {e.message}")
            prometheus_metrics.record_notification_outcome(event_name, "failed")
        except Exception as e:
            logger.error(f"Failed to deliver {event_name} notification: {str(e)}")
            prometheus_metrics.record_notification_outcome(event_name, "failed")
        finally:
            if db is not None:
                db.close()

    def _drop(self, event_name: str, recipients: List[str]) -> None:
        logger.warning(
            f"Dropping {event_name} notification after {self.timeout_seconds}s",
            extra={"event_type": event_name, "recipients": recipients},
        )
        prometheus_metrics.record_notification_outcome(event_name, "dropped")
