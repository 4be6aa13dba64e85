# backend/tests/unit/test_notification_dispatcher.py
"""
Unit tests for NotificationDispatcher.

Sessions are mocks; what matters here is which events produce which inbox
entries and that nothing the dispatcher does can raise into a publisher.
"""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
from sqlalchemy.exc import OperationalError

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
from rideshare.models.notification import NotificationType
from rideshare.notifications.dispatcher import NotificationDispatcher, build_notifications

NOW = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)
OWNER = "owner-1"
RENTER = "renter-1"


def _created() -> BookingCreated:
    return BookingCreated(
        booking_id="b1",
        renter_id=RENTER,
        owner_id=OWNER,
        vehicle_id="v1",
        vehicle_name="Honda Civic",
        created_at=NOW,
    )


def _message(suppress: bool = False) -> MessageSent:
    return MessageSent(
        channel_id="b1",
        message_id="m1",
        sender_id=RENTER,
        receiver_id=OWNER,
        sent_at=NOW,
        vehicle_name="Honda Civic",
        suppress_notification=suppress,
    )


class TestBuildNotifications:
    def test_booking_created_notifies_owner(self):
        specs = build_notifications(_created())

        assert len(specs) == 1
        assert specs[0].user_id == OWNER
        assert specs[0].type == NotificationType.BOOKING_REQUEST
        assert specs[0].title == "New Booking Request"
        assert specs[0].related_id == "b1"
        assert specs[0].related_type == "booking"

    def test_booking_confirmed_notifies_renter(self):
        event = BookingConfirmed("b1", RENTER, OWNER, "Honda Civic", NOW)

        specs = build_notifications(event)

        assert [s.user_id for s in specs] == [RENTER]
        assert specs[0].title == "Booking Confirmed"

    def test_renter_cancellation_notifies_owner(self):
        event = BookingCancelled(
            "b1", RENTER, OWNER, "Honda Civic", cancelled_by=RENTER, cancelled_at=NOW
        )

        specs = build_notifications(event)

        assert [s.user_id for s in specs] == [OWNER]
        assert specs[0].type == NotificationType.BOOKING_CANCELLED
        assert "refunded" not in specs[0].message

    def test_owner_rejection_notifies_renter_with_refund_note(self):
        event = BookingCancelled(
            "b1",
            RENTER,
            OWNER,
            "Honda Civic",
            cancelled_by=OWNER,
            cancelled_at=NOW,
            refunded=True,
        )

        specs = build_notifications(event)

        assert [s.user_id for s in specs] == [RENTER]
        assert "declined" in specs[0].message
        assert "refunded" in specs[0].message

    def test_completion_notifies_both_parties(self):
        event = BookingCompleted("b1", RENTER, OWNER, "Honda Civic", NOW)

        specs = build_notifications(event)

        assert {s.user_id for s in specs} == {RENTER, OWNER}
        renter_spec = next(s for s in specs if s.user_id == RENTER)
        assert "rate your experience" in renter_spec.message

    def test_message_notifies_receiver(self):
        specs = build_notifications(_message())

        assert [s.user_id for s in specs] == [OWNER]
        assert specs[0].type == NotificationType.MESSAGE
        assert specs[0].related_type == "chat"

    def test_suppressed_message_produces_nothing(self):
        assert build_notifications(_message(suppress=True)) == []

    def test_payment_notifies_owner(self):
        event = PaymentConfirmed("b1", RENTER, OWNER, "Honda Civic", NOW, total_price="63.00")

        specs = build_notifications(event)

        assert [s.user_id for s in specs] == [OWNER]
        assert specs[0].type == NotificationType.PAYMENT_RECEIVED

    def test_activation_produces_nothing(self):
        event = BookingActivated("b1", RENTER, OWNER, "Honda Civic", NOW)

        assert build_notifications(event) == []


class TestNotificationDispatcher:
    @pytest.fixture
    def session(self):
        return Mock()

    @pytest.fixture
    def session_factory(self, session):
        return Mock(return_value=session)

    def _dispatcher(self, session_factory, clock=None, timeout=3.0):
        return NotificationDispatcher(
            session_factory,
            timeout_seconds=timeout,
            run_inline=True,
            clock=clock or Mock(return_value=0.0),
        )

    def test_delivers_and_commits(self, session_factory, session):
        dispatcher = self._dispatcher(session_factory)

        dispatcher.handle(_created())

        session_factory.assert_called_once()
        session.add.assert_called_once()
        session.commit.assert_called_once()
        session.close.assert_called_once()

    def test_suppressed_message_never_opens_a_session(self, session_factory):
        dispatcher = self._dispatcher(session_factory)

        dispatcher.handle(_message(suppress=True))

        session_factory.assert_not_called()

    def test_event_without_recipients_is_ignored(self, session_factory):
        dispatcher = self._dispatcher(session_factory)

        dispatcher.handle(BookingActivated("b1", RENTER, OWNER, "Honda Civic", NOW))

        session_factory.assert_not_called()

    def test_expired_before_write_is_dropped(self, session_factory):
        # accepted at 0s, worker picks it up at 5s
        dispatcher = self._dispatcher(session_factory, clock=Mock(side_effect=[0.0, 5.0]))

        dispatcher.handle(_created())

        session_factory.assert_not_called()

    def test_expired_during_write_is_rolled_back(self, session_factory, session):
        dispatcher = self._dispatcher(session_factory, clock=Mock(side_effect=[0.0, 1.0, 5.0]))

        dispatcher.handle(_created())

        session.add.assert_called_once()
        session.rollback.assert_called_once()
        session.commit.assert_not_called()
        session.close.assert_called_once()

    def test_database_failure_is_swallowed(self, session_factory, session):
        session.flush.side_effect = OperationalError("INSERT", {}, Exception("database is locked"))
        dispatcher = self._dispatcher(session_factory)

        dispatcher.handle(_created())

        session.rollback.assert_called_once()
        session.commit.assert_not_called()
        session.close.assert_called_once()

    def test_session_factory_failure_is_swallowed(self):
        session_factory = Mock(side_effect=RuntimeError("no connection"))
        dispatcher = self._dispatcher(session_factory)

        dispatcher.handle(_created())

        session_factory.assert_called_once()

    def test_notify_writes_single_entry(self, session_factory, session):
        dispatcher = self._dispatcher(session_factory)

        dispatcher.notify(OWNER, NotificationType.MESSAGE, "Hello", "Body", related_id="b1")

        session.add.assert_called_once()
        notification = session.add.call_args[0][0]
        assert notification.user_id == OWNER
        assert notification.type == "message"
        session.commit.assert_called_once()

    def test_register_subscribes_every_notifying_event(self, session_factory):
        dispatcher = self._dispatcher(session_factory)
        publisher = EventPublisher()

        dispatcher.register(publisher)

        for event_type in NotificationDispatcher.EVENT_TYPES:
            assert dispatcher.handle in publisher.handlers_for(event_type)
        assert publisher.handlers_for(BookingActivated) == []

    def test_background_delivery(self, session_factory, session):
        dispatcher = NotificationDispatcher(session_factory, timeout_seconds=30.0, max_workers=2)
        try:
            dispatcher.handle(_created())
            assert dispatcher.wait_idle(timeout=5.0)
        finally:
            dispatcher.shutdown()

        session_factory.assert_called_once()
        session.commit.assert_called_once()

    def test_handle_after_shutdown_does_not_raise(self, session_factory):
        dispatcher = NotificationDispatcher(session_factory, timeout_seconds=30.0, max_workers=1)
        dispatcher.shutdown()

        dispatcher.handle(_created())

        session_factory.assert_not_called()
