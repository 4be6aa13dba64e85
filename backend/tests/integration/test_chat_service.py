# backend/tests/integration/test_chat_service.py
"""
Chat channels and messages against a real database.
"""

from concurrent.futures import ThreadPoolExecutor
import threading

import pytest

from rideshare.core.exceptions import (
    EmptyMessageException,
    ForbiddenException,
    NotFoundException,
)
from rideshare.models.chat import ChatChannel, ChatMessage
from rideshare.models.notification import Notification
from rideshare.services.chat_service import ChatService
from tests.helpers import OWNER_ID, RENTER_ID, STRANGER_ID, FixedClock


def _count(session_factory, model, **filters) -> int:
    session = session_factory()
    try:
        return session.query(model).filter_by(**filters).count()
    finally:
        session.close()


class TestChannels:
    def test_get_or_create_is_idempotent(self, chat_service, pending_booking, session_factory):
        first = chat_service.get_or_create_channel(pending_booking.id, RENTER_ID)
        second = chat_service.get_or_create_channel(pending_booking.id, OWNER_ID)

        assert first.id == second.id == pending_booking.id
        assert first.renter_id == RENTER_ID
        assert first.owner_id == OWNER_ID
        assert first.vehicle_name == "Toyota Corolla"
        assert _count(session_factory, ChatChannel) == 1

    def test_stranger_cannot_open(self, chat_service, pending_booking, session_factory):
        with pytest.raises(ForbiddenException):
            chat_service.get_or_create_channel(pending_booking.id, STRANGER_ID)

        assert _count(session_factory, ChatChannel) == 0

    def test_unknown_booking(self, chat_service):
        with pytest.raises(NotFoundException) as exc_info:
            chat_service.get_or_create_channel("01J00000000000000000000000", RENTER_ID)

        assert exc_info.value.code == "BOOKING_NOT_FOUND"

    def test_get_channel_checks_participant(self, chat_service, pending_booking):
        chat_service.get_or_create_channel(pending_booking.id, RENTER_ID)

        with pytest.raises(ForbiddenException):
            chat_service.get_channel(pending_booking.id, STRANGER_ID)

    def test_get_unknown_channel(self, chat_service):
        with pytest.raises(NotFoundException) as exc_info:
            chat_service.get_channel("01J00000000000000000000000", RENTER_ID)

        assert exc_info.value.code == "CHANNEL_NOT_FOUND"

    def test_channel_survives_booking_cancellation(
        self, chat_service, booking_service, pending_booking
    ):
        chat_service.get_or_create_channel(pending_booking.id, RENTER_ID)
        booking_service.cancel_booking(pending_booking.id, RENTER_ID)

        message = chat_service.send_message(pending_booking.id, OWNER_ID, "No problem")

        assert message.sequence == 1


class TestSendMessage:
    def test_appends_and_updates_cache(self, chat_service, pending_booking):
        channel = chat_service.get_or_create_channel(pending_booking.id, RENTER_ID)

        first = chat_service.send_message(channel.id, RENTER_ID, "  Hi, is it free?  ")
        second = chat_service.send_message(channel.id, OWNER_ID, "Yes")

        assert (first.sequence, second.sequence) == (1, 2)
        assert first.body == "Hi, is it free?"
        assert first.receiver_id == OWNER_ID
        assert second.receiver_id == RENTER_ID
        refreshed = chat_service.get_channel(channel.id, RENTER_ID)
        assert refreshed.message_count == 2
        assert refreshed.last_message == "Yes"
        assert refreshed.last_sender_id == OWNER_ID
        assert refreshed.last_message_time is not None

    def test_first_send_opens_channel(self, chat_service, pending_booking, session_factory):
        message = chat_service.send_message(pending_booking.id, OWNER_ID, "Welcome")

        assert message.channel_id == pending_booking.id
        assert _count(session_factory, ChatChannel) == 1

    def test_receiver_is_notified(self, chat_service, pending_booking, session_factory):
        chat_service.send_message(pending_booking.id, RENTER_ID, "Hello")

        session = session_factory()
        try:
            notification = session.query(Notification).filter_by(user_id=OWNER_ID, type="message")
            notification = notification.one()
        finally:
            session.close()
        assert notification.title == "New Message"
        assert notification.related_id == pending_booking.id
        assert notification.related_type == "chat"
        assert "Toyota Corolla" in notification.message

    def test_suppressed_send_writes_message_only(
        self, chat_service, pending_booking, session_factory
    ):
        chat_service.send_message(
            pending_booking.id, RENTER_ID, "Automated: pickup reminder", suppress_notification=True
        )

        assert _count(session_factory, ChatMessage) == 1
        assert _count(session_factory, Notification, type="message") == 0

    @pytest.mark.parametrize("body", ["", "   ", None])
    def test_blank_message(self, chat_service, pending_booking, session_factory, body):
        with pytest.raises(EmptyMessageException):
            chat_service.send_message(pending_booking.id, RENTER_ID, body)

        assert _count(session_factory, ChatMessage) == 0

    def test_stranger_cannot_send(self, chat_service, pending_booking):
        chat_service.get_or_create_channel(pending_booking.id, RENTER_ID)

        with pytest.raises(ForbiddenException):
            chat_service.send_message(pending_booking.id, STRANGER_ID, "hey")

    def test_send_to_unknown_channel(self, chat_service):
        with pytest.raises(NotFoundException):
            chat_service.send_message("01J00000000000000000000000", RENTER_ID, "hey")

    def test_same_instant_messages_keep_sequence_order(
        self, db, publisher, dispatcher, pending_booking
    ):
        service = ChatService(db, event_publisher=publisher, clock=FixedClock())
        for body in ("one", "two", "three"):
            service.send_message(pending_booking.id, RENTER_ID, body)

        messages = service.list_messages(pending_booking.id, OWNER_ID)

        assert [m.body for m in messages] == ["one", "two", "three"]
        assert [m.sequence for m in messages] == [1, 2, 3]

    def test_concurrent_sends_get_unique_sequences(self, session_factory, pending_booking):
        setup = session_factory()
        try:
            ChatService(setup).get_or_create_channel(pending_booking.id, RENTER_ID)
        finally:
            setup.close()

        senders = [RENTER_ID, OWNER_ID] * 3
        barrier = threading.Barrier(len(senders))

        def send(index: int) -> int:
            session = session_factory()
            try:
                service = ChatService(session)
                barrier.wait()
                return service.send_message(
                    pending_booking.id, senders[index], f"message {index}"
                ).sequence
            finally:
                session.close()

        with ThreadPoolExecutor(max_workers=len(senders)) as pool:
            sequences = list(pool.map(send, range(len(senders))))

        assert sorted(sequences) == list(range(1, len(senders) + 1))
        assert _count(session_factory, ChatMessage) == len(senders)


class TestReadReceipts:
    def test_mark_read_flips_only_incoming(self, chat_service, pending_booking):
        chat_service.send_message(pending_booking.id, RENTER_ID, "one")
        chat_service.send_message(pending_booking.id, RENTER_ID, "two")
        chat_service.send_message(pending_booking.id, OWNER_ID, "reply")

        assert chat_service.get_unread_count(pending_booking.id, OWNER_ID) == 2
        assert chat_service.get_unread_count(pending_booking.id, RENTER_ID) == 1

        assert chat_service.mark_read(pending_booking.id, OWNER_ID) == 2
        assert chat_service.mark_read(pending_booking.id, OWNER_ID) == 0

        assert chat_service.get_unread_count(pending_booking.id, OWNER_ID) == 0
        assert chat_service.get_unread_count(pending_booking.id, RENTER_ID) == 1
        read_flags = {
            m.body: m.read for m in chat_service.list_messages(pending_booking.id, OWNER_ID)
        }
        assert read_flags == {"one": True, "two": True, "reply": False}

    def test_stranger_cannot_mark_read(self, chat_service, pending_booking):
        chat_service.send_message(pending_booking.id, RENTER_ID, "one")

        with pytest.raises(ForbiddenException):
            chat_service.mark_read(pending_booking.id, STRANGER_ID)

    def test_totals_and_channel_summaries(
        self, chat_service, booking_service, make_vehicle, pending_booking
    ):
        other_vehicle = make_vehicle(name="Honda Jazz")
        second_booking = booking_service.create_booking(
            RENTER_ID, other_vehicle.id, pending_booking.pickup_date, pending_booking.return_date
        )
        chat_service.send_message(pending_booking.id, RENTER_ID, "first chat")
        chat_service.send_message(second_booking.id, RENTER_ID, "second chat")
        chat_service.send_message(second_booking.id, RENTER_ID, "again")

        assert chat_service.get_total_unread_count(OWNER_ID) == 3
        assert chat_service.get_total_unread_count(RENTER_ID) == 0

        summaries = chat_service.list_channels_for_user(OWNER_ID)

        assert [s.channel.id for s in summaries] == [second_booking.id, pending_booking.id]
        assert [s.unread_count for s in summaries] == [2, 1]
        assert chat_service.list_channels_for_user(STRANGER_ID) == []
