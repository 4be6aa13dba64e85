# backend/tests/integration/test_notification_service.py
"""
Notification inbox reads and read receipts against a real database.
"""

from datetime import datetime, timedelta, timezone

import pytest

from rideshare.core.exceptions import NotFoundException
from rideshare.models.notification import Notification, NotificationType
from rideshare.services.notification_service import NotificationSpec
from tests.helpers import OWNER_ID, RENTER_ID


@pytest.fixture
def inbox(db):
    """Three notifications for the renter, oldest first, plus one for the owner."""
    base = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)
    rows = [
        Notification(
            user_id=RENTER_ID,
            type=NotificationType.BOOKING_CONFIRMED.value,
            title=f"Notification {index}",
            message=f"Body {index}",
            related_id=None,
            related_type="booking",
            created_at=base + timedelta(minutes=index),
        )
        for index in range(3)
    ]
    rows.append(
        Notification(
            user_id=OWNER_ID,
            type=NotificationType.BOOKING_REQUEST.value,
            title="Owner only",
            message="Owner body",
            created_at=base,
        )
    )
    db.add_all(rows)
    db.commit()
    return rows


class TestReads:
    def test_newest_first_for_recipient_only(self, notification_service, inbox):
        titles = [n.title for n in notification_service.get_notifications(RENTER_ID)]

        assert titles == ["Notification 2", "Notification 1", "Notification 0"]

    def test_limit_and_offset(self, notification_service, inbox):
        page = notification_service.get_notifications(RENTER_ID, limit=1, offset=1)

        assert [n.title for n in page] == ["Notification 1"]

    def test_unread_only(self, notification_service, inbox):
        notification_service.mark_as_read(RENTER_ID, inbox[2].id)

        unread = notification_service.get_notifications(RENTER_ID, unread_only=True)

        assert [n.title for n in unread] == ["Notification 1", "Notification 0"]
        assert notification_service.get_unread_count(RENTER_ID) == 2

    def test_empty_inbox(self, notification_service):
        assert notification_service.get_notifications("nobody") == []
        assert notification_service.get_unread_count("nobody") == 0


class TestReadReceipts:
    def test_mark_as_read_is_idempotent(self, notification_service, inbox):
        first = notification_service.mark_as_read(RENTER_ID, inbox[0].id)
        second = notification_service.mark_as_read(RENTER_ID, inbox[0].id)

        assert first.read is True
        assert first.read_at is not None
        assert second.read is True
        assert notification_service.get_unread_count(RENTER_ID) == 2

    def test_other_users_notification_is_not_found(self, notification_service, inbox):
        with pytest.raises(NotFoundException) as exc_info:
            notification_service.mark_as_read(OWNER_ID, inbox[0].id)

        assert exc_info.value.code == "NOTIFICATION_NOT_FOUND"
        assert notification_service.get_unread_count(RENTER_ID) == 3

    def test_mark_all(self, notification_service, inbox):
        assert notification_service.mark_all_as_read(RENTER_ID) == 3
        assert notification_service.mark_all_as_read(RENTER_ID) == 0
        assert notification_service.get_unread_count(RENTER_ID) == 0
        assert notification_service.get_unread_count(OWNER_ID) == 1


class TestDelete:
    def test_delete(self, notification_service, inbox):
        notification_service.delete_notification(RENTER_ID, inbox[1].id)

        titles = [n.title for n in notification_service.get_notifications(RENTER_ID)]
        assert titles == ["Notification 2", "Notification 0"]

    def test_delete_missing(self, notification_service):
        with pytest.raises(NotFoundException):
            notification_service.delete_notification(RENTER_ID, "01J00000000000000000000000")

    def test_cannot_delete_someone_elses(self, notification_service, inbox):
        with pytest.raises(NotFoundException):
            notification_service.delete_notification(RENTER_ID, inbox[3].id)

        assert notification_service.get_unread_count(OWNER_ID) == 1


class TestDeliver:
    def _specs(self):
        return [
            NotificationSpec(
                user_id=RENTER_ID,
                type=NotificationType.BOOKING_COMPLETED,
                title="Booking Completed",
                message="Renter copy",
            ),
            NotificationSpec(
                user_id=OWNER_ID,
                type=NotificationType.BOOKING_COMPLETED,
                title="Booking Completed",
                message="Owner copy",
            ),
        ]

    def test_batch_is_committed(self, notification_service):
        assert notification_service.deliver(self._specs()) is True

        assert notification_service.get_unread_count(RENTER_ID) == 1
        assert notification_service.get_unread_count(OWNER_ID) == 1

    def test_batch_rolled_back_when_no_longer_wanted(self, notification_service):
        assert notification_service.deliver(self._specs(), still_wanted=lambda: False) is False

        assert notification_service.get_unread_count(RENTER_ID) == 0
        assert notification_service.get_unread_count(OWNER_ID) == 0

    def test_create_notification(self, notification_service):
        notification = notification_service.create_notification(
            RENTER_ID,
            NotificationType.PAYMENT_RECEIVED,
            "Payment Received",
            "Thanks",
            related_id="01J00000000000000000000000",
            related_type="booking",
        )

        assert notification.id
        assert notification.type == "payment_received"
        assert notification.read is False
