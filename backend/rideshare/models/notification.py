"""
Notification model for RideShare.

In-app notifications written by the dispatcher. Rows are write-once except
for the read flag, and are removed only by the recipient.
"""

from __future__ import annotations

from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Index, String, Text
from sqlalchemy.sql import func
import ulid

from ..database import Base


class NotificationType(str, Enum):
    BOOKING_REQUEST = "booking_request"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_CANCELLED = "booking_cancelled"
    BOOKING_COMPLETED = "booking_completed"
    MESSAGE = "message"
    PAYMENT_RECEIVED = "payment_received"


class Notification(Base):
    """In-app notification for a single user."""

    __tablename__ = "notifications"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(64), nullable=False)
    type = Column(String(32), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    related_id = Column(String(26), nullable=True)
    related_type = Column(String(32), nullable=True)
    read = Column(Boolean, nullable=False, default=False, server_default="0")
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "type IN ('booking_request', 'booking_confirmed', 'booking_cancelled', "
            "'booking_completed', 'message', 'payment_received')",
            name="ck_notifications_type",
        ),
        Index("idx_notifications_user_created", "user_id", "created_at"),
        Index("idx_notifications_user_unread", "user_id", "read"),
    )
