# backend/rideshare/schemas/notifications.py
"""Schemas for notification inbox endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from ._strict_base import StrictModel


class NotificationResponse(StrictModel):
    """Notification inbox entry."""

    id: str
    user_id: str
    type: str
    title: str
    message: str
    related_id: str | None = None
    related_type: str | None = None
    read: bool
    read_at: datetime | None = None
    created_at: datetime | None = None


class NotificationListResponse(StrictModel):
    notifications: list[NotificationResponse]
    unread_count: int


class NotificationUnreadCountResponse(StrictModel):
    """Unread notification count response."""

    unread_count: int = Field(..., ge=0)


class NotificationStatusResponse(StrictModel):
    """Simple status response for notification actions."""

    success: bool
    message: str | None = None
    count: int | None = None
