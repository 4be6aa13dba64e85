# backend/rideshare/schemas/chat.py
"""Schemas for booking chat channels and messages."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from ._strict_base import StrictModel, StrictRequestModel


class ChannelResponse(StrictModel):
    """A booking's chat channel with its last-message cache."""

    id: str
    renter_id: str
    owner_id: str
    vehicle_name: str | None = None
    last_message: str | None = None
    last_message_time: datetime | None = None
    last_sender_id: str | None = None
    message_count: int = 0
    created_at: datetime | None = None


class MessageResponse(StrictModel):
    id: str
    channel_id: str
    sequence: int
    sender_id: str
    receiver_id: str
    body: str
    sent_at: datetime
    read: bool
    read_at: datetime | None = None


class ChannelDetailResponse(ChannelResponse):
    """Channel plus its messages in (sent_at, sequence) order."""

    messages: list[MessageResponse] = Field(default_factory=list)


class ChannelSummaryResponse(StrictModel):
    channel: ChannelResponse
    unread_count: int = Field(..., ge=0)


class SendMessageRequest(StrictRequestModel):
    """
    New message body.

    Blank text is rejected by the service with EMPTY_MESSAGE rather than by
    schema validation, so clients get the same error from every entry point.
    """

    message: str | None = None
    suppress_notification: bool = False


class CountResponse(StrictModel):
    count: int = Field(..., ge=0)
