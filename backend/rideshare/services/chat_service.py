# backend/rideshare/services/chat_service.py
"""
Chat Service for RideShare

One channel per booking, keyed by the booking id and opened lazily by
either party. Messages are append-only; each append allocates the next
per-channel sequence and refreshes the channel's last-message cache in the
same transaction, so readers always see (sent_at, sequence) order.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.exceptions import EmptyMessageException, ForbiddenException, NotFoundException
from ..events.chat_events import MessageSent
from ..events.publisher import EventPublisher
from ..models.chat import ChatChannel, ChatMessage
from ..repositories.booking_repository import BookingRepository
from ..repositories.chat_repository import ChatRepository
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass
class ChannelSummary:
    channel: ChatChannel
    unread_count: int


class ChatService(BaseService):
    """Channel lifecycle, message appends and read receipts."""

    def __init__(
        self,
        db: Session,
        event_publisher: Optional[EventPublisher] = None,
        chat_repository: Optional[ChatRepository] = None,
        booking_repository: Optional[BookingRepository] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(db)
        self.event_publisher = event_publisher
        self.repository = chat_repository or RepositoryFactory.create_chat_repository(db)
        self.booking_repository = booking_repository or RepositoryFactory.create_booking_repository(
            db
        )
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @BaseService.measure_operation("get_or_create_channel")
    def get_or_create_channel(self, booking_id: str, requester_id: str) -> ChatChannel:
        """
        Return the booking's channel, creating it on first access.

        Only the booking's renter or owner may open it. Two first accesses
        racing each other both end up with the same row: the loser's insert
        hits the primary key, its savepoint is rolled back and the winner's
        channel is read instead.
        """
        booking = self.booking_repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        if not booking.is_participant(requester_id):
            raise ForbiddenException(
                "You are not a participant in this booking", details={"booking_id": booking_id}
            )

        channel = self.repository.get_by_id(booking_id)
        if channel:
            return channel

        with self.transaction():
            try:
                with self.db.begin_nested():
                    channel = self.repository.insert_channel(
                        id=booking.id,
                        renter_id=booking.renter_id,
                        owner_id=booking.owner_id,
                        vehicle_name=booking.vehicle_name,
                        message_count=0,
                        created_at=self._clock(),
                    )
                self.log_operation("create_channel", channel_id=booking.id)
            except IntegrityError:
                self.logger.info(f"Channel {booking.id} created concurrently, reusing it")
                channel = self.repository.get_fresh(booking.id)
                if channel is None:
                    raise

        return channel

    @BaseService.measure_operation("get_channel")
    def get_channel(self, channel_id: str, user_id: str) -> ChatChannel:
        channel = self.repository.get_fresh(channel_id)
        if not channel:
            raise NotFoundException("Chat not found", code="CHANNEL_NOT_FOUND")
        self._require_participant(channel, user_id)
        return channel

    @BaseService.measure_operation("send_message")
    def send_message(
        self,
        channel_id: str,
        sender_id: str,
        body: Optional[str],
        suppress_notification: bool = False,
    ) -> ChatMessage:
        """
        Append a message from sender_id to the other participant.

        A channel that has not been opened yet is created here, since the
        channel id is the booking id.

        Raises:
            NotFoundException: No channel and no booking with this id
            ForbiddenException: Sender is not one of the two participants
            EmptyMessageException: Body is blank after stripping
        """
        channel = self.repository.get_by_id(channel_id)
        if channel is None:
            if not self.booking_repository.exists(id=channel_id):
                raise NotFoundException("Chat not found", code="CHANNEL_NOT_FOUND")
            channel = self.get_or_create_channel(channel_id, sender_id)
        self._require_participant(channel, sender_id)

        text = (body or "").strip()
        if not text:
            raise EmptyMessageException()

        receiver_id = channel.other_participant(sender_id)
        sent_at = self._clock()

        with self.transaction():
            sequence = self.repository.allocate_sequence(channel.id, sender_id, text, sent_at)
            if sequence is None:
                raise NotFoundException("Chat not found", code="CHANNEL_NOT_FOUND")
            message = self.repository.add_message(
                channel_id=channel.id,
                sequence=sequence,
                sender_id=sender_id,
                receiver_id=receiver_id,
                body=text,
                sent_at=sent_at,
                read=False,
            )

        self.log_operation("send_message", channel_id=channel.id, sequence=sequence)
        self._publish(
            MessageSent(
                channel_id=channel.id,
                message_id=message.id,
                sender_id=sender_id,
                receiver_id=receiver_id,
                sent_at=sent_at,
                vehicle_name=channel.vehicle_name or "",
                suppress_notification=suppress_notification,
            )
        )
        return message

    @BaseService.measure_operation("list_messages")
    def list_messages(self, channel_id: str, user_id: str) -> List[ChatMessage]:
        channel = self.get_channel(channel_id, user_id)
        return self.repository.list_messages(channel.id)

    @BaseService.measure_operation("mark_read")
    def mark_read(self, channel_id: str, reader_id: str) -> int:
        """Flip every unread message addressed to reader_id. Returns how many changed."""
        channel = self.get_channel(channel_id, reader_id)
        with self.transaction():
            count = self.repository.mark_read(channel.id, reader_id, self._clock())
        return count

    @BaseService.measure_operation("get_unread_count")
    def get_unread_count(self, channel_id: str, user_id: str) -> int:
        channel = self.get_channel(channel_id, user_id)
        return self.repository.get_unread_count(channel.id, user_id)

    @BaseService.measure_operation("get_total_unread_count")
    def get_total_unread_count(self, user_id: str) -> int:
        return self.repository.get_total_unread_count(user_id)

    @BaseService.measure_operation("list_channels_for_user")
    def list_channels_for_user(self, user_id: str) -> List[ChannelSummary]:
        channels = self.repository.list_channels_for_user(user_id)
        unread = self.repository.get_unread_counts_by_channel(user_id)
        return [ChannelSummary(channel=c, unread_count=unread.get(c.id, 0)) for c in channels]

    def _require_participant(self, channel: ChatChannel, user_id: str) -> None:
        if not channel.is_participant(user_id):
            raise ForbiddenException(
                "You are not a participant in this chat", details={"channel_id": channel.id}
            )

    def _publish(self, event: MessageSent) -> None:
        if self.event_publisher is None:
            return
        try:
            self.event_publisher.publish(event)
        except Exception as e:
            self.logger.error(f"Failed to publish MessageSent: {str(e)}")
