# backend/rideshare/repositories/chat_repository.py
"""
Chat Repository for RideShare

Channel and message persistence. Sequence allocation bumps the channel row
in the same statement that refreshes the last-message cache, so the append
and the cache update commit or roll back together.
"""

from datetime import datetime
import logging
from typing import Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..models.chat import ChatChannel, ChatMessage
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ChatRepository(BaseRepository[ChatChannel]):
    """Data access for chat channels and their messages."""

    def __init__(self, db: Session):
        super().__init__(db, ChatChannel)

    # Channels

    def insert_channel(self, **kwargs) -> ChatChannel:
        """
        Add and flush a channel.

        IntegrityError is left to the caller, which resolves a duplicate
        first-access by rolling back its savepoint and reading the winner.
        """
        channel = ChatChannel(**kwargs)
        self.db.add(channel)
        self.db.flush()
        return channel

    def list_channels_for_user(self, user_id: str) -> List[ChatChannel]:
        activity = func.coalesce(ChatChannel.last_message_time, ChatChannel.created_at)
        return (
            self.db.query(ChatChannel)
            .filter(or_(ChatChannel.renter_id == user_id, ChatChannel.owner_id == user_id))
            .order_by(activity.desc(), ChatChannel.id.desc())
            .all()
        )

    def allocate_sequence(
        self, channel_id: str, sender_id: str, body: str, sent_at: datetime
    ) -> Optional[int]:
        """
        Reserve the next message sequence and refresh the last-message cache.

        The UPDATE takes the channel row (or database) write lock, so the
        follow-up read sees this transaction's own increment.
        """
        updated = (
            self.db.query(ChatChannel)
            .filter(ChatChannel.id == channel_id)
            .update(
                {
                    "message_count": ChatChannel.message_count + 1,
                    "last_message": body,
                    "last_message_time": sent_at,
                    "last_sender_id": sender_id,
                    "updated_at": sent_at,
                },
                synchronize_session=False,
            )
        )
        if updated != 1:
            return None
        return (
            self.db.query(ChatChannel.message_count).filter(ChatChannel.id == channel_id).scalar()
        )

    # Messages

    def add_message(self, **kwargs) -> ChatMessage:
        message = ChatMessage(**kwargs)
        self.db.add(message)
        self.db.flush()
        return message

    def list_messages(self, channel_id: str) -> List[ChatMessage]:
        return (
            self.db.query(ChatMessage)
            .filter(ChatMessage.channel_id == channel_id)
            .order_by(ChatMessage.sent_at.asc(), ChatMessage.sequence.asc())
            .all()
        )

    def mark_read(self, channel_id: str, reader_id: str, now: datetime) -> int:
        updated = (
            self.db.query(ChatMessage)
            .filter(
                ChatMessage.channel_id == channel_id,
                ChatMessage.sender_id != reader_id,
                ChatMessage.read.is_(False),
            )
            .update({"read": True, "read_at": now}, synchronize_session=False)
        )
        return int(updated or 0)

    def get_unread_count(self, channel_id: str, user_id: str) -> int:
        count = (
            self.db.query(func.count(ChatMessage.id))
            .filter(
                ChatMessage.channel_id == channel_id,
                ChatMessage.sender_id != user_id,
                ChatMessage.read.is_(False),
            )
            .scalar()
        )
        return int(count or 0)

    def get_total_unread_count(self, user_id: str) -> int:
        count = (
            self.db.query(func.count(ChatMessage.id))
            .join(ChatChannel, ChatChannel.id == ChatMessage.channel_id)
            .filter(
                or_(ChatChannel.renter_id == user_id, ChatChannel.owner_id == user_id),
                ChatMessage.sender_id != user_id,
                ChatMessage.read.is_(False),
            )
            .scalar()
        )
        return int(count or 0)

    def get_unread_counts_by_channel(self, user_id: str) -> Dict[str, int]:
        rows = (
            self.db.query(ChatMessage.channel_id, func.count(ChatMessage.id))
            .join(ChatChannel, ChatChannel.id == ChatMessage.channel_id)
            .filter(
                or_(ChatChannel.renter_id == user_id, ChatChannel.owner_id == user_id),
                ChatMessage.sender_id != user_id,
                ChatMessage.read.is_(False),
            )
            .group_by(ChatMessage.channel_id)
            .all()
        )
        return {channel_id: int(count) for channel_id, count in rows}
