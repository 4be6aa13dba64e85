# backend/rideshare/models/chat.py
"""
Chat models for RideShare.

Each booking has at most one channel, keyed by the booking id. Messages are
append-only; the only mutable fields are the read receipt columns.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class ChatChannel(Base):
    """Two-party conversation tied to exactly one booking."""

    __tablename__ = "chat_channels"

    id = Column(String(26), ForeignKey("bookings.id"), primary_key=True)
    renter_id = Column(String(64), nullable=False, index=True)
    owner_id = Column(String(64), nullable=False, index=True)
    vehicle_name = Column(String(200), nullable=True)

    # Denormalized cache of the latest message, written with each append
    last_message = Column(Text, nullable=True)
    last_message_time = Column(DateTime(timezone=True), nullable=True)
    last_sender_id = Column(String(64), nullable=True)
    message_count = Column(Integer, nullable=False, default=0, server_default="0")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    booking = relationship("Booking", back_populates="chat_channel")
    messages = relationship(
        "ChatMessage",
        back_populates="channel",
        order_by="ChatMessage.sequence",
    )

    @property
    def participants(self) -> tuple[str, str]:
        return (self.renter_id, self.owner_id)

    def is_participant(self, user_id: str) -> bool:
        return user_id in self.participants

    def other_participant(self, user_id: str) -> str:
        return self.owner_id if user_id == self.renter_id else self.renter_id

    def __repr__(self) -> str:
        return f"<ChatChannel {self.id}: messages={self.message_count}>"


class ChatMessage(Base):
    """One message in a channel."""

    __tablename__ = "chat_messages"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    channel_id = Column(String(26), ForeignKey("chat_channels.id"), nullable=False)
    sequence = Column(Integer, nullable=False)
    sender_id = Column(String(64), nullable=False)
    receiver_id = Column(String(64), nullable=False)
    body = Column(Text, nullable=False)
    sent_at = Column(DateTime(timezone=True), nullable=False)
    read = Column(Boolean, nullable=False, default=False, server_default="0")
    read_at = Column(DateTime(timezone=True), nullable=True)

    channel = relationship("ChatChannel", back_populates="messages")

    __table_args__ = (
        UniqueConstraint("channel_id", "sequence", name="uq_chat_messages_channel_sequence"),
        Index("ix_chat_messages_channel_sent", "channel_id", "sent_at", "sequence"),
        Index("ix_chat_messages_unread", "channel_id", "read", "sender_id"),
    )

    def __repr__(self) -> str:
        return f"<ChatMessage {self.id}: channel={self.channel_id}, seq={self.sequence}>"
