"""Chat domain events."""
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict


@dataclass
class MessageSent:
    """
    Fired after a chat message is committed.

    suppress_notification is the presence signal from the client: the
    receiver already has this channel open, so no inbox entry is needed.
    """

    channel_id: str
    message_id: str
    sender_id: str
    receiver_id: str
    sent_at: datetime
    vehicle_name: str = ""
    suppress_notification: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
