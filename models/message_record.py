from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class MessageRecord:
    """A persisted direct message between two users (row in the MESSAGE table).

    Attributes:
        id: Primary key; strictly increasing in send order.
        sender_id: Id of the sending user.
        recipient_id: Id of the receiving user.
        content: Message body.
        sent_at: Unix timestamp (seconds, fractional) when the message was stored.
        read_at: Unix timestamp when the recipient read it, or None while unread.
    """

    id: Optional[int]
    sender_id: int
    recipient_id: int
    content: str
    sent_at: Optional[float] = None
    read_at: Optional[float] = None

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["is_read"] = self.is_read
        return data
