from typing import List, Optional, Protocol
from dataclasses import dataclass
from datetime import datetime


@dataclass
class MessageDto:
    id: int
    sender_user_id: Optional[str]
    sender_device_id: Optional[str]
    recipient_user_id: Optional[str]
    recipient_device_id: Optional[str]
    ciphertext: bytes
    message_type: int
    protocol_version: int
    delivered_at: Optional[datetime]
    created_at: datetime


class MessageRepository(Protocol):
    def list_for_recipient(self, user_id: str, device_id: str, limit: int, offset: int) -> List[MessageDto]:
        ...
