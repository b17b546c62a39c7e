# app/schemas/messages/message.py
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class MessageResponse(BaseModel):
    id: int
    sender_user_id: Optional[str] = None
    sender_device_id: Optional[str] = None
    recipient_user_id: Optional[str] = None
    recipient_device_id: Optional[str] = None
    ciphertext: str  # base64
    message_type: int
    protocol_version: int
    delivered_at: Optional[datetime] = None
    created_at: datetime


class MessageListResponse(BaseModel):
    data: List[MessageResponse]
