# app/db/models/messaging/message.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

from ...types import UTCDateTime
from ....utils import utcnow


class Message(SQLModel, table=True):
    __tablename__ = "messages"
    id: Optional[int] = Field(default=None, primary_key=True)
    sender_user_id: Optional[str] = Field(default=None, foreign_key="users.id")
    sender_device_id: Optional[str] = Field(default=None, foreign_key="devices.id")
    recipient_user_id: Optional[str] = Field(default=None, foreign_key="users.id", index=True)
    recipient_device_id: Optional[str] = Field(default=None, foreign_key="devices.id", index=True)
    ciphertext: bytes
    message_type: int = Field(default=0)
    protocol_version: int = Field(default=1)
    delivered_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
