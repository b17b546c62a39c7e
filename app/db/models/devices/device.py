# app/db/models/devices/device.py
from typing import Optional, List
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime

from ...types import UTCDateTime
from ....utils import utcnow


class Device(SQLModel, table=True):
    __tablename__ = "devices"
    # Allocated at code confirmation; the row only exists once keys are uploaded
    id: str = Field(primary_key=True, max_length=36)
    user_id: Optional[str] = Field(default=None, foreign_key="users.id", index=True)
    name: str = Field(max_length=100)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    last_seen: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    is_revoked: bool = Field(default=False)
    identity_key_pub: bytes
    signed_prekey_pub: bytes
    signed_prekey_signature: bytes
    push_token: Optional[str] = Field(default=None)

    # Relationships
    user: Optional["User"] = Relationship(back_populates="devices")
    one_time_prekeys: List["OneTimePrekey"] = Relationship(back_populates="device")


class OneTimePrekey(SQLModel, table=True):
    __tablename__ = "one_time_prekeys"
    id: Optional[int] = Field(default=None, primary_key=True)
    device_id: str = Field(foreign_key="devices.id", index=True)
    prekey_pub: bytes
    is_consumed: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    # Relationships
    device: Optional[Device] = Relationship(back_populates="one_time_prekeys")
