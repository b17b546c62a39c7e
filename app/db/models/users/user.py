# app/db/models/users/user.py
from typing import Optional, List
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime

from ...types import UTCDateTime
from ....utils import new_id, utcnow


class User(SQLModel, table=True):
    __tablename__ = "users"
    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    name: str = Field(max_length=100)
    phone_number: str = Field(max_length=100, unique=True, index=True)
    avatar_hash: Optional[str] = Field(max_length=64, default=None)
    last_seen: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    # Relationships
    devices: List["Device"] = Relationship(back_populates="user")
