from typing import Protocol, Optional
from datetime import datetime


class UserDto:
    def __init__(self, id: str, name: str, phone_number: str, created_at: datetime,
                 avatar_hash: Optional[str] = None, last_seen: Optional[datetime] = None):
        self.id = id
        self.name = name
        self.phone_number = phone_number
        self.created_at = created_at
        self.avatar_hash = avatar_hash
        self.last_seen = last_seen


class UserRepository(Protocol):
    def get_by_phone(self, phone_number: str) -> Optional[UserDto]:
        ...

    def get_or_create(self, phone_number: str, name: str) -> tuple[UserDto, bool]:
        """Return the user for a phone number, creating it if needed; the flag is True on creation."""
        ...
