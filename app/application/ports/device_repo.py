from typing import List, Optional, Protocol
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class NewDeviceBundle:
    device_id: str
    user_id: str
    name: str
    identity_key_pub: bytes
    signed_prekey_pub: bytes
    signed_prekey_signature: bytes
    one_time_prekeys: List[bytes] = field(default_factory=list)
    push_token: Optional[str] = None


@dataclass
class DeviceDto:
    id: str
    user_id: Optional[str]
    name: str
    created_at: datetime
    last_seen: Optional[datetime]
    is_revoked: bool
    identity_key_pub: bytes
    signed_prekey_pub: bytes
    signed_prekey_signature: bytes
    push_token: Optional[str] = None


@dataclass
class OneTimePrekeyDto:
    id: int
    device_id: str
    prekey_pub: bytes


class DeviceRepository(Protocol):
    def exists(self, device_id: str) -> bool:
        ...

    def get(self, device_id: str) -> Optional[DeviceDto]:
        ...

    def add_bundle(self, bundle: NewDeviceBundle, created_at: datetime) -> None:
        """Insert the device row and its one-time prekeys; raises DuplicateKeyError if the id exists."""
        ...

    def list_for_user(self, user_id: str) -> List[DeviceDto]:
        ...

    def claim_one_time_prekey(self, device_id: str) -> Optional[OneTimePrekeyDto]:
        """Mark one unconsumed prekey as consumed and return it, or None when none are left."""
        ...

    def count_unconsumed(self, device_id: str) -> int:
        ...
