import hashlib
import uuid
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp; the store only accepts aware datetimes."""
    return datetime.now(timezone.utc)


def to_unix_seconds(value: datetime) -> int:
    return int(value.timestamp())


def new_id() -> str:
    return str(uuid.uuid4())


def hash_phone_number(phone: str) -> str:
    """Hash phone number for logs (one-way hash)"""
    return hashlib.sha256(phone.encode()).hexdigest()
