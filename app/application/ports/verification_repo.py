from typing import Protocol, Optional
from dataclasses import dataclass
from datetime import datetime


@dataclass
class VerificationDto:
    phone_number: str
    code_hash: str
    issued_at: datetime
    expires_at: datetime
    attempt_count: int


class VerificationRepository(Protocol):
    def get_for_update(self, phone_number: str) -> Optional[VerificationDto]:
        """Read the pending record, locking the row for the rest of the transaction."""
        ...

    def upsert(self, phone_number: str, code_hash: str, issued_at: datetime, expires_at: datetime,
               issued_cutoff: datetime) -> bool:
        """Insert the record, or overwrite one that expired or was issued at or before issued_cutoff.

        Overwriting resets attempt_count to 0. Returns False, writing nothing, when an existing
        record is still too recent to replace.
        """
        ...

    def increment_attempts(self, phone_number: str) -> int:
        ...

    def delete(self, phone_number: str) -> bool:
        ...

    def delete_expired(self, now: datetime) -> int:
        ...
