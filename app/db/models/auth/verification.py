# app/db/models/auth/verification.py
from sqlmodel import SQLModel, Field
from datetime import datetime

from ...types import UTCDateTime
from ....utils import utcnow


class VerificationCode(SQLModel, table=True):
    """Pending phone verification; one row per phone number, overwritten on re-request."""
    __tablename__ = "verification_codes"
    phone_number: str = Field(primary_key=True, max_length=100)
    code_hash: str
    issued_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    expires_at: datetime = Field(index=True, sa_type=UTCDateTime)
    attempt_count: int = Field(default=0)
