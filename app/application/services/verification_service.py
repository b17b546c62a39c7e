from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional
import logging
import secrets

from ..ports.audit_logger import AuditLogger
from ..ports.code_hasher import CodeHasher
from ..ports.code_sender import CodeSender
from ..ports.credential_store import CredentialStore
from ..ports.verification_repo import VerificationDto
from ...exceptions import (
    APIException,
    AccountLockedError,
    CodeNotFoundError,
    InvalidCodeError,
    InvalidPhoneError,
    RateLimitedError,
)
from ...utils import new_id, utcnow

logger = logging.getLogger(__name__)

MIN_PHONE_LENGTH = 8


def normalize_phone(phone: Optional[str]) -> str:
    """Strip all whitespace and require a leading '+' and at least 8 characters."""
    if phone is None:
        raise InvalidPhoneError()
    p = "".join(phone.split())
    if not p.startswith("+") or len(p) < MIN_PHONE_LENGTH:
        raise InvalidPhoneError()
    return p


def generate_code() -> str:
    return str(secrets.randbelow(900000) + 100000)


@dataclass(frozen=True)
class CodeIssued:
    phone_number: str
    expires_at: datetime


@dataclass(frozen=True)
class ConfirmedIdentity:
    user_id: str
    device_id: str
    is_new_user: bool


@dataclass
class VerificationService:
    store: CredentialStore
    hasher: CodeHasher
    sender: CodeSender
    audit: AuditLogger
    code_ttl: timedelta = timedelta(minutes=5)
    resend_interval: timedelta = timedelta(seconds=60)
    max_attempts: int = 5
    new_user_name: str = "New user"
    clock: Callable[[], datetime] = utcnow
    code_factory: Callable[[], str] = generate_code

    def _check_resend_interval(self, phone: str, pending: Optional[VerificationDto], now: datetime) -> None:
        if pending is None or now > pending.expires_at:
            return
        since_issued = now - pending.issued_at
        if since_issued < self.resend_interval:
            retry_after = max(1, int((self.resend_interval - since_issued).total_seconds()))
            self.audit.log("code_rate_limited", phone=phone, success=False, details={"retry_after": retry_after})
            raise RateLimitedError(retry_after)

    def request_code(self, phone: str) -> CodeIssued:
        phone = normalize_phone(phone)
        now = self.clock()

        with self.store.transaction() as tx:
            # Cheap early rejection; the conditional upsert below is what enforces the interval
            self._check_resend_interval(phone, tx.verifications.get_for_update(phone), now)

            code = self.code_factory()
            expires_at = now + self.code_ttl
            issued = tx.verifications.upsert(
                phone, self.hasher.hash(code), issued_at=now, expires_at=expires_at,
                issued_cutoff=now - self.resend_interval,
            )
            if not issued:
                # Lost a race with a concurrent request for the same phone
                self._check_resend_interval(phone, tx.verifications.get_for_update(phone), now)
                raise RateLimitedError(max(1, int(self.resend_interval.total_seconds())))

            # Delivered before commit: a failed send rolls the record back so the caller can retry
            self.sender.send(phone, code)

        self.audit.log("code_issued", phone=phone)
        return CodeIssued(phone_number=phone, expires_at=expires_at)

    def confirm_code(self, phone: str, code: str) -> ConfirmedIdentity:
        phone = normalize_phone(phone)
        now = self.clock()
        rejection: Optional[APIException] = None

        with self.store.transaction() as tx:
            pending = tx.verifications.get_for_update(phone)
            if pending is None or now > pending.expires_at:
                raise CodeNotFoundError()
            if pending.attempt_count >= self.max_attempts:
                self.audit.log("code_locked", phone=phone, success=False)
                raise AccountLockedError()

            if not self.hasher.verify(code or "", pending.code_hash):
                attempts = tx.verifications.increment_attempts(phone)
                # Committed on block exit so the lockout survives the rejection
                rejection = InvalidCodeError()
            else:
                user, created = tx.users.get_or_create(phone, self.new_user_name)
                tx.verifications.delete(phone)
                identity = ConfirmedIdentity(user_id=user.id, device_id=new_id(), is_new_user=created)

        if rejection is not None:
            self.audit.log("code_rejected", phone=phone, success=False, details={"attempt_count": attempts})
            raise rejection

        self.audit.log("code_confirmed", phone=phone, user_id=identity.user_id, device_id=identity.device_id,
                       details={"new_user": identity.is_new_user})
        return identity

    def purge_expired(self) -> int:
        with self.store.transaction() as tx:
            removed = tx.verifications.delete_expired(self.clock())
        if removed:
            logger.info(f"Purged {removed} expired verification codes")
        return removed
