from datetime import datetime, timedelta
import threading

import pytest
from sqlalchemy.exc import StatementError
from sqlmodel import Session, select
from twilio.base.exceptions import TwilioException

from conftest import FakeHasher, FakeSender
from app.application.services.verification_service import VerificationService, normalize_phone
from app.infrastructure.audit.std_logger import StdAuditLogger
from app.db.models import User, VerificationCode
from app.exceptions import (
    AccountLockedError,
    CodeNotFoundError,
    InvalidCodeError,
    InvalidPhoneError,
    RateLimitedError,
)

PHONE = "+15551234567"


def _record(engine, phone=PHONE):
    with Session(engine) as session:
        return session.get(VerificationCode, phone)


def _wrong(code: str) -> str:
    return "000000" if code != "000000" else "111111"


@pytest.mark.parametrize("raw, expected", [
    ("+15551234567", "+15551234567"),
    ("  +1 555 123 4567 ", "+15551234567"),
    ("+33\t6 12 34 56 78", "+33612345678"),
    ("+1234567", "+1234567"),
])
def test_normalize_phone_accepts(raw, expected):
    assert normalize_phone(raw) == expected


@pytest.mark.parametrize("raw", ["15551234567", "+123456", "", "   ", None])
def test_normalize_phone_rejects(raw):
    with pytest.raises(InvalidPhoneError):
        normalize_phone(raw)


def test_request_code_stores_hash_not_plaintext(verification, sender, engine, clock):
    issued = verification.request_code(" +1 555 123 4567")

    assert issued.phone_number == PHONE
    phone, code = sender.sent[0]
    assert phone == PHONE
    assert len(code) == 6 and 100000 <= int(code) <= 999999
    rec = _record(engine)
    assert rec.code_hash != code
    assert rec.attempt_count == 0
    assert rec.issued_at == clock.now
    assert rec.expires_at == issued.expires_at == clock.now + timedelta(minutes=5)


def test_request_code_invalid_phone(verification, sender):
    with pytest.raises(InvalidPhoneError) as exc:
        verification.request_code("5551234567")
    assert exc.value.status_code == 400
    assert sender.sent == []


def test_second_request_within_a_minute_is_rate_limited(verification, sender, clock):
    verification.request_code(PHONE)
    clock.advance(seconds=59)
    with pytest.raises(RateLimitedError) as exc:
        verification.request_code(PHONE)
    assert exc.value.status_code == 429
    assert exc.value.retry_after == 1
    assert len(sender.sent) == 1


def test_request_after_a_minute_overwrites_code_and_resets_attempts(verification, sender, engine, clock):
    verification.request_code(PHONE)
    first_code = sender.last_code
    with pytest.raises(InvalidCodeError):
        verification.confirm_code(PHONE, _wrong(first_code))
    assert _record(engine).attempt_count == 1

    clock.advance(seconds=60)
    verification.request_code(PHONE)

    rec = _record(engine)
    assert rec.attempt_count == 0
    assert rec.issued_at == clock.now
    assert len(sender.sent) == 2


def test_rate_limit_is_per_phone(verification, sender):
    verification.request_code(PHONE)
    verification.request_code("+447700900123")
    assert len(sender.sent) == 2


def test_confirm_happy_path_creates_user_and_deletes_record(verification, sender, engine):
    verification.request_code(PHONE)
    identity = verification.confirm_code(PHONE, sender.last_code)

    assert identity.is_new_user is True
    assert identity.device_id and identity.device_id != identity.user_id
    assert _record(engine) is None
    with Session(engine) as session:
        user = session.exec(select(User).where(User.phone_number == PHONE)).one()
    assert user.id == identity.user_id
    assert user.name == "New user"


def test_confirm_is_single_use(verification, sender):
    verification.request_code(PHONE)
    code = sender.last_code
    verification.confirm_code(PHONE, code)

    with pytest.raises(CodeNotFoundError) as exc:
        verification.confirm_code(PHONE, code)
    assert exc.value.status_code == 401


def test_confirm_reuses_existing_user_and_allocates_new_device(verification, sender, clock):
    verification.request_code(PHONE)
    first = verification.confirm_code(PHONE, sender.last_code)

    clock.advance(minutes=2)
    verification.request_code(PHONE)
    second = verification.confirm_code(PHONE, sender.last_code)

    assert second.is_new_user is False
    assert second.user_id == first.user_id
    assert second.device_id != first.device_id


def test_confirm_without_pending_code(verification):
    with pytest.raises(CodeNotFoundError):
        verification.confirm_code(PHONE, "123456")


def test_confirm_after_expiry(verification, sender, clock):
    verification.request_code(PHONE)
    clock.advance(minutes=5, seconds=1)
    with pytest.raises(CodeNotFoundError):
        verification.confirm_code(PHONE, sender.last_code)


def test_confirm_invalid_phone(verification):
    with pytest.raises(InvalidPhoneError):
        verification.confirm_code("nope", "123456")


def test_wrong_codes_increment_until_locked(verification, sender, engine):
    verification.request_code(PHONE)
    code = sender.last_code

    for expected in range(1, 6):
        with pytest.raises(InvalidCodeError):
            verification.confirm_code(PHONE, _wrong(code))
        assert _record(engine).attempt_count == expected

    # Locked even with the right code, and the counter stops moving
    with pytest.raises(AccountLockedError) as exc:
        verification.confirm_code(PHONE, code)
    assert exc.value.status_code == 403
    assert _record(engine).attempt_count == 5


def test_fresh_issuance_unlocks(verification, sender, clock):
    verification.request_code(PHONE)
    for _ in range(5):
        with pytest.raises(InvalidCodeError):
            verification.confirm_code(PHONE, _wrong(sender.last_code))

    clock.advance(minutes=1)
    verification.request_code(PHONE)
    identity = verification.confirm_code(PHONE, sender.last_code)
    assert identity.user_id


def test_expired_code_can_be_reissued_immediately(verification, sender, clock):
    verification.request_code(PHONE)
    clock.advance(minutes=6)
    verification.request_code(PHONE)
    assert len(sender.sent) == 2


def test_purge_expired(verification, sender, engine, clock):
    verification.request_code(PHONE)
    verification.request_code("+447700900123")
    clock.advance(minutes=10)
    assert verification.purge_expired() == 2
    assert _record(engine) is None


class BarrierHasher(FakeHasher):
    """Holds every caller between the pending-code read and the write until all have read."""

    def __init__(self, parties: int):
        super().__init__()
        self.barrier = threading.Barrier(parties, timeout=5)

    def hash(self, code: str) -> str:
        self.barrier.wait()
        return super().hash(code)


class UnreachableSender:
    def send(self, phone: str, code: str) -> None:
        raise TwilioException("Unable to create record: service unavailable")


def test_concurrent_first_requests_issue_a_single_code(file_store):
    sender = FakeSender()
    service = VerificationService(store=file_store, hasher=BarrierHasher(2), sender=sender, audit=StdAuditLogger())
    outcomes = []

    def request():
        try:
            service.request_code(PHONE)
            outcomes.append("issued")
        except RateLimitedError:
            outcomes.append("rate_limited")
        except Exception as e:
            outcomes.append(type(e).__name__)

    threads = [threading.Thread(target=request) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(outcomes) == ["issued", "rate_limited"]
    assert len(sender.sent) == 1


def test_upsert_refuses_to_replace_a_recent_code(store, engine, clock):
    now = clock.now
    with store.transaction() as tx:
        assert tx.verifications.upsert(PHONE, "first", issued_at=now, expires_at=now + timedelta(minutes=5),
                                       issued_cutoff=now - timedelta(seconds=60))

    later = now + timedelta(seconds=30)
    with store.transaction() as tx:
        assert not tx.verifications.upsert(PHONE, "second", issued_at=later, expires_at=later + timedelta(minutes=5),
                                           issued_cutoff=later - timedelta(seconds=60))
    assert _record(engine).code_hash == "first"

    later = now + timedelta(seconds=60)
    with store.transaction() as tx:
        assert tx.verifications.upsert(PHONE, "third", issued_at=later, expires_at=later + timedelta(minutes=5),
                                       issued_cutoff=later - timedelta(seconds=60))
    assert _record(engine).code_hash == "third"


def test_failed_delivery_leaves_no_pending_code(store, engine, clock, verification, sender):
    unreachable = VerificationService(store=store, hasher=FakeHasher(), sender=UnreachableSender(),
                                      audit=StdAuditLogger(), clock=clock)
    with pytest.raises(TwilioException):
        unreachable.request_code(PHONE)
    assert _record(engine) is None

    clock.advance(seconds=1)
    verification.request_code(PHONE)
    assert sender.sent[0][0] == PHONE


def test_timestamps_are_stored_and_loaded_as_utc(verification, engine, clock):
    verification.request_code(PHONE)

    rec = _record(engine)
    assert rec.issued_at.tzinfo is not None
    assert rec.issued_at.utcoffset() == timedelta(0)
    assert rec.issued_at == clock.now


def test_naive_timestamps_are_refused(store):
    naive = datetime(2026, 1, 1, 12, 0, 0)
    with pytest.raises(StatementError):
        with store.transaction() as tx:
            tx.verifications.upsert(PHONE, "hash", issued_at=naive, expires_at=naive + timedelta(minutes=5),
                                    issued_cutoff=naive - timedelta(seconds=60))
