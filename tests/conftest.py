from datetime import datetime, timedelta, timezone
from typing import List, Tuple

import pytest
from sqlmodel import SQLModel

from app.application.services.key_bundle_service import KeyBundleService
from app.application.services.token_service import SessionTokenIssuer
from app.application.services.verification_service import VerificationService
from app.core.config import Settings
from app.database import build_engine
from app.infrastructure.audit.std_logger import StdAuditLogger
from app.infrastructure.persistence.sqlalchemy.credential_store_sql import SqlCredentialStore

TEST_SECRET = "test-signing-secret-0123456789abcdef"


class FakeClock:
    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeHasher:
    """Salted but cheap; argon2 is covered separately in test_passlib_hasher."""

    def __init__(self):
        self._salt = 0

    def hash(self, code: str) -> str:
        self._salt += 1
        return f"fake${self._salt}${code[::-1]}"

    def verify(self, code: str, code_hash: str) -> bool:
        return code_hash.split("$", 2)[2] == code[::-1]


class FakeSender:
    def __init__(self):
        self.sent: List[Tuple[str, str]] = []

    def send(self, phone: str, code: str) -> None:
        self.sent.append((phone, code))

    @property
    def last_code(self) -> str:
        return self.sent[-1][1]


@pytest.fixture
def settings():
    return Settings(DATABASE_URL="sqlite:///:memory:", JWT_SECRET_KEY=TEST_SECRET, RATE_LIMIT_PER_MINUTE=1000)


@pytest.fixture
def engine(settings):
    engine = build_engine(settings)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return SqlCredentialStore(engine)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def verification(store, sender, clock):
    return VerificationService(
        store=store,
        hasher=FakeHasher(),
        sender=sender,
        audit=StdAuditLogger(),
        clock=clock,
    )


@pytest.fixture
def tokens():
    return SessionTokenIssuer(secret=TEST_SECRET)


@pytest.fixture
def key_bundles(store, tokens):
    return KeyBundleService(store=store, tokens=tokens, audit=StdAuditLogger())


@pytest.fixture
def file_engine(tmp_path):
    """File-backed SQLite, so threads get their own connections and real write locking."""
    settings = Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'keyring.db'}",
        JWT_SECRET_KEY=TEST_SECRET,
    )
    engine = build_engine(settings)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def file_store(file_engine):
    return SqlCredentialStore(file_engine)
