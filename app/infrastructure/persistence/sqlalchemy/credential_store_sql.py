from contextlib import contextmanager
from typing import Iterator
import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlmodel import Session

from ....application.ports.credential_store import CredentialStore, StoreTransaction
from .repositories.device_repository_sql import SqlDeviceRepository
from .repositories.message_repository_sql import SqlMessageRepository
from .repositories.user_repository_sql import SqlUserRepository
from .repositories.verification_repository_sql import SqlVerificationRepository

logger = logging.getLogger(__name__)


class SqlStoreTransaction(StoreTransaction):
    def __init__(self, session: Session):
        self.session = session
        self.users = SqlUserRepository(session)
        self.verifications = SqlVerificationRepository(session)
        self.devices = SqlDeviceRepository(session)
        self.messages = SqlMessageRepository(session)


class SqlCredentialStore(CredentialStore):
    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def transaction(self) -> Iterator[SqlStoreTransaction]:
        with Session(self.engine, expire_on_commit=False) as session:
            with session.begin():
                yield SqlStoreTransaction(session)

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database ping failed: {e}")
            return False
