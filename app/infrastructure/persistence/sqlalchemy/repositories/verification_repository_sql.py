from datetime import datetime
from typing import Optional
from sqlalchemy import delete, or_, update
from sqlmodel import Session, select

from .....db.models import VerificationCode
from .....application.ports.verification_repo import VerificationRepository, VerificationDto
from ..dialect_insert import dialect_insert

verification_codes = VerificationCode.__table__


class SqlVerificationRepository(VerificationRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, rec: VerificationCode) -> VerificationDto:
        return VerificationDto(
            phone_number=rec.phone_number,
            code_hash=rec.code_hash,
            issued_at=rec.issued_at,
            expires_at=rec.expires_at,
            attempt_count=rec.attempt_count or 0,
        )

    def get_for_update(self, phone_number: str) -> Optional[VerificationDto]:
        rec = self.session.exec(
            select(VerificationCode)
            .where(VerificationCode.phone_number == phone_number)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).first()
        return self._to_dto(rec) if rec else None

    def upsert(self, phone_number: str, code_hash: str, issued_at: datetime, expires_at: datetime,
               issued_cutoff: datetime) -> bool:
        conn = self.session.connection()
        values = {
            "code_hash": code_hash,
            "issued_at": issued_at,
            "expires_at": expires_at,
            "attempt_count": 0,
        }
        stmt = dialect_insert(conn, verification_codes).values(phone_number=phone_number, **values)
        # The conflict branch re-checks the interval against the committed row, so two
        # first-time requests racing past the locked read cannot both issue a code
        result = conn.execute(stmt.on_conflict_do_update(
            index_elements=[verification_codes.c.phone_number],
            set_=values,
            where=or_(
                verification_codes.c.expires_at < issued_at,
                verification_codes.c.issued_at <= issued_cutoff,
            ),
        ))
        return result.rowcount == 1

    def increment_attempts(self, phone_number: str) -> int:
        conn = self.session.connection()
        conn.execute(
            update(verification_codes)
            .where(verification_codes.c.phone_number == phone_number)
            .values(attempt_count=verification_codes.c.attempt_count + 1)
        )
        return int(conn.execute(
            select(verification_codes.c.attempt_count)
            .where(verification_codes.c.phone_number == phone_number)
        ).scalar_one())

    def delete(self, phone_number: str) -> bool:
        result = self.session.connection().execute(
            delete(verification_codes).where(verification_codes.c.phone_number == phone_number)
        )
        return result.rowcount > 0

    def delete_expired(self, now: datetime) -> int:
        result = self.session.connection().execute(
            delete(verification_codes).where(verification_codes.c.expires_at < now)
        )
        return result.rowcount
