from typing import Optional
from sqlmodel import Session, select

from .....db.models import User
from .....application.ports.user_repo import UserRepository, UserDto
from .....utils import new_id, utcnow
from ..dialect_insert import dialect_insert

users = User.__table__


class SqlUserRepository(UserRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, user: User) -> UserDto:
        return UserDto(
            id=user.id,
            name=user.name,
            phone_number=user.phone_number,
            created_at=user.created_at,
            avatar_hash=user.avatar_hash,
            last_seen=user.last_seen,
        )

    def get_by_phone(self, phone_number: str) -> Optional[UserDto]:
        user = self.session.exec(
            select(User)
            .where(User.phone_number == phone_number)
            .execution_options(populate_existing=True)
        ).first()
        return self._to_dto(user) if user else None

    def get_or_create(self, phone_number: str, name: str) -> tuple[UserDto, bool]:
        existing = self.get_by_phone(phone_number)
        if existing:
            return existing, False
        conn = self.session.connection()
        # A concurrent confirmation for the same phone makes this a no-op instead of an error
        result = conn.execute(
            dialect_insert(conn, users)
            .values(id=new_id(), name=name, phone_number=phone_number, created_at=utcnow())
            .on_conflict_do_nothing(index_elements=[users.c.phone_number])
        )
        user = self.get_by_phone(phone_number)
        if user is None:
            raise RuntimeError("User row missing after insert")
        return user, result.rowcount == 1
