from typing import List
from sqlalchemy import and_, or_
from sqlmodel import Session, select

from .....db.models import Message
from .....application.ports.message_repo import MessageRepository, MessageDto


class SqlMessageRepository(MessageRepository):
    def __init__(self, session: Session):
        self.session = session

    def list_for_recipient(self, user_id: str, device_id: str, limit: int, offset: int) -> List[MessageDto]:
        rows = self.session.exec(
            select(Message)
            .where(or_(
                Message.recipient_device_id == device_id,
                and_(Message.recipient_device_id.is_(None), Message.recipient_user_id == user_id),
            ))
            .order_by(Message.created_at, Message.id)
            .offset(offset)
            .limit(limit)
        ).all()
        return [
            MessageDto(
                id=m.id,
                sender_user_id=m.sender_user_id,
                sender_device_id=m.sender_device_id,
                recipient_user_id=m.recipient_user_id,
                recipient_device_id=m.recipient_device_id,
                ciphertext=m.ciphertext,
                message_type=m.message_type,
                protocol_version=m.protocol_version,
                delivered_at=m.delivered_at,
                created_at=m.created_at,
            )
            for m in rows
        ]
