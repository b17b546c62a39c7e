from datetime import datetime
from typing import List, Optional
from sqlalchemy import func, insert, update
from sqlmodel import Session, select

from .....db.models import Device, OneTimePrekey
from .....application.ports.credential_store import DuplicateKeyError
from .....application.ports.device_repo import DeviceRepository, DeviceDto, NewDeviceBundle, OneTimePrekeyDto
from ..dialect_insert import dialect_insert

devices = Device.__table__
one_time_prekeys = OneTimePrekey.__table__

# Candidates fetched per claim attempt; losing a race moves on to the next one
CLAIM_BATCH_SIZE = 5
MAX_CLAIM_ROUNDS = 10


class SqlDeviceRepository(DeviceRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, device: Device) -> DeviceDto:
        return DeviceDto(
            id=device.id,
            user_id=device.user_id,
            name=device.name,
            created_at=device.created_at,
            last_seen=device.last_seen,
            is_revoked=bool(device.is_revoked),
            identity_key_pub=device.identity_key_pub,
            signed_prekey_pub=device.signed_prekey_pub,
            signed_prekey_signature=device.signed_prekey_signature,
            push_token=device.push_token,
        )

    def exists(self, device_id: str) -> bool:
        return self.session.exec(select(Device.id).where(Device.id == device_id)).first() is not None

    def get(self, device_id: str) -> Optional[DeviceDto]:
        device = self.session.get(Device, device_id)
        return self._to_dto(device) if device else None

    def add_bundle(self, bundle: NewDeviceBundle, created_at: datetime) -> None:
        conn = self.session.connection()
        # Device row first; only a primary key collision is a duplicate, other integrity errors propagate
        inserted = conn.execute(
            dialect_insert(conn, devices)
            .values(
                id=bundle.device_id,
                user_id=bundle.user_id,
                name=bundle.name,
                created_at=created_at,
                is_revoked=False,
                identity_key_pub=bundle.identity_key_pub,
                signed_prekey_pub=bundle.signed_prekey_pub,
                signed_prekey_signature=bundle.signed_prekey_signature,
                push_token=bundle.push_token,
            )
            .on_conflict_do_nothing(index_elements=[devices.c.id])
        )
        if inserted.rowcount != 1:
            raise DuplicateKeyError(bundle.device_id)
        if bundle.one_time_prekeys:
            conn.execute(insert(one_time_prekeys), [
                {"device_id": bundle.device_id, "prekey_pub": key, "is_consumed": False, "created_at": created_at}
                for key in bundle.one_time_prekeys
            ])

    def list_for_user(self, user_id: str) -> List[DeviceDto]:
        rows = self.session.exec(
            select(Device)
            .where(Device.user_id == user_id)
            .order_by(Device.created_at)
        ).all()
        return [self._to_dto(d) for d in rows]

    def claim_one_time_prekey(self, device_id: str) -> Optional[OneTimePrekeyDto]:
        for _ in range(MAX_CLAIM_ROUNDS):
            candidates = self.session.connection().execute(
                select(one_time_prekeys.c.id, one_time_prekeys.c.prekey_pub)
                .where(one_time_prekeys.c.device_id == device_id)
                .where(one_time_prekeys.c.is_consumed == False)  # noqa: E712
                .order_by(one_time_prekeys.c.id)
                .limit(CLAIM_BATCH_SIZE)
                .with_for_update(skip_locked=True)
            ).all()
            if not candidates:
                return None
            for prekey_id, prekey_pub in candidates:
                claimed = self.session.connection().execute(
                    update(one_time_prekeys)
                    .where(one_time_prekeys.c.id == prekey_id)
                    .where(one_time_prekeys.c.is_consumed == False)  # noqa: E712
                    .values(is_consumed=True)
                )
                if claimed.rowcount == 1:
                    return OneTimePrekeyDto(id=prekey_id, device_id=device_id, prekey_pub=prekey_pub)
        return None

    def count_unconsumed(self, device_id: str) -> int:
        return int(self.session.connection().execute(
            select(func.count())
            .select_from(one_time_prekeys)
            .where(one_time_prekeys.c.device_id == device_id)
            .where(one_time_prekeys.c.is_consumed == False)  # noqa: E712
        ).scalar_one())
