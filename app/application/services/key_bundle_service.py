from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional
import base64
import binascii
import logging

from ..ports.audit_logger import AuditLogger
from ..ports.credential_store import CredentialStore, DuplicateKeyError
from ..ports.device_repo import DeviceDto, NewDeviceBundle, OneTimePrekeyDto
from .token_service import SessionTokenIssuer
from ...exceptions import BundleConflictError, BundleDecodeError, DeviceNotFoundError
from ...utils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class KeyBundleUpload:
    """Key material as received from the client, base64 encoded."""
    identity_key_pub: str
    signed_prekey_pub: str
    signed_prekey_signature: str
    device_name: str
    one_time_prekeys: List[str] = field(default_factory=list)
    push_token: Optional[str] = None


@dataclass(frozen=True)
class BundleAccepted:
    device_id: str
    auth_token: str


@dataclass(frozen=True)
class PreKeyBundle:
    device_id: str
    user_id: Optional[str]
    identity_key_pub: bytes
    signed_prekey_pub: bytes
    signed_prekey_signature: bytes
    one_time_prekey: Optional[OneTimePrekeyDto]


def decode_key(value: str, field_name: str) -> bytes:
    try:
        raw = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError, TypeError):
        raise BundleDecodeError(f"Invalid base64 in {field_name}")
    if not raw:
        raise BundleDecodeError(f"Empty key material in {field_name}")
    return raw


@dataclass
class KeyBundleService:
    store: CredentialStore
    tokens: SessionTokenIssuer
    audit: AuditLogger
    device_token_ttl: timedelta = timedelta(days=7)
    clock: Callable[[], datetime] = utcnow

    def upload_bundle(self, user_id: str, device_id: str, upload: KeyBundleUpload) -> BundleAccepted:
        bundle = NewDeviceBundle(
            device_id=device_id,
            user_id=user_id,
            name=upload.device_name,
            identity_key_pub=decode_key(upload.identity_key_pub, "identity_key_pub"),
            signed_prekey_pub=decode_key(upload.signed_prekey_pub, "signed_prekey_pub"),
            signed_prekey_signature=decode_key(upload.signed_prekey_signature, "signed_prekey_signature"),
            one_time_prekeys=[
                decode_key(k, f"one_time_prekeys[{i}]") for i, k in enumerate(upload.one_time_prekeys)
            ],
            push_token=upload.push_token or None,
        )

        try:
            with self.store.transaction() as tx:
                if tx.devices.exists(device_id):
                    raise DuplicateKeyError(device_id)
                tx.devices.add_bundle(bundle, created_at=self.clock())
        except DuplicateKeyError:
            self.audit.log("bundle_conflict", user_id=user_id, device_id=device_id, success=False)
            raise BundleConflictError()

        self.audit.log("bundle_uploaded", user_id=user_id, device_id=device_id,
                       details={"one_time_prekeys": len(bundle.one_time_prekeys)})
        token = self.tokens.mint(user_id, device_id, self.device_token_ttl)
        return BundleAccepted(device_id=device_id, auth_token=token)

    def consume_one_time_prekey(self, device_id: str) -> Optional[OneTimePrekeyDto]:
        with self.store.transaction() as tx:
            prekey = tx.devices.claim_one_time_prekey(device_id)
        if prekey is None:
            logger.info(f"No one-time prekeys left for device {device_id}")
        return prekey

    def fetch_prekey_bundle(self, device_id: str) -> PreKeyBundle:
        with self.store.transaction() as tx:
            device = tx.devices.get(device_id)
            if device is None or device.is_revoked:
                raise DeviceNotFoundError()
            prekey = tx.devices.claim_one_time_prekey(device_id)
        return PreKeyBundle(
            device_id=device.id,
            user_id=device.user_id,
            identity_key_pub=device.identity_key_pub,
            signed_prekey_pub=device.signed_prekey_pub,
            signed_prekey_signature=device.signed_prekey_signature,
            one_time_prekey=prekey,
        )

    def list_devices(self, user_id: str) -> List[DeviceDto]:
        with self.store.transaction() as tx:
            return tx.devices.list_for_user(user_id)

    def remaining_prekeys(self, device_id: str) -> int:
        with self.store.transaction() as tx:
            return tx.devices.count_unconsumed(device_id)
