from typing import ContextManager, Protocol

from .device_repo import DeviceRepository
from .message_repo import MessageRepository
from .user_repo import UserRepository
from .verification_repo import VerificationRepository


class DuplicateKeyError(Exception):
    """A write collided with an existing primary or unique key."""


class StoreTransaction(Protocol):
    users: UserRepository
    verifications: VerificationRepository
    devices: DeviceRepository
    messages: MessageRepository


class CredentialStore(Protocol):
    def transaction(self) -> ContextManager[StoreTransaction]:
        """Open a transaction; commits when the block exits cleanly, rolls back on exceptions."""
        ...

    def ping(self) -> bool:
        ...
