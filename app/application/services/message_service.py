from dataclasses import dataclass
from typing import List

from ..ports.credential_store import CredentialStore
from ..ports.message_repo import MessageDto

MAX_PAGE_SIZE = 100


@dataclass
class MessageService:
    store: CredentialStore

    def list_messages(self, user_id: str, device_id: str, limit: int = 10, offset: int = 0) -> List[MessageDto]:
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)
        with self.store.transaction() as tx:
            return tx.messages.list_for_recipient(user_id, device_id, limit, offset)
