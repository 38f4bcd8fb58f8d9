"""
Port for delivery audit records.

Every channel attempt sequence is logged as pending when it starts and
updated exactly once when it completes. Records are never deleted here.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from ..entities import MessageRecord, MessageUpdate


class DeliveryAuditLog(ABC):
    """Persistence collaborator for MessageRecord."""

    @abstractmethod
    async def log_message(self, record: MessageRecord) -> MessageRecord:
        """Persist a new record and return it."""
        ...

    @abstractmethod
    async def update_message(self, record_id: UUID, update: MessageUpdate) -> bool:
        """Apply a completion update. Returns False if the record is unknown."""
        ...

    @abstractmethod
    async def get_message_history(self, recipient: str, limit: int = 50) -> list[MessageRecord]:
        """Return the most recent records for a recipient, newest first."""
        ...
