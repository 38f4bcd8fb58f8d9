"""
In-memory implementations of the audit log and user directory.

Used for development, the sandbox mode and tests.
For multi-process deployments use the SQLAlchemy audit log instead.
"""

import copy
import threading
from uuid import UUID

import structlog

from ...domain.entities import MessageRecord, MessageUpdate
from ...domain.ports import DeliveryAuditLog, UserDirectory
from ...domain.value_objects import UserContactInfo

logger = structlog.get_logger()


class InMemoryDeliveryAuditLog(DeliveryAuditLog):
    """Process-local delivery audit log."""

    def __init__(self) -> None:
        self._records: dict[UUID, MessageRecord] = {}
        self._lock = threading.Lock()

    async def log_message(self, record: MessageRecord) -> MessageRecord:
        with self._lock:
            self._records[record.id] = copy.deepcopy(record)
        logger.debug("Delivery record logged", record_id=str(record.id), channel=record.channel.value)
        return record

    async def update_message(self, record_id: UUID, update: MessageUpdate) -> bool:
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                return False
            record.apply(update)
        logger.debug("Delivery record updated", record_id=str(record_id), status=update.status.value)
        return True

    async def get_message_history(self, recipient: str, limit: int = 50) -> list[MessageRecord]:
        with self._lock:
            matches = [copy.deepcopy(r) for r in self._records.values() if r.recipient == recipient]
        matches.sort(key=lambda r: r.created_at, reverse=True)
        return matches[:limit]

    def get(self, record_id: UUID) -> MessageRecord | None:
        with self._lock:
            record = self._records.get(record_id)
            return copy.deepcopy(record) if record else None

    def all(self) -> list[MessageRecord]:
        """All records in insertion order."""
        with self._lock:
            return [copy.deepcopy(r) for r in self._records.values()]


class InMemoryUserDirectory(UserDirectory):
    """Static user directory keyed by user id."""

    def __init__(self, contacts: dict[str, UserContactInfo] | None = None) -> None:
        self._contacts = dict(contacts or {})

    async def get_contact_info(self, user_id: str) -> UserContactInfo | None:
        return self._contacts.get(user_id)
