from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from ..value_objects import ChannelType


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    RETRY_FAILED = "retry_failed"
    FALLBACK_SENT = "fallback_sent"


@dataclass
class MessageRecord:
    """Audit record of one channel delivery attempt sequence."""

    id: UUID
    recipient: str
    channel: ChannelType
    message_type: str
    content: str
    status: DeliveryStatus
    created_at: datetime
    updated_at: datetime
    retry_count: int = 0
    last_retry_at: datetime | None = None
    failure_reason: str | None = None
    provider_response: dict | None = None
    provider_message_id: str | None = None
    reference_id: str | None = None

    @classmethod
    def create(
        cls,
        recipient: str,
        channel: ChannelType,
        message_type: str,
        content: str,
        reference_id: str | None = None,
    ) -> "MessageRecord":
        """Factory method for a pending record at send initiation."""
        now = datetime.now(UTC)
        return cls(
            id=uuid4(),
            recipient=recipient,
            channel=channel,
            message_type=message_type,
            content=content,
            status=DeliveryStatus.PENDING,
            created_at=now,
            updated_at=now,
            reference_id=reference_id,
        )

    def apply(self, update: "MessageUpdate") -> None:
        """Apply a completion update in place."""
        self.status = update.status
        self.retry_count = update.retry_count
        self.last_retry_at = update.last_retry_at
        self.failure_reason = update.failure_reason
        self.provider_response = update.provider_response
        self.provider_message_id = update.provider_message_id
        self.updated_at = datetime.now(UTC)


@dataclass
class MessageUpdate:
    """Completion update written once per record."""

    status: DeliveryStatus
    retry_count: int = 0
    last_retry_at: datetime | None = None
    failure_reason: str | None = None
    provider_response: dict | None = None
    provider_message_id: str | None = None
