from datetime import UTC, datetime
from typing import overload
from uuid import UUID

from sqlalchemy import JSON, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ...domain.entities import DeliveryStatus, MessageRecord
from ...domain.value_objects import ChannelType


def _naive_utc(dt: datetime | None) -> datetime | None:
    """Strip timezone info for storage in TIMESTAMP WITHOUT TIME ZONE columns."""
    if dt is None:
        return None
    return dt.astimezone(UTC).replace(tzinfo=None)


@overload
def _aware_utc(dt: datetime) -> datetime: ...


@overload
def _aware_utc(dt: None) -> None: ...


@overload
def _aware_utc(dt: datetime | None) -> datetime | None: ...


def _aware_utc(dt: datetime | None) -> datetime | None:
    """Attach UTC timezone to naive datetimes read from the database."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class Base(DeclarativeBase):
    pass


class DeliveryRecordModel(Base):
    """SQLAlchemy model for MessageRecord."""

    __tablename__ = "notification_messages"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    recipient: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    channel: Mapped[str] = mapped_column(String(20), nullable=False)
    message_type: Mapped[str] = mapped_column(String(50), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_retry_at: Mapped[datetime | None] = mapped_column(DateTime)
    failure_reason: Mapped[str | None] = mapped_column(Text)
    provider_response: Mapped[dict | None] = mapped_column(JSON)
    provider_message_id: Mapped[str | None] = mapped_column(String(255))
    reference_id: Mapped[str | None] = mapped_column(String(255), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    @classmethod
    def from_entity(cls, record: MessageRecord) -> "DeliveryRecordModel":
        """Convert domain entity to ORM model."""
        return cls(
            id=record.id,
            recipient=record.recipient,
            channel=record.channel.value,
            message_type=record.message_type,
            content=record.content,
            status=record.status.value,
            retry_count=record.retry_count,
            last_retry_at=_naive_utc(record.last_retry_at),
            failure_reason=record.failure_reason,
            provider_response=record.provider_response,
            provider_message_id=record.provider_message_id,
            reference_id=record.reference_id,
            created_at=_naive_utc(record.created_at),
            updated_at=_naive_utc(record.updated_at),
        )

    def to_entity(self) -> MessageRecord:
        """Convert ORM model to domain entity."""
        return MessageRecord(
            id=self.id,
            recipient=self.recipient,
            channel=ChannelType(self.channel),
            message_type=self.message_type,
            content=self.content,
            status=DeliveryStatus(self.status),
            retry_count=self.retry_count,
            last_retry_at=_aware_utc(self.last_retry_at),
            failure_reason=self.failure_reason,
            provider_response=self.provider_response,
            provider_message_id=self.provider_message_id,
            reference_id=self.reference_id,
            created_at=_aware_utc(self.created_at),
            updated_at=_aware_utc(self.updated_at),
        )
