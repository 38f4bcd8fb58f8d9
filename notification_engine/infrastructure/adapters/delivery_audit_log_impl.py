"""
SQLAlchemy implementation of the DeliveryAuditLog port.

Each call runs in its own short session: audit writes are single-row
inserts and updates that must not share a transaction with the caller.
"""

from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ...domain.entities import MessageRecord, MessageUpdate
from ...domain.ports import DeliveryAuditLog
from ..persistence.models import DeliveryRecordModel, _naive_utc

logger = structlog.get_logger()


class SqlAlchemyDeliveryAuditLog(DeliveryAuditLog):
    """SQLAlchemy implementation of DeliveryAuditLog."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """
        Initialize with a session factory.

        Args:
            session_factory: Factory for SQLAlchemy async sessions
        """
        self._session_factory = session_factory

    async def log_message(self, record: MessageRecord) -> MessageRecord:
        """Insert a pending delivery record."""
        async with self._session_factory() as session:
            session.add(DeliveryRecordModel.from_entity(record))
            await session.commit()

        logger.info(
            "Delivery record logged",
            record_id=str(record.id),
            channel=record.channel.value,
            message_type=record.message_type,
        )
        return record

    async def update_message(self, record_id: UUID, update: MessageUpdate) -> bool:
        """Apply the completion update to a record."""
        async with self._session_factory() as session:
            model = await session.get(DeliveryRecordModel, record_id)
            if model is None:
                return False

            record = model.to_entity()
            record.apply(update)

            model.status = record.status.value
            model.retry_count = record.retry_count
            model.last_retry_at = _naive_utc(record.last_retry_at)
            model.failure_reason = record.failure_reason
            model.provider_response = record.provider_response
            model.provider_message_id = record.provider_message_id
            model.updated_at = _naive_utc(record.updated_at)
            await session.commit()

        logger.info("Delivery record updated", record_id=str(record_id), status=update.status.value)
        return True

    async def get_message_history(self, recipient: str, limit: int = 50) -> list[MessageRecord]:
        """Most recent records for a recipient, newest first."""
        stmt = (
            select(DeliveryRecordModel)
            .where(DeliveryRecordModel.recipient == recipient)
            .order_by(DeliveryRecordModel.created_at.desc())
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [model.to_entity() for model in result.scalars()]
