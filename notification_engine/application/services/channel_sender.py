"""
Application service for delivery on a single channel.

Resolves the recipient, renders the notification, opens an audit record and
runs the adapter's send under the channel's RetryExecutor. The outcome comes
back as a CommunicationResult; the orchestrator decides the final audit
status once the whole fallback chain is known.
"""

from dataclasses import dataclass
from uuid import UUID

import structlog

from ...domain.entities import DeliveryStatus, MessageRecord, MessageUpdate
from ...domain.exceptions import InvalidRecipientError, ProviderError
from ...domain.messages import Notification
from ...domain.ports import ChannelAdapter, DeliveryAuditLog, ProviderResponse, RenderedMessage
from ...domain.results import CommunicationResult, DeliveryMetadata
from ...domain.value_objects import ChannelType, ErrorKind, UserContactInfo
from ...infrastructure.logging import mask_recipient
from ...resilience import RetryExecutor, RetryOutcome

logger = structlog.get_logger()

UNAVAILABLE_RECIPIENT = "unavailable"


@dataclass
class ChannelAttempt:
    """A channel's result plus the audit record awaiting completion."""

    result: CommunicationResult
    record_id: UUID | None = None


class ChannelSender:
    """
    Delivers notifications through one channel adapter.

    Audit log failures are logged and never change the delivery outcome.
    """

    def __init__(
        self,
        adapter: ChannelAdapter,
        executor: RetryExecutor,
        audit_log: DeliveryAuditLog,
    ) -> None:
        self._adapter = adapter
        self._executor = executor
        self._audit_log = audit_log

    @property
    def channel(self) -> ChannelType:
        return self._adapter.channel

    @property
    def adapter(self) -> ChannelAdapter:
        return self._adapter

    @property
    def executor(self) -> RetryExecutor:
        return self._executor

    async def deliver(self, contact: UserContactInfo, notification: Notification) -> ChannelAttempt:
        """
        Attempt delivery of a notification to a contact on this channel.

        Args:
            contact: Recipient contact record
            notification: Logical notification to render and send

        Returns:
            ChannelAttempt with the result and the pending audit record id
        """
        content = self._adapter.format(notification, contact.display_name)

        try:
            recipient = self._adapter.resolve_recipient(contact)
        except InvalidRecipientError as e:
            logger.warning(
                "Recipient not reachable on channel",
                channel=self.channel.value,
                message_type=notification.kind.value,
                error=str(e),
            )
            record_id = await self._log_start(UNAVAILABLE_RECIPIENT, notification, content)
            result = CommunicationResult.failed(
                channel=self.channel,
                message=str(e),
                error_kind=ErrorKind.VALIDATION,
                retryable=False,
                attempts=0,
                metadata=DeliveryMetadata(
                    original_error=str(e),
                    attempts_by_channel={self.channel: 0},
                ),
            )
            return ChannelAttempt(result=result, record_id=record_id)

        record_id = await self._log_start(recipient, notification, content)

        logger.info(
            "Sending notification",
            channel=self.channel.value,
            message_type=notification.kind.value,
            recipient=mask_recipient(recipient),
        )
        outcome = await self._executor.execute_with_protection(
            lambda: self._adapter.send(recipient, content),
            operation_name=f"{self.channel.value}:{notification.kind.value}",
        )
        return ChannelAttempt(result=self._to_result(outcome), record_id=record_id)

    async def finalize(self, attempt: ChannelAttempt, status: DeliveryStatus) -> None:
        """Write the single completion update for an attempt's audit record."""
        if attempt.record_id is None:
            return

        result = attempt.result
        metadata = result.metadata
        if result.success:
            provider_response = {
                "message_id": metadata.provider_message_id,
                "status": metadata.provider_status,
                "sandbox": metadata.sandbox,
            }
        else:
            provider_response = {
                "error_kind": result.error_kind.value if result.error_kind else None,
                "error_code": metadata.error_code,
                "status_code": metadata.status_code,
                "circuit_breaker_open": metadata.circuit_breaker_open,
            }

        update = MessageUpdate(
            status=status,
            retry_count=result.retry_count,
            last_retry_at=result.timestamp if result.retry_count > 0 else None,
            failure_reason=None if result.success else result.message,
            provider_response=provider_response,
            provider_message_id=metadata.provider_message_id,
        )
        try:
            updated = await self._audit_log.update_message(attempt.record_id, update)
        except Exception as e:
            logger.error(
                "Failed to update delivery record",
                record_id=str(attempt.record_id),
                error=str(e),
            )
            return

        if not updated:
            logger.warning("Delivery record not found for update", record_id=str(attempt.record_id))

    async def _log_start(
        self,
        recipient: str,
        notification: Notification,
        content: RenderedMessage,
    ) -> UUID | None:
        record = MessageRecord.create(
            recipient=recipient,
            channel=self.channel,
            message_type=notification.kind.value,
            content=content.body,
            reference_id=notification.reference_id,
        )
        try:
            saved = await self._audit_log.log_message(record)
        except Exception as e:
            logger.error(
                "Failed to log delivery record",
                channel=self.channel.value,
                message_type=notification.kind.value,
                error=str(e),
            )
            return None
        return saved.id

    def _to_result(self, outcome: RetryOutcome[ProviderResponse]) -> CommunicationResult:
        label = self.channel.value
        if outcome.success and outcome.result is not None:
            response = outcome.result
            return CommunicationResult.succeeded(
                channel=self.channel,
                message=f"Message sent via {label}",
                attempts=outcome.attempts,
                metadata=DeliveryMetadata(
                    provider_message_id=response.message_id,
                    provider_status=response.status,
                    sandbox=response.sandbox,
                    attempts_by_channel={self.channel: outcome.attempts},
                ),
            )

        error = outcome.error
        error_text = str(error) if error is not None else "Unknown error"
        if outcome.circuit_open:
            message = f"{label} service temporarily unavailable (circuit breaker open)"
        else:
            message = error_text

        return CommunicationResult.failed(
            channel=self.channel,
            message=message,
            error_kind=outcome.error_kind or ErrorKind.UNKNOWN,
            retryable=outcome.retryable,
            attempts=outcome.attempts,
            metadata=DeliveryMetadata(
                error_code=outcome.error_code,
                status_code=error.status if isinstance(error, ProviderError) else None,
                circuit_breaker_open=outcome.circuit_open,
                original_error=error_text,
                attempts_by_channel={self.channel: outcome.attempts},
            ),
        )
