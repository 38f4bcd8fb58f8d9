"""
Application service for notification delivery with cross-channel fallback.

This service picks the contact's preferred channel, falls back to the
configured alternates when it fails, and writes the final audit status for
every channel it tried. It depends on ports and per-channel senders, not on
concrete providers.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence

import structlog

from ...domain.entities import DeliveryStatus
from ...domain.messages import Notification
from ...domain.ports import UserDirectory
from ...domain.results import BroadcastSummary, DeliveryMetadata, NotificationResult
from ...domain.value_objects import ChannelType, ErrorKind, UserContactInfo
from ...infrastructure.logging import correlation_scope
from .channel_sender import ChannelAttempt, ChannelSender

logger = structlog.get_logger()


class NotificationOrchestrator:
    """
    Application service that delivers logical notifications.

    This service:
    - Sends on the contact's preferred channel first
    - Falls back to alternate channels strictly one after another
    - Completes each channel's audit record exactly once
    - Never raises for delivery failures; the caller gets a result

    Sends for one notification are sequential so a user never receives the
    same message twice from parallel channels.
    """

    def __init__(
        self,
        senders: dict[ChannelType, ChannelSender],
        fallback_policy: Callable[[ChannelType], list[ChannelType]],
        user_directory: UserDirectory | None = None,
        broadcast_delay_ms: int = 1000,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize with per-channel senders.

        Args:
            senders: One ChannelSender per available channel
            fallback_policy: Returns the ordered fallback channels for a preferred channel
            user_directory: Contact lookup used by notify_user
            broadcast_delay_ms: Pause between recipients of a broadcast
            sleep: Coroutine taking seconds; injectable for tests
        """
        if not senders:
            raise ValueError("At least one channel sender is required")
        self._senders = senders
        self._fallback_policy = fallback_policy
        self._user_directory = user_directory
        self._broadcast_delay_ms = broadcast_delay_ms
        self._sleep = sleep
        self._background: set[asyncio.Task] = set()

    def channel_chain(self, preferred: ChannelType) -> list[ChannelType]:
        """Preferred channel followed by its available fallbacks, without repeats."""
        chain = [preferred]
        for channel in self._fallback_policy(preferred):
            if channel not in chain and channel in self._senders:
                chain.append(channel)
        return chain

    async def send_notification(
        self,
        contact: UserContactInfo,
        notification: Notification,
    ) -> NotificationResult:
        """
        Deliver a notification, falling back across channels on failure.

        Args:
            contact: Recipient contact record
            notification: Logical notification

        Returns:
            NotificationResult naming the channel used and any fallback
        """
        with correlation_scope():
            preferred = contact.preferred_channel
            chain = self.channel_chain(preferred)
            attempts: list[ChannelAttempt] = []

            for channel in chain:
                sender = self._senders.get(channel)
                if sender is None:
                    logger.warning("Channel not configured", channel=channel.value)
                    continue

                attempt = await sender.deliver(contact, notification)
                attempts.append(attempt)
                if attempt.result.success:
                    break

                if channel != chain[-1]:
                    logger.info(
                        "Channel failed, trying fallback",
                        channel=channel.value,
                        error_kind=attempt.result.error_kind.value,
                    )

            if not attempts:
                return NotificationResult(
                    channel=preferred,
                    success=False,
                    message=f"No sender configured for {preferred.value}",
                    error_kind=ErrorKind.VALIDATION,
                )

            await self._finalize(attempts)
            result = self._summarize(preferred, attempts)

            logger.info(
                "Notification processed",
                message_type=notification.kind.value,
                success=result.success,
                channel_used=result.channel_used.value if result.channel_used else None,
                fallback_used=result.fallback_used.value if result.fallback_used else None,
            )
            return result

    async def notify_user(self, user_id: str, notification: Notification) -> NotificationResult:
        """Look up a user's contact details and deliver a notification."""
        if self._user_directory is None:
            raise RuntimeError("No user directory configured")

        contact = await self._user_directory.get_contact_info(user_id)
        if contact is None:
            logger.warning("Notification skipped, user not found", user_id=user_id)
            return NotificationResult(
                channel=ChannelType.WHATSAPP,
                success=False,
                message="User not found",
                error_kind=ErrorKind.VALIDATION,
            )
        return await self.send_notification(contact, notification)

    async def broadcast(
        self,
        contacts: Sequence[UserContactInfo],
        notification: Notification,
    ) -> BroadcastSummary:
        """
        Send one notification to many recipients, one at a time.

        Recipients are processed sequentially with a fixed delay between them
        to stay within provider rate limits. A failure for one recipient is
        recorded and the batch continues.
        """
        results: list[NotificationResult] = []

        with correlation_scope():
            logger.info("Broadcast started", total=len(contacts), message_type=notification.kind.value)

            for index, contact in enumerate(contacts):
                try:
                    result = await self.send_notification(contact, notification)
                except Exception as e:
                    logger.error("Broadcast recipient failed", index=index, error=str(e))
                    result = NotificationResult(
                        channel=contact.preferred_channel,
                        success=False,
                        message=f"Unexpected error: {e}",
                        error_kind=ErrorKind.UNKNOWN,
                    )
                results.append(result)

                if index < len(contacts) - 1 and self._broadcast_delay_ms > 0:
                    await self._sleep(self._broadcast_delay_ms / 1000)

            successful = sum(1 for r in results if r.success)
            summary = BroadcastSummary(
                total=len(contacts),
                successful=successful,
                failed=len(results) - successful,
                results=results,
            )
            logger.info(
                "Broadcast completed",
                total=summary.total,
                successful=summary.successful,
                failed=summary.failed,
            )
        return summary

    def dispatch_in_background(
        self,
        contact: UserContactInfo,
        notification: Notification,
    ) -> asyncio.Task:
        """Schedule a send without waiting; errors are logged, never raised."""
        task = asyncio.create_task(self._send_logged(contact, notification))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def drain(self) -> None:
        """Wait for background sends to finish."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def _send_logged(
        self,
        contact: UserContactInfo,
        notification: Notification,
    ) -> NotificationResult | None:
        try:
            return await self.send_notification(contact, notification)
        except Exception as e:
            logger.error(
                "Background notification failed",
                message_type=notification.kind.value,
                error=str(e),
            )
            return None

    async def _finalize(self, attempts: list[ChannelAttempt]) -> None:
        delivered = attempts[-1].result.success
        for index, attempt in enumerate(attempts):
            result = attempt.result
            if result.success:
                status = DeliveryStatus.SENT
            elif delivered and index < len(attempts) - 1:
                status = DeliveryStatus.FALLBACK_SENT
            elif result.retryable:
                status = DeliveryStatus.RETRY_FAILED
            else:
                status = DeliveryStatus.FAILED
            await self._senders[result.channel].finalize(attempt, status)

    @staticmethod
    def _summarize(preferred: ChannelType, attempts: list[ChannelAttempt]) -> NotificationResult:
        last = attempts[-1].result
        failures = [a.result for a in attempts if not a.result.success]
        metadata = DeliveryMetadata(
            provider_message_id=last.metadata.provider_message_id,
            provider_status=last.metadata.provider_status,
            status_code=last.metadata.status_code,
            error_code=last.metadata.error_code,
            circuit_breaker_open=last.metadata.circuit_breaker_open,
            sandbox=last.metadata.sandbox,
            fallback_attempted=len(attempts) > 1,
            channel_errors={r.channel: r.message for r in failures},
            attempts_by_channel={a.result.channel: a.result.total_attempts for a in attempts},
        )
        first = attempts[0].result
        if not first.success:
            metadata.original_error = first.message

        if last.success:
            used_fallback = last.channel != preferred
            message = last.message
            if used_fallback:
                message = f"Delivered via {last.channel.value} after {preferred.value} failed"
            return NotificationResult(
                channel=last.channel,
                success=True,
                message=message,
                retry_count=last.retry_count,
                total_attempts=last.total_attempts,
                metadata=metadata,
                channel_used=last.channel,
                fallback_used=preferred if used_fallback else None,
            )

        if len(attempts) == 1:
            message = last.message
        else:
            names = [a.result.channel.value for a in attempts]
            if len(names) == 2:
                message = f"Failed to send via both {names[0]} and {names[1]}"
            else:
                message = f"Failed to send via all channels: {', '.join(names)}"

        return NotificationResult(
            channel=last.channel,
            success=False,
            message=message,
            error_kind=last.error_kind,
            retryable=last.retryable,
            retry_count=last.retry_count,
            total_attempts=last.total_attempts,
            metadata=metadata,
        )
