"""
Shared send pipeline for provider-backed channel adapters.

Every send validates the recipient, runs the channel's content checks and
then races the provider call against the channel timeout. Sandbox adapters
reuse the same pipeline and only replace the provider call.
"""

import asyncio
from abc import abstractmethod

import structlog

from ..domain.exceptions import InvalidRecipientError, SendTimeoutError
from ..domain.ports import ChannelAdapter, ProviderResponse, RenderedMessage
from ..infrastructure.logging import Timer, mask_recipient

logger = structlog.get_logger()


class ProviderChannelAdapter(ChannelAdapter):
    """Base for adapters that call an external provider."""

    label: str = "Channel"

    def __init__(self, send_timeout: float) -> None:
        if send_timeout <= 0:
            raise ValueError("send_timeout must be positive")
        self._send_timeout = send_timeout

    @property
    def send_timeout(self) -> float:
        return self._send_timeout

    async def send(self, recipient: str, content: RenderedMessage) -> ProviderResponse:
        """Validate, then call the provider within the channel timeout."""
        if not self.validate_recipient(recipient):
            raise InvalidRecipientError(f"Invalid {self.label} recipient: {mask_recipient(recipient)}")

        self.validate_content(content)

        try:
            with Timer() as timer:
                response = await asyncio.wait_for(
                    self._dispatch(recipient, content),
                    timeout=self._send_timeout,
                )
        except asyncio.TimeoutError as e:
            raise SendTimeoutError(self.label, self._send_timeout) from e

        logger.info(
            f"{self.label} message sent",
            channel=self.channel.value,
            message_id=response.message_id,
            recipient=mask_recipient(recipient),
            duration_ms=timer.duration_ms,
            sandbox=response.sandbox,
        )
        return response

    def validate_content(self, content: RenderedMessage) -> None:
        """
        Channel-specific checks on rendered content before sending.

        Raises:
            ProviderError: Classified as validation when the content is unusable
        """
        return None

    @abstractmethod
    async def _dispatch(self, recipient: str, content: RenderedMessage) -> ProviderResponse:
        """Invoke the provider's send primitive."""
        ...
