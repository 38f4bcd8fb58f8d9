"""
Sandbox channel adapter for local development and tests.

Wraps a real adapter so formatting, recipient resolution, validation and
timeout handling are exactly the real ones; only the provider call is
replaced by an in-process record of what would have been sent.
"""

import uuid
from collections import deque
from dataclasses import dataclass

import structlog

from ..domain.messages import Notification
from ..domain.ports import ProviderResponse, RenderedMessage
from ..domain.value_objects import ChannelType, UserContactInfo
from ..infrastructure.logging import mask_recipient
from .base import ProviderChannelAdapter

logger = structlog.get_logger()


@dataclass(frozen=True)
class SandboxDelivery:
    recipient: str
    content: RenderedMessage
    message_id: str


class SandboxAdapter(ProviderChannelAdapter):
    """Records deliveries instead of calling the provider."""

    def __init__(self, inner: ProviderChannelAdapter, failures: list[Exception] | None = None) -> None:
        """
        Args:
            inner: Real adapter whose validation and formatting are reused
            failures: Errors raised by the next sends, in order
        """
        super().__init__(inner.send_timeout)
        self._inner = inner
        self._failures: deque[Exception] = deque(failures or [])
        self.sent: list[SandboxDelivery] = []

    @property
    def label(self) -> str:
        return self._inner.label

    @property
    def inner(self) -> ProviderChannelAdapter:
        return self._inner

    @property
    def channel(self) -> ChannelType:
        return self._inner.channel

    def format(self, notification: Notification, recipient_name: str) -> RenderedMessage:
        return self._inner.format(notification, recipient_name)

    def resolve_recipient(self, contact: UserContactInfo) -> str:
        return self._inner.resolve_recipient(contact)

    def validate_recipient(self, identifier: str) -> bool:
        return self._inner.validate_recipient(identifier)

    def validate_content(self, content: RenderedMessage) -> None:
        self._inner.validate_content(content)

    def fail_next(self, *errors: Exception) -> None:
        """Script provider failures for the next sends."""
        self._failures.extend(errors)

    async def _dispatch(self, recipient: str, content: RenderedMessage) -> ProviderResponse:
        if self._failures:
            raise self._failures.popleft()

        message_id = f"sandbox_{uuid.uuid4().hex}"
        self.sent.append(SandboxDelivery(recipient=recipient, content=content, message_id=message_id))
        logger.info(
            "Sandbox delivery recorded",
            channel=self.channel.value,
            recipient=mask_recipient(recipient),
            message_id=message_id,
        )
        return ProviderResponse(message_id=message_id, status="sandbox", sandbox=True)

    async def aclose(self) -> None:
        await self._inner.aclose()
