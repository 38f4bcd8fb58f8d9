"""
Outbound port for channel delivery.

The application layer formats, validates and sends through this interface;
provider-specific adapters in the channels package implement it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..messages import Notification
from ..value_objects import ChannelType, UserContactInfo


@dataclass(frozen=True)
class RenderedMessage:
    """Channel-ready content. Email uses subject and html as well as body."""

    body: str
    subject: str | None = None
    html: str | None = None


@dataclass(frozen=True)
class ProviderResponse:
    """Acknowledgement returned by the provider for an accepted message."""

    message_id: str | None
    status: str | None = None
    sandbox: bool = False


class ChannelAdapter(ABC):
    """
    Outbound port for sending a notification through one channel.

    Adapters raise ProviderError for provider failures and
    InvalidRecipientError for identifiers the channel cannot address.
    """

    @property
    @abstractmethod
    def channel(self) -> ChannelType:
        """Return the channel this adapter handles."""
        ...

    @abstractmethod
    def format(self, notification: Notification, recipient_name: str) -> RenderedMessage:
        """Render a logical notification for this channel."""
        ...

    @abstractmethod
    def resolve_recipient(self, contact: UserContactInfo) -> str:
        """
        Derive the channel address from a contact record.

        Raises:
            InvalidRecipientError: If the contact lacks a usable address
        """
        ...

    @abstractmethod
    def validate_recipient(self, identifier: str) -> bool:
        """Return True if the identifier is addressable on this channel."""
        ...

    @abstractmethod
    async def send(self, recipient: str, content: RenderedMessage) -> ProviderResponse:
        """
        Send rendered content to a resolved recipient.

        Args:
            recipient: Address returned by resolve_recipient
            content: Rendered content from format

        Returns:
            ProviderResponse with the provider's message id

        Raises:
            ProviderError: If the provider rejects or fails the send
            InvalidRecipientError: If the recipient is not addressable
        """
        ...

    async def aclose(self) -> None:
        """Release provider clients held by the adapter."""
        return None
