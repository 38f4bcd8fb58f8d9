"""
Structured outcomes of delivery attempts.

CommunicationResult describes one channel's attempt sequence,
NotificationResult the outcome of a logical notification across the
fallback chain, and BroadcastSummary the aggregate of a bulk send.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from .value_objects import ChannelType, ErrorKind


@dataclass
class DeliveryMetadata:
    """Diagnostic details attached to a result."""

    provider_message_id: str | None = None
    provider_status: str | None = None
    status_code: int | None = None
    error_code: str | None = None
    circuit_breaker_open: bool = False
    original_error: str | None = None
    fallback_attempted: bool = False
    sandbox: bool = False
    channel_errors: dict[ChannelType, str] = field(default_factory=dict)
    attempts_by_channel: dict[ChannelType, int] = field(default_factory=dict)


@dataclass
class CommunicationResult:
    """Outcome of one delivery attempt sequence on a single channel."""

    channel: ChannelType
    success: bool
    message: str
    error_kind: ErrorKind | None = None
    retryable: bool = False
    retry_count: int = 0
    total_attempts: int = 0
    metadata: DeliveryMetadata = field(default_factory=DeliveryMetadata)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if self.success and self.error_kind is not None:
            raise ValueError("A successful result cannot carry an error kind")
        if not self.success and self.error_kind is None:
            raise ValueError("A failed result requires an error kind")
        if self.success and self.retryable:
            raise ValueError("A successful result cannot be retryable")
        if self.retry_count < 0 or self.total_attempts < 0:
            raise ValueError("Attempt counters cannot be negative")
        if self.success and self.total_attempts < 1:
            raise ValueError("A successful result requires at least one attempt")
        # Short-circuited failures never reached the provider and report zero attempts.
        if self.total_attempts > 0 and self.total_attempts < self.retry_count + 1:
            raise ValueError("total_attempts must be at least retry_count + 1")

    @classmethod
    def succeeded(
        cls,
        channel: ChannelType,
        message: str,
        attempts: int,
        metadata: DeliveryMetadata | None = None,
    ) -> "CommunicationResult":
        return cls(
            channel=channel,
            success=True,
            message=message,
            retry_count=max(attempts - 1, 0),
            total_attempts=attempts,
            metadata=metadata or DeliveryMetadata(),
        )

    @classmethod
    def failed(
        cls,
        channel: ChannelType,
        message: str,
        error_kind: ErrorKind,
        retryable: bool,
        attempts: int,
        metadata: DeliveryMetadata | None = None,
    ) -> "CommunicationResult":
        return cls(
            channel=channel,
            success=False,
            message=message,
            error_kind=error_kind,
            retryable=retryable,
            retry_count=max(attempts - 1, 0),
            total_attempts=attempts,
            metadata=metadata or DeliveryMetadata(),
        )


@dataclass
class NotificationResult(CommunicationResult):
    """Outcome of a logical notification after preferred and fallback channels."""

    channel_used: ChannelType | None = None
    fallback_used: ChannelType | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.success and self.channel_used is None:
            raise ValueError("A successful notification must name the channel used")
        if not self.success and self.channel_used is not None:
            raise ValueError("A failed notification has no channel used")
        if self.fallback_used is not None and self.fallback_used == self.channel_used:
            raise ValueError("The fallback channel cannot be the channel used")


@dataclass
class BroadcastSummary:
    """Aggregate outcome of a bulk send, results in recipient order."""

    total: int
    successful: int
    failed: int
    results: list[NotificationResult] = field(default_factory=list)
