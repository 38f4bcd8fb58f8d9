from typing import Any


class NotificationError(Exception):
    """Base class for notification delivery errors."""

    pass


class ProviderError(NotificationError):
    """Raised by a channel adapter when the external provider rejects or fails a send.

    Carries the provider's own error code, the HTTP status and any structured
    error entries so the classifier can decide the error kind.
    """

    def __init__(
        self,
        message: str,
        code: str | int | None = None,
        status: int | None = None,
        errors: list[dict[str, Any]] | None = None,
        more_info: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = str(code) if code is not None and code != "" else None
        self.status = status
        self.errors = errors or []
        self.more_info = more_info


class SendTimeoutError(ProviderError):
    """Raised when a provider call does not complete within the channel timeout."""

    def __init__(self, channel_label: str, timeout_seconds: float) -> None:
        seconds = int(timeout_seconds) if float(timeout_seconds).is_integer() else timeout_seconds
        super().__init__(f"{channel_label} send timeout after {seconds} seconds")
        self.timeout_seconds = timeout_seconds


class InvalidRecipientError(NotificationError):
    """Raised when a recipient identifier cannot be used on a channel."""

    pass


class PhoneNumberError(InvalidRecipientError):
    """Raised when a phone number cannot be normalized."""

    pass


class CircuitOpenError(NotificationError):
    """Raised (or reported) when a channel's circuit breaker rejects an attempt."""

    def __init__(self, channel: str, state: str) -> None:
        super().__init__(f"Circuit breaker for {channel} is {state}, service unavailable")
        self.channel = channel
        self.state = state


class CredentialsUnavailableError(NotificationError):
    """Raised when provider credentials cannot be resolved."""

    pass
