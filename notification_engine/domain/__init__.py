from .entities import DeliveryStatus, MessageRecord, MessageUpdate
from .exceptions import (
    CircuitOpenError,
    CredentialsUnavailableError,
    InvalidRecipientError,
    NotificationError,
    PhoneNumberError,
    ProviderError,
    SendTimeoutError,
)
from .messages import (
    AppointmentConfirmation,
    AppointmentReminder,
    AppointmentStatus,
    BidPlaced,
    BidResult,
    BidStatus,
    BookingRequest,
    MessageKind,
    Notification,
    OtpCode,
    Promotion,
    StatusUpdate,
    Welcome,
)
from .results import BroadcastSummary, CommunicationResult, DeliveryMetadata, NotificationResult
from .value_objects import ChannelType, ErrorKind, UserContactInfo

__all__ = [
    "AppointmentConfirmation",
    "AppointmentReminder",
    "AppointmentStatus",
    "BidPlaced",
    "BidResult",
    "BidStatus",
    "BookingRequest",
    "BroadcastSummary",
    "ChannelType",
    "CircuitOpenError",
    "CommunicationResult",
    "CredentialsUnavailableError",
    "DeliveryMetadata",
    "DeliveryStatus",
    "ErrorKind",
    "InvalidRecipientError",
    "MessageKind",
    "MessageRecord",
    "MessageUpdate",
    "Notification",
    "NotificationError",
    "NotificationResult",
    "OtpCode",
    "PhoneNumberError",
    "Promotion",
    "ProviderError",
    "SendTimeoutError",
    "StatusUpdate",
    "UserContactInfo",
    "Welcome",
]
