"""
Logical notifications sent to garage customers and service providers.

Each notification is an immutable value object; channel adapters render it
into channel-specific content. The recipient's display name comes from the
contact record so one notification can be broadcast to many recipients.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar


class MessageKind(str, Enum):
    """Notification families, also recorded as the audit message type."""
    APPOINTMENT_CONFIRMATION = "appointment_confirmation"
    APPOINTMENT_REMINDER = "appointment_reminder"
    STATUS_UPDATE = "status_update"
    BID_NOTIFICATION = "bid_notification"
    BID_RESULT = "bid_result"
    PROMOTION = "promotion"
    WELCOME_MESSAGE = "welcome_message"
    BOOKING_REQUEST = "booking_request"
    OTP = "otp"


class AppointmentStatus(str, Enum):
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BidStatus(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


def _require(value: str, field_name: str) -> None:
    if not value or not value.strip():
        raise ValueError(f"{field_name} cannot be empty")


def _require_amount(value: float | None, field_name: str) -> None:
    if value is not None and value < 0:
        raise ValueError(f"{field_name} cannot be negative")


@dataclass(frozen=True)
class Notification:
    """Base for all logical notifications."""

    kind: ClassVar[MessageKind]

    @property
    def reference_id(self) -> str | None:
        """Business identifier (booking or bid) recorded with the delivery."""
        return None


@dataclass(frozen=True)
class AppointmentConfirmation(Notification):
    kind: ClassVar[MessageKind] = MessageKind.APPOINTMENT_CONFIRMATION

    booking_id: str
    service_name: str
    date_time: str
    location: str
    car_details: str
    mechanic_name: str | None = None
    price: float | None = None

    def __post_init__(self) -> None:
        _require(self.booking_id, "Booking ID")
        _require(self.service_name, "Service name")
        _require_amount(self.price, "Price")

    @property
    def reference_id(self) -> str | None:
        return self.booking_id


@dataclass(frozen=True)
class AppointmentReminder(Notification):
    kind: ClassVar[MessageKind] = MessageKind.APPOINTMENT_REMINDER

    booking_id: str
    service_name: str
    date_time: str
    location: str
    car_details: str

    def __post_init__(self) -> None:
        _require(self.booking_id, "Booking ID")
        _require(self.service_name, "Service name")

    @property
    def reference_id(self) -> str | None:
        return self.booking_id


@dataclass(frozen=True)
class StatusUpdate(Notification):
    kind: ClassVar[MessageKind] = MessageKind.STATUS_UPDATE

    booking_id: str
    service_name: str
    status: AppointmentStatus | str
    date_time: str | None = None
    car_details: str | None = None
    mechanic_name: str | None = None
    additional_info: str | None = None

    def __post_init__(self) -> None:
        _require(self.booking_id, "Booking ID")
        _require(str(self.status), "Status")

    @property
    def status_value(self) -> str:
        return self.status.value if isinstance(self.status, AppointmentStatus) else str(self.status)

    @property
    def reference_id(self) -> str | None:
        return self.booking_id


@dataclass(frozen=True)
class BidPlaced(Notification):
    kind: ClassVar[MessageKind] = MessageKind.BID_NOTIFICATION

    bid_id: str
    car_details: str
    bid_amount: float

    def __post_init__(self) -> None:
        _require(self.bid_id, "Bid ID")
        _require_amount(self.bid_amount, "Bid amount")

    @property
    def reference_id(self) -> str | None:
        return self.bid_id


@dataclass(frozen=True)
class BidResult(Notification):
    kind: ClassVar[MessageKind] = MessageKind.BID_RESULT

    bid_id: str
    car_details: str
    bid_amount: float
    status: BidStatus
    highest_bid: float | None = None

    def __post_init__(self) -> None:
        _require(self.bid_id, "Bid ID")
        _require_amount(self.bid_amount, "Bid amount")
        _require_amount(self.highest_bid, "Highest bid")

    @property
    def accepted(self) -> bool:
        return self.status == BidStatus.ACCEPTED

    @property
    def reference_id(self) -> str | None:
        return self.bid_id


@dataclass(frozen=True)
class Promotion(Notification):
    kind: ClassVar[MessageKind] = MessageKind.PROMOTION

    title: str
    body: str
    subject: str | None = None

    def __post_init__(self) -> None:
        _require(self.title, "Promotion title")
        _require(self.body, "Promotion body")


@dataclass(frozen=True)
class Welcome(Notification):
    kind: ClassVar[MessageKind] = MessageKind.WELCOME_MESSAGE


@dataclass(frozen=True)
class BookingRequest(Notification):
    """New booking notice sent to the service provider, not the customer."""

    kind: ClassVar[MessageKind] = MessageKind.BOOKING_REQUEST

    booking_id: str
    customer_name: str
    service_name: str
    date_time: str
    location: str
    car_details: str
    customer_phone: str | None = None
    price: float | None = None

    def __post_init__(self) -> None:
        _require(self.booking_id, "Booking ID")
        _require(self.customer_name, "Customer name")
        _require_amount(self.price, "Price")

    @property
    def reference_id(self) -> str | None:
        return self.booking_id


@dataclass(frozen=True)
class OtpCode(Notification):
    kind: ClassVar[MessageKind] = MessageKind.OTP

    code: str
    valid_minutes: int = 5

    def __post_init__(self) -> None:
        if not re.fullmatch(r"\d{4,8}", self.code or ""):
            raise ValueError("OTP code must be 4 to 8 digits")
        if self.valid_minutes <= 0:
            raise ValueError("OTP validity must be positive")
