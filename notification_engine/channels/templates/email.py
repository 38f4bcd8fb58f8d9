"""Email templates: subject, plain-text body and HTML body for each notification."""

from html import escape

from ...domain.messages import (
    AppointmentConfirmation,
    AppointmentReminder,
    BidPlaced,
    BidResult,
    BookingRequest,
    Notification,
    OtpCode,
    Promotion,
    StatusUpdate,
    Welcome,
)
from ...domain.ports import RenderedMessage
from .chat import format_amount

STATUS_MESSAGES = {
    "confirmed": "Your appointment has been confirmed",
    "in-progress": "Your vehicle service is now in progress",
    "completed": "Your vehicle service has been completed",
    "cancelled": "Your appointment has been cancelled",
}

_WRAPPER = '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">{content}</div>'
_PANEL = '<div style="background-color: #f8f9fa; padding: 20px; border-radius: 8px; margin: 20px 0;">{content}</div>'


class EmailTemplates:
    """Renders notifications as email content."""

    def __init__(self, business_name: str, currency_symbol: str) -> None:
        self._business = business_name
        self._currency = currency_symbol

    def render(self, notification: Notification, recipient_name: str) -> RenderedMessage:
        match notification:
            case AppointmentConfirmation():
                subject, intro, rows, outro = self._appointment_confirmation(notification)
            case AppointmentReminder():
                subject, intro, rows, outro = self._appointment_reminder(notification)
            case StatusUpdate():
                subject, intro, rows, outro = self._status_update(notification)
            case BidPlaced():
                subject, intro, rows, outro = self._bid_placed(notification)
            case BidResult():
                subject, intro, rows, outro = self._bid_result(notification)
            case Promotion():
                subject = notification.subject or notification.title
                intro, rows, outro = notification.body, [], ""
            case Welcome():
                subject = f"Welcome to {self._business}!"
                intro = "Thank you for joining us! We're excited to serve your automotive needs."
                rows = []
                outro = "You can now book services, place bids, and track your appointments easily."
            case BookingRequest():
                subject, intro, rows, outro = self._booking_request(notification)
            case OtpCode():
                subject = f"Your {self._business} verification code"
                intro = f"Your verification code is: {notification.code}"
                rows = []
                outro = f"This code is valid for {notification.valid_minutes} minutes. Do not share it with anyone."
            case _:
                raise ValueError(f"Unsupported notification: {type(notification).__name__}")

        return RenderedMessage(
            subject=subject,
            body=self._text(recipient_name, intro, rows, outro),
            html=self._html(subject, recipient_name, intro, rows, outro),
        )

    def _money(self, amount: float) -> str:
        return format_amount(amount, self._currency)

    def _text(self, name: str, intro: str, rows: list[tuple[str, str]], outro: str) -> str:
        lines = [f"Hello {name},", "", intro]
        if rows:
            lines.append("")
            lines.extend(f"{label}: {value}" for label, value in rows)
        if outro:
            lines.extend(["", outro])
        lines.extend(["", "Best regards,", f"{self._business} Team"])
        return "\n".join(lines)

    def _html(self, title: str, name: str, intro: str, rows: list[tuple[str, str]], outro: str) -> str:
        parts = [
            f'<h2 style="color: #2c3e50;">{escape(title)}</h2>',
            f"<p>Hello {escape(name)},</p>",
            f"<p>{escape(intro)}</p>",
        ]
        if rows:
            details = "".join(
                f"<p><strong>{escape(label)}:</strong> {escape(value)}</p>" for label, value in rows
            )
            parts.append(_PANEL.format(content=details))
        if outro:
            parts.append(f"<p>{escape(outro)}</p>")
        parts.append(
            f'<p style="margin-top: 30px;">Best regards,<br><strong>{escape(self._business)} Team</strong></p>'
        )
        return _WRAPPER.format(content="".join(parts))

    def _appointment_confirmation(self, data: AppointmentConfirmation):
        rows = [
            ("Booking ID", data.booking_id),
            ("Service", data.service_name),
            ("Date & Time", data.date_time),
            ("Location", data.location),
            ("Vehicle", data.car_details),
        ]
        if data.mechanic_name:
            rows.append(("Mechanic", data.mechanic_name))
        if data.price:
            rows.append(("Total Cost", self._money(data.price)))
        return (
            f"Appointment Confirmed - {data.service_name}",
            "Your service appointment has been confirmed.",
            rows,
            "If you need to reschedule or have questions, please contact us.",
        )

    def _appointment_reminder(self, data: AppointmentReminder):
        return (
            f"Reminder: Upcoming Appointment - {data.service_name}",
            "This is a friendly reminder about your upcoming appointment:",
            [
                ("Service", data.service_name),
                ("Date & Time", data.date_time),
                ("Location", data.location),
                ("Vehicle", data.car_details),
            ],
            "Please arrive 10 minutes before your scheduled time. "
            "If you need to reschedule or cancel, please contact us immediately.",
        )

    def _status_update(self, data: StatusUpdate):
        status = data.status_value
        rows = [("Booking ID", data.booking_id), ("Service", data.service_name)]
        if data.date_time:
            rows.append(("Date & Time", data.date_time))
        rows.append(("Status", status.upper()))
        if data.car_details:
            rows.append(("Vehicle", data.car_details))
        if data.mechanic_name:
            rows.append(("Mechanic", data.mechanic_name))
        outro = data.additional_info or ""
        if status == "completed":
            outro = (outro + " " if outro else "") + f"Thank you for choosing {self._business}!"
        return (
            f"Appointment Update - {data.service_name}",
            STATUS_MESSAGES.get(status, f"Appointment status updated to: {status}") + ".",
            rows,
            outro,
        )

    def _bid_placed(self, data: BidPlaced):
        return (
            f"Bid Placed - {data.car_details}",
            "You've successfully placed a bid:",
            [
                ("Bid ID", data.bid_id),
                ("Vehicle", data.car_details),
                ("Bid Amount", self._money(data.bid_amount)),
            ],
            "We'll notify you about the auction status.",
        )

    def _bid_result(self, data: BidResult):
        rows = [
            ("Bid ID", data.bid_id),
            ("Vehicle", data.car_details),
            ("Your Bid", self._money(data.bid_amount)),
        ]
        if data.accepted:
            return (
                f"Bid Accepted - {data.car_details}",
                "Congratulations! Your bid has been accepted.",
                rows,
                "Our team will contact you with the next steps.",
            )
        if data.highest_bid is not None:
            rows.append(("Winning Bid", self._money(data.highest_bid)))
        return (
            f"Bid Update - {data.car_details}",
            "Unfortunately your bid was not accepted.",
            rows,
            "Visit our auction page to explore other vehicles.",
        )

    def _booking_request(self, data: BookingRequest):
        rows = [
            ("Booking ID", data.booking_id),
            ("Customer", data.customer_name),
            ("Service", data.service_name),
            ("Date & Time", data.date_time),
            ("Location", data.location),
            ("Vehicle", data.car_details),
        ]
        if data.customer_phone:
            rows.append(("Customer Phone", data.customer_phone))
        if data.price:
            rows.append(("Service Cost", self._money(data.price)))
        return (
            f"New Booking Request - {data.service_name}",
            "You have a new service booking request.",
            rows,
            "Please prepare for this service appointment.",
        )
