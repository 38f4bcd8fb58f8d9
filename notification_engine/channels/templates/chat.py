"""Plain-text templates for chat and SMS channels. Asterisks mark bold text on WhatsApp."""

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

STATUS_EMOJIS = {
    "confirmed": "✅",
    "in-progress": "🔄",
    "completed": "✅",
    "cancelled": "❌",
}


def format_amount(amount: float, currency_symbol: str) -> str:
    """Format a money amount with thousands separators, dropping zero paise/cents."""
    if float(amount).is_integer():
        return f"{currency_symbol}{int(amount):,}"
    return f"{currency_symbol}{amount:,.2f}"


class ChatTemplates:
    """Renders notifications as chat message bodies."""

    def __init__(self, business_name: str, currency_symbol: str) -> None:
        self._business = business_name
        self._currency = currency_symbol

    def render(self, notification: Notification, recipient_name: str) -> str:
        match notification:
            case AppointmentConfirmation():
                return self._appointment_confirmation(notification, recipient_name)
            case AppointmentReminder():
                return self._appointment_reminder(notification, recipient_name)
            case StatusUpdate():
                return self._status_update(notification, recipient_name)
            case BidPlaced():
                return self._bid_placed(notification, recipient_name)
            case BidResult():
                return self._bid_result(notification, recipient_name)
            case Promotion():
                return self._promotion(notification, recipient_name)
            case Welcome():
                return self._welcome(recipient_name)
            case BookingRequest():
                return self._booking_request(notification, recipient_name)
            case OtpCode():
                return self._otp(notification)
            case _:
                raise ValueError(f"Unsupported notification: {type(notification).__name__}")

    def _money(self, amount: float) -> str:
        return format_amount(amount, self._currency)

    def _appointment_confirmation(self, data: AppointmentConfirmation, name: str) -> str:
        mechanic = f"\n👨‍🔧 *Mechanic:* {data.mechanic_name}" if data.mechanic_name else ""
        price = f"\n💰 *Total Cost:* {self._money(data.price)}" if data.price else ""
        return (
            "🎉 *Appointment Confirmed!*\n\n"
            f"Hi {name}! Your service appointment has been confirmed.\n\n"
            "📋 *Booking Details:*\n"
            f"🆔 Booking ID: {data.booking_id}\n"
            f"🔧 Service: {data.service_name}\n"
            f"📅 Date & Time: {data.date_time}\n"
            f"📍 Location: {data.location}\n"
            f"🚗 Vehicle: {data.car_details}{mechanic}{price}\n\n"
            "We'll be ready to serve you! If you need to reschedule or have questions, please contact us.\n\n"
            f"*{self._business}* - Your trusted automotive service center"
        )

    def _appointment_reminder(self, data: AppointmentReminder, name: str) -> str:
        return (
            "⏰ *Appointment Reminder*\n\n"
            f"Hi {name}! This is a friendly reminder about your upcoming appointment:\n\n"
            f"🆔 Booking ID: {data.booking_id}\n"
            f"🔧 Service: {data.service_name}\n"
            f"📅 Date & Time: {data.date_time}\n"
            f"📍 Location: {data.location}\n"
            f"🚗 Vehicle: {data.car_details}\n\n"
            "Please arrive 10 minutes before your scheduled time.\n\n"
            f"*{self._business}*"
        )

    def _status_update(self, data: StatusUpdate, name: str) -> str:
        status = data.status_value
        emoji = STATUS_EMOJIS.get(status, "📋")
        extra = f"\n\n{data.additional_info}" if data.additional_info else ""
        return (
            f"{emoji} *Service Update*\n\n"
            f"Hi {name}!\n\n"
            "Your service appointment status has been updated:\n\n"
            f"🆔 *Booking ID:* {data.booking_id}\n"
            f"🔧 *Service:* {data.service_name}\n"
            f"📊 *Status:* {status.upper()}{extra}\n\n"
            f"Thank you for choosing *{self._business}*!"
        )

    def _bid_placed(self, data: BidPlaced, name: str) -> str:
        return (
            "🚗 *New Bid Placed!*\n\n"
            f"Hi {name}!\n\n"
            "Great news! You've successfully placed a bid:\n\n"
            f"🆔 *Bid ID:* {data.bid_id}\n"
            f"🚗 *Vehicle:* {data.car_details}\n"
            f"💰 *Bid Amount:* {self._money(data.bid_amount)}\n\n"
            "We'll notify you about the auction status. Good luck!\n\n"
            f"*{self._business}* - Quality cars, competitive prices"
        )

    def _bid_result(self, data: BidResult, name: str) -> str:
        if data.accepted:
            headline = "🏆 *Bid Accepted!*"
            detail = (
                f"Congratulations! Your bid of {self._money(data.bid_amount)} "
                f"for {data.car_details} has been accepted. Our team will contact you with next steps."
            )
        else:
            headline = "📋 *Bid Update*"
            detail = f"Your bid of {self._money(data.bid_amount)} for {data.car_details} was not accepted."
            if data.highest_bid is not None:
                detail += f" The winning bid was {self._money(data.highest_bid)}."
        return (
            f"{headline}\n\n"
            f"Hi {name}!\n\n"
            f"{detail}\n\n"
            f"🆔 *Bid ID:* {data.bid_id}\n\n"
            f"*{self._business}*"
        )

    def _promotion(self, data: Promotion, name: str) -> str:
        return f"🎁 *{data.title}*\n\nHi {name}!\n\n{data.body}\n\n*{self._business}*"

    def _welcome(self, name: str) -> str:
        return (
            f"🎉 *Welcome to {self._business}!*\n\n"
            f"Hi {name}!\n\n"
            "Thank you for joining us! We're excited to serve your automotive needs.\n\n"
            "🔧 *Our Services:*\n"
            "• Professional car maintenance\n"
            "• Quality spare parts\n"
            "• Expert repairs\n"
            "• Car sales & auctions\n\n"
            "📱 You can now book services, place bids, and track your appointments easily.\n\n"
            "Need help? Just reply to this message!\n\n"
            f"*{self._business}* - Your automotive partner"
        )

    def _booking_request(self, data: BookingRequest, name: str) -> str:
        phone = f"\n📱 *Customer Phone:* {data.customer_phone}" if data.customer_phone else ""
        price = f"\n💰 *Service Cost:* {self._money(data.price)}" if data.price else ""
        return (
            "🔔 *New Service Booking Request!*\n\n"
            f"Hi {name}!\n\n"
            "You have a new service booking request:\n\n"
            "📋 *Booking Details:*\n"
            f"🆔 Booking ID: {data.booking_id}\n"
            f"👤 Customer: {data.customer_name}\n"
            f"🔧 Service: {data.service_name}\n"
            f"📅 Date & Time: {data.date_time}\n"
            f"📍 Location: {data.location}\n"
            f"🚗 Vehicle: {data.car_details}{phone}{price}\n\n"
            "Please prepare for this service appointment. "
            "Contact the customer if you need any additional information.\n\n"
            f"*{self._business}* - Service Excellence Team"
        )

    def _otp(self, data: OtpCode) -> str:
        return (
            f"Your {self._business} verification code is: {data.code}. "
            f"Valid for {data.valid_minutes} minutes."
        )
