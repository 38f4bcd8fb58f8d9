from enum import Enum


class ChannelType(str, Enum):
    """Supported delivery channels."""
    WHATSAPP = "whatsapp"
    EMAIL = "email"
    SMS = "sms"
