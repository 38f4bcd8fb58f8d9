from .base import ProviderChannelAdapter
from .email import EmailAdapter
from .phone import format_e164
from .sandbox import SandboxAdapter, SandboxDelivery
from .sms import SmsAdapter
from .templates import ChatTemplates, EmailTemplates
from .whatsapp import WhatsAppAdapter

__all__ = [
    "ChatTemplates",
    "EmailAdapter",
    "EmailTemplates",
    "ProviderChannelAdapter",
    "SandboxAdapter",
    "SandboxDelivery",
    "SmsAdapter",
    "WhatsAppAdapter",
    "format_e164",
]
