from .channel_adapter import ChannelAdapter, ProviderResponse, RenderedMessage
from .credential_source import CredentialSource
from .delivery_audit_log import DeliveryAuditLog
from .user_directory import UserDirectory

__all__ = [
    "ChannelAdapter",
    "CredentialSource",
    "DeliveryAuditLog",
    "ProviderResponse",
    "RenderedMessage",
    "UserDirectory",
]
