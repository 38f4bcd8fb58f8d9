from .channel_adapter_factory import ChannelAdapterFactory
from .delivery_audit_log_impl import SqlAlchemyDeliveryAuditLog
from .in_memory import InMemoryDeliveryAuditLog, InMemoryUserDirectory

__all__ = [
    "ChannelAdapterFactory",
    "InMemoryDeliveryAuditLog",
    "InMemoryUserDirectory",
    "SqlAlchemyDeliveryAuditLog",
]
