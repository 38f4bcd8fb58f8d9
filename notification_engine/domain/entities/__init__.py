from .delivery_record import DeliveryStatus, MessageRecord, MessageUpdate

__all__ = ["DeliveryStatus", "MessageRecord", "MessageUpdate"]
