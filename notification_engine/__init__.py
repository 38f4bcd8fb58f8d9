"""Resilient outbound notification delivery over WhatsApp, email and SMS."""

from .config import Settings
from .domain import (
    BroadcastSummary,
    ChannelType,
    CommunicationResult,
    ErrorKind,
    NotificationResult,
    UserContactInfo,
)
from .engine import NotificationEngine

__all__ = [
    "BroadcastSummary",
    "ChannelType",
    "CommunicationResult",
    "ErrorKind",
    "NotificationEngine",
    "NotificationResult",
    "Settings",
    "UserContactInfo",
]
