from .channel_sender import ChannelAttempt, ChannelSender
from .notification_orchestrator import NotificationOrchestrator

__all__ = ["ChannelAttempt", "ChannelSender", "NotificationOrchestrator"]
