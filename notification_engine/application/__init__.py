from .services import ChannelAttempt, ChannelSender, NotificationOrchestrator

__all__ = ["ChannelAttempt", "ChannelSender", "NotificationOrchestrator"]
