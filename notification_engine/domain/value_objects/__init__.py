from .channel_type import ChannelType
from .contact import UserContactInfo
from .error_kind import ErrorKind

__all__ = ["ChannelType", "ErrorKind", "UserContactInfo"]
