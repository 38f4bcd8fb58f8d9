from dataclasses import dataclass

from .channel_type import ChannelType


@dataclass(frozen=True)
class UserContactInfo:
    """Contact details of a notification recipient, owned by the user-profile store."""
    email: str | None = None
    phone: str | None = None
    country_code: str | None = None
    preferred_channel: ChannelType = ChannelType.WHATSAPP
    name: str | None = None

    @property
    def display_name(self) -> str:
        return self.name.strip() if self.name and self.name.strip() else "Customer"
