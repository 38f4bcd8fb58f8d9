from abc import ABC, abstractmethod

from ..value_objects import UserContactInfo


class UserDirectory(ABC):
    """Port to the user-profile store for contact lookups."""

    @abstractmethod
    async def get_contact_info(self, user_id: str) -> UserContactInfo | None:
        """Return the user's contact details, or None if the user is unknown."""
        ...
