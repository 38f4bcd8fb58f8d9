from abc import ABC, abstractmethod


class CredentialSource(ABC):
    """
    Port for provider credentials.

    Lets the engine fetch secrets at start-up without knowing whether they
    come from the environment, a secrets store, or a test fixture.
    """

    @abstractmethod
    async def get_credentials(self, name: str) -> dict[str, str] | None:
        """
        Return the named credential set, or None if it is not configured.

        Args:
            name: Credential set name, e.g. "twilio"

        Raises:
            CredentialsUnavailableError: If the source is configured but unreachable
        """
        ...
