"""Credential sources for provider clients.

Security: provider secrets can be fetched at start-up from Secrets Manager
instead of living in environment variables. Tests inject static credentials.
"""

import json
import time
from collections.abc import Callable

import structlog
from aiobotocore.session import AioSession, get_session
from botocore.exceptions import BotoCoreError, ClientError

from ..config import Settings
from ..domain.exceptions import CredentialsUnavailableError
from ..domain.ports import CredentialSource

logger = structlog.get_logger()

# Cache TTL for secrets (in seconds)
_SECRET_CACHE_TTL = 300  # 5 minutes


class StaticCredentialSource(CredentialSource):
    """Fixed credentials, for tests and local runs."""

    def __init__(self, credentials: dict[str, dict[str, str]]) -> None:
        self._credentials = credentials

    async def get_credentials(self, name: str) -> dict[str, str] | None:
        return self._credentials.get(name)


class SettingsCredentialSource(CredentialSource):
    """Credentials taken from environment settings."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def get_credentials(self, name: str) -> dict[str, str] | None:
        if name == "twilio" and self._settings.twilio_account_sid and self._settings.twilio_auth_token:
            return {
                "account_sid": self._settings.twilio_account_sid,
                "auth_token": self._settings.twilio_auth_token,
            }
        return None


class SecretsManagerCredentialSource(CredentialSource):
    """
    AWS Secrets Manager credentials with caching.

    Each credential set name maps to a secret whose SecretString is a JSON
    object, e.g. {"account_sid": "...", "auth_token": "..."}.
    """

    def __init__(
        self,
        secret_ids: dict[str, str],
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        session: AioSession | None = None,
        ttl_seconds: float = _SECRET_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._secret_ids = secret_ids
        self._region = region
        self._endpoint_url = endpoint_url
        self._session = session or get_session()
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._cache: dict[str, tuple[dict[str, str], float]] = {}

    async def get_credentials(self, name: str) -> dict[str, str] | None:
        """
        Fetch a credential set from Secrets Manager.

        Returns:
            Parsed secret, or None if no secret is configured or it does not exist

        Raises:
            CredentialsUnavailableError: If access is denied or the call fails
        """
        secret_id = self._secret_ids.get(name)
        if not secret_id:
            return None

        cached = self._cache.get(secret_id)
        if cached and self._clock() - cached[1] < self._ttl_seconds:
            logger.debug("Using cached secret", secret_id=secret_id)
            return cached[0]

        try:
            async with self._session.create_client(
                "secretsmanager", region_name=self._region, endpoint_url=self._endpoint_url
            ) as client:
                response = await client.get_secret_value(SecretId=secret_id)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            if error_code == "ResourceNotFoundException":
                logger.warning("Secret not found", secret_id=secret_id)
                return None
            logger.error("Failed to fetch secret", secret_id=secret_id, error_code=error_code)
            raise CredentialsUnavailableError(f"Cannot read secret {secret_id}: {error_code}") from e
        except BotoCoreError as e:
            logger.error("Failed to fetch secret", secret_id=secret_id, error=str(e))
            raise CredentialsUnavailableError(f"Cannot read secret {secret_id}: {e}") from e

        if "SecretString" in response:
            raw = response["SecretString"]
        else:
            raw = response["SecretBinary"].decode("utf-8")
        value = json.loads(raw)

        self._cache[secret_id] = (value, self._clock())
        logger.info("Secret fetched successfully", secret_id=secret_id)
        return value

    def clear_cache(self) -> None:
        self._cache.clear()


class ChainedCredentialSource(CredentialSource):
    """Returns the first credential set found across several sources."""

    def __init__(self, *sources: CredentialSource) -> None:
        self._sources = sources

    async def get_credentials(self, name: str) -> dict[str, str] | None:
        for source in self._sources:
            credentials = await source.get_credentials(name)
            if credentials:
                return credentials
        return None


def default_credential_source(settings: Settings) -> CredentialSource:
    """Secrets Manager when a secret id is configured, then environment settings."""
    env_source = SettingsCredentialSource(settings)
    if not settings.twilio_secret_id:
        return env_source
    secrets = SecretsManagerCredentialSource(
        {"twilio": settings.twilio_secret_id},
        region=settings.aws_region,
        endpoint_url=settings.aws_endpoint_url,
    )
    return ChainedCredentialSource(secrets, env_source)
