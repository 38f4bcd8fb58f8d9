"""
Factory for channel adapter instances.

Builds the real provider adapter for each channel and wraps it in a
SandboxAdapter when sandbox mode is on or the provider credentials are
missing, so local runs never reach a provider by accident.
"""

import httpx
import structlog
from aiobotocore.session import AioSession

from ...channels import (
    ChatTemplates,
    EmailAdapter,
    EmailTemplates,
    ProviderChannelAdapter,
    SandboxAdapter,
    SmsAdapter,
    WhatsAppAdapter,
)
from ...config import Settings
from ...domain.ports import CredentialSource
from ...domain.value_objects import ChannelType

logger = structlog.get_logger()

SANDBOX_SENDER = "no-reply@sandbox.example.com"


class ChannelAdapterFactory:
    """
    Factory for channel adapters.

    Encapsulates provider configuration and the sandbox decision.
    """

    def __init__(
        self,
        settings: Settings,
        credentials: CredentialSource,
        http_client: httpx.AsyncClient | None = None,
        aws_session: AioSession | None = None,
    ) -> None:
        self._settings = settings
        self._credentials = credentials
        self._http_client = http_client
        self._aws_session = aws_session
        self._chat_templates = ChatTemplates(settings.business_name, settings.currency_symbol)
        self._email_templates = EmailTemplates(settings.business_name, settings.currency_symbol)

    async def create(self, channel: ChannelType) -> ProviderChannelAdapter:
        """
        Create the adapter for a channel.

        Args:
            channel: The channel to build an adapter for

        Returns:
            Real adapter, or a SandboxAdapter around it

        Raises:
            ValueError: If the channel is not supported
        """
        settings = self._settings
        sandbox_reason = "configured" if settings.notification_sandbox else None

        match channel:
            case ChannelType.WHATSAPP:
                credentials = await self._credentials.get_credentials("twilio")
                if not credentials and sandbox_reason is None:
                    sandbox_reason = "missing Twilio credentials"
                credentials = credentials or {}
                adapter = WhatsAppAdapter(
                    account_sid=credentials.get("account_sid", "sandbox"),
                    auth_token=credentials.get("auth_token", ""),
                    from_number=settings.whatsapp_from_number,
                    templates=self._chat_templates,
                    default_country_code=settings.default_country_code,
                    base_url=settings.twilio_api_base_url,
                    send_timeout=settings.whatsapp_send_timeout,
                    http_client=self._http_client,
                )
            case ChannelType.EMAIL:
                if not settings.email_from_address and sandbox_reason is None:
                    sandbox_reason = "missing sender address"
                adapter = EmailAdapter(
                    sender_email=settings.email_from_address or SANDBOX_SENDER,
                    templates=self._email_templates,
                    region=settings.aws_region,
                    endpoint_url=settings.aws_endpoint_url,
                    send_timeout=settings.email_send_timeout,
                    session=self._aws_session,
                )
            case ChannelType.SMS:
                adapter = SmsAdapter(
                    templates=self._chat_templates,
                    sender_id=settings.sms_sender_id,
                    default_country_code=settings.default_country_code,
                    region=settings.aws_region,
                    endpoint_url=settings.aws_endpoint_url,
                    send_timeout=settings.sms_send_timeout,
                    session=self._aws_session,
                )
            case _:
                raise ValueError(f"Unsupported channel type: {channel}")

        if sandbox_reason:
            logger.warning("Using sandbox adapter", channel=channel.value, reason=sandbox_reason)
            return SandboxAdapter(adapter)
        return adapter

    async def create_all(self) -> dict[ChannelType, ProviderChannelAdapter]:
        """Create adapters for every supported channel."""
        return {channel: await self.create(channel) for channel in ChannelType}
