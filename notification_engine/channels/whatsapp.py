import httpx
import structlog

from ..domain.exceptions import InvalidRecipientError, ProviderError
from ..domain.messages import Notification
from ..domain.ports import ProviderResponse, RenderedMessage
from ..domain.value_objects import ChannelType, UserContactInfo
from .base import ProviderChannelAdapter
from .phone import format_e164, is_e164
from .templates import ChatTemplates

logger = structlog.get_logger()

WHATSAPP_PREFIX = "whatsapp:"


class WhatsAppAdapter(ProviderChannelAdapter):
    """WhatsApp delivery through the Twilio Messages API."""

    label = "WhatsApp"
    API_BASE_URL = "https://api.twilio.com"
    MAX_BODY_LENGTH = 1600

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        templates: ChatTemplates,
        default_country_code: str = "+91",
        base_url: str = API_BASE_URL,
        send_timeout: float = 15.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            account_sid: Twilio account SID
            auth_token: Twilio auth token
            from_number: Sender in "whatsapp:+<E.164>" form
            templates: Chat message templates
            default_country_code: Used when the contact has no country code
            base_url: Twilio API base URL
            send_timeout: Seconds before a send is abandoned
            http_client: Pre-built client; the adapter owns one otherwise
        """
        super().__init__(send_timeout)
        if not from_number.startswith(WHATSAPP_PREFIX + "+"):
            raise ValueError("from_number must look like whatsapp:+14155238886")
        self._account_sid = account_sid
        self._from_number = from_number
        self._templates = templates
        self._default_country_code = default_country_code
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url,
            auth=(account_sid, auth_token),
            timeout=send_timeout,
        )

    @property
    def channel(self) -> ChannelType:
        return ChannelType.WHATSAPP

    def format(self, notification: Notification, recipient_name: str) -> RenderedMessage:
        return RenderedMessage(body=self._templates.render(notification, recipient_name))

    def resolve_recipient(self, contact: UserContactInfo) -> str:
        if not contact.phone:
            raise InvalidRecipientError("Invalid recipient: no phone number on record")
        country_code = contact.country_code or self._default_country_code
        return WHATSAPP_PREFIX + format_e164(contact.phone, country_code)

    def validate_recipient(self, identifier: str) -> bool:
        if not identifier or not identifier.startswith(WHATSAPP_PREFIX):
            return False
        return is_e164(identifier[len(WHATSAPP_PREFIX):])

    def validate_content(self, content: RenderedMessage) -> None:
        # Twilio codes: 21602 missing body, 21617 body over the concatenation limit
        if not content.body.strip():
            raise ProviderError("Invalid message: body is required", code="21602")
        if len(content.body) > self.MAX_BODY_LENGTH:
            raise ProviderError(
                f"Invalid message: body exceeds {self.MAX_BODY_LENGTH} characters",
                code="21617",
            )

    async def _dispatch(self, recipient: str, content: RenderedMessage) -> ProviderResponse:
        url = f"/2010-04-01/Accounts/{self._account_sid}/Messages.json"
        form = {"From": self._from_number, "To": recipient, "Body": content.body}

        try:
            response = await self._client.post(url, data=form)
        except httpx.TimeoutException as e:
            raise ProviderError(f"WhatsApp request timed out: {e}") from e
        except httpx.TransportError as e:
            raise ProviderError(f"WhatsApp connection error: {e}") from e

        if response.is_error:
            raise self._api_error(response)

        return self._accepted(response)

    @staticmethod
    def _accepted(response: httpx.Response) -> ProviderResponse:
        """Build the acknowledgement for a 2xx response, readable body or not."""
        try:
            data = response.json()
        except ValueError:
            data = None

        if not isinstance(data, dict) or not data.get("sid"):
            logger.warning(
                "WhatsApp message accepted without a readable SID",
                status_code=response.status_code,
            )
            return ProviderResponse(message_id=None, status="accepted")
        return ProviderResponse(message_id=data["sid"], status=data.get("status"))

    @staticmethod
    def _api_error(response: httpx.Response) -> ProviderError:
        """Build a ProviderError from Twilio's JSON error body."""
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        message = payload.get("message") or f"WhatsApp API error: {response.status_code}"
        logger.error(
            "WhatsApp API error",
            status_code=response.status_code,
            error_code=payload.get("code"),
            more_info=payload.get("more_info"),
        )
        return ProviderError(
            message,
            code=payload.get("code"),
            status=response.status_code,
            errors=[payload] if payload else [],
            more_info=payload.get("more_info"),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
