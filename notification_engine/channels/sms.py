from aiobotocore.session import AioSession, get_session
from botocore.exceptions import BotoCoreError, ClientError

from ..domain.exceptions import InvalidRecipientError, ProviderError
from ..domain.messages import Notification
from ..domain.ports import ProviderResponse, RenderedMessage
from ..domain.value_objects import ChannelType, UserContactInfo
from .aws import accepted_response, provider_error_from_botocore, provider_error_from_client_error
from .base import ProviderChannelAdapter
from .phone import format_e164, is_e164
from .templates import ChatTemplates


class SmsAdapter(ProviderChannelAdapter):
    """AWS SNS SMS adapter."""

    label = "SMS"
    MAX_BODY_LENGTH = 1600

    def __init__(
        self,
        templates: ChatTemplates,
        sender_id: str = "",
        default_country_code: str = "+91",
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        send_timeout: float = 15.0,
        session: AioSession | None = None,
    ) -> None:
        super().__init__(send_timeout)
        self._templates = templates
        self._sender_id = sender_id
        self._default_country_code = default_country_code
        self._region = region
        self._endpoint_url = endpoint_url
        self._session = session or get_session()

    @property
    def channel(self) -> ChannelType:
        return ChannelType.SMS

    def format(self, notification: Notification, recipient_name: str) -> RenderedMessage:
        # SMS clients do not render WhatsApp emphasis markers
        return RenderedMessage(body=self._templates.render(notification, recipient_name).replace("*", ""))

    def resolve_recipient(self, contact: UserContactInfo) -> str:
        if not contact.phone:
            raise InvalidRecipientError("Invalid recipient: no phone number on record")
        return format_e164(contact.phone, contact.country_code or self._default_country_code)

    def validate_recipient(self, identifier: str) -> bool:
        return is_e164(identifier)

    def validate_content(self, content: RenderedMessage) -> None:
        if not content.body.strip():
            raise ProviderError("Invalid message: body is required")
        if len(content.body) > self.MAX_BODY_LENGTH:
            raise ProviderError(f"Invalid message: body exceeds {self.MAX_BODY_LENGTH} characters")

    async def _dispatch(self, recipient: str, content: RenderedMessage) -> ProviderResponse:
        params = {
            "PhoneNumber": recipient,
            "Message": content.body,
            "MessageAttributes": {
                "AWS.SNS.SMS.SMSType": {"DataType": "String", "StringValue": "Transactional"},
            },
        }
        if self._sender_id:
            params["MessageAttributes"]["AWS.SNS.SMS.SenderID"] = {
                "DataType": "String",
                "StringValue": self._sender_id,
            }

        try:
            async with self._session.create_client(
                "sns", region_name=self._region, endpoint_url=self._endpoint_url
            ) as client:
                response = await client.publish(**params)
        except ClientError as e:
            raise provider_error_from_client_error(e, self.label) from e
        except BotoCoreError as e:
            raise provider_error_from_botocore(e, self.label) from e

        return accepted_response(response, self.label)
