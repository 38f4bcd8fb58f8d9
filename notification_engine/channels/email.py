import re

import structlog
from aiobotocore.session import AioSession, get_session
from botocore.exceptions import BotoCoreError, ClientError

from ..domain.exceptions import InvalidRecipientError, ProviderError
from ..domain.messages import Notification
from ..domain.ports import ProviderResponse, RenderedMessage
from ..domain.value_objects import ChannelType, UserContactInfo
from .aws import (
    accepted_response,
    client_error_details,
    provider_error_from_botocore,
    provider_error_from_client_error,
)
from .base import ProviderChannelAdapter
from .templates import EmailTemplates

logger = structlog.get_logger()

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_VERIFICATION_MARKERS = ("not verified", "verification", "failed the check", "verify the")

IDENTITY_VERIFICATION_MESSAGE = (
    "Email sender identity is not verified: {sender} cannot send mail yet. "
    "To fix this: "
    "1) Open the Amazon SES console in region {region}. "
    "2) Under Verified identities, verify {sender} or its domain and confirm the verification email. "
    "3) If the account is still in the SES sandbox, also verify the recipient or request production access. "
    "4) Set EMAIL_FROM_ADDRESS to the verified identity and retry."
)


def is_valid_email(address: str | None) -> bool:
    return bool(address and EMAIL_PATTERN.match(address))


def is_identity_verification_failure(status: int | None, code: str | None, message: str) -> bool:
    """True for a sender-identity rejection, as opposed to a generic forbidden."""
    if status != 403 and code != "MessageRejected":
        return False
    text = message.lower()
    return any(marker in text for marker in _VERIFICATION_MARKERS)


class EmailAdapter(ProviderChannelAdapter):
    """AWS SES email adapter."""

    label = "Email"

    def __init__(
        self,
        sender_email: str,
        templates: EmailTemplates,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        send_timeout: float = 15.0,
        session: AioSession | None = None,
    ) -> None:
        super().__init__(send_timeout)
        self._sender_email = sender_email
        self._templates = templates
        self._region = region
        self._endpoint_url = endpoint_url
        self._session = session or get_session()

    @property
    def channel(self) -> ChannelType:
        return ChannelType.EMAIL

    def format(self, notification: Notification, recipient_name: str) -> RenderedMessage:
        return self._templates.render(notification, recipient_name)

    def resolve_recipient(self, contact: UserContactInfo) -> str:
        if not contact.email or not contact.email.strip():
            raise InvalidRecipientError("Invalid recipient: no email address on record")
        return contact.email.strip()

    def validate_recipient(self, identifier: str) -> bool:
        return is_valid_email(identifier)

    def validate_content(self, content: RenderedMessage) -> None:
        if not is_valid_email(self._sender_email):
            raise ProviderError("Invalid sender email format")
        if not content.subject:
            raise ProviderError("Invalid email parameters: subject is required")

    async def _dispatch(self, recipient: str, content: RenderedMessage) -> ProviderResponse:
        body = {"Text": {"Data": content.body, "Charset": "UTF-8"}}
        if content.html:
            body["Html"] = {"Data": content.html, "Charset": "UTF-8"}

        try:
            async with self._session.create_client(
                "ses", region_name=self._region, endpoint_url=self._endpoint_url
            ) as client:
                response = await client.send_email(
                    Source=self._sender_email,
                    Destination={"ToAddresses": [recipient]},
                    Message={
                        "Subject": {"Data": content.subject, "Charset": "UTF-8"},
                        "Body": body,
                    },
                )
        except ClientError as e:
            raise self._client_error(e) from e
        except BotoCoreError as e:
            raise provider_error_from_botocore(e, self.label) from e

        return accepted_response(response, self.label)

    def _client_error(self, error: ClientError) -> ProviderError:
        code, message, status = client_error_details(error)
        if is_identity_verification_failure(status, code, message):
            logger.error(
                "Email sender identity not verified",
                sender=self._sender_email,
                region=self._region,
                error_code=code,
            )
            details = error.response.get("Error", {})
            return ProviderError(
                IDENTITY_VERIFICATION_MESSAGE.format(sender=self._sender_email, region=self._region),
                code=code,
                status=status,
                errors=[details] if details else [],
            )
        return provider_error_from_client_error(error, self.label)
