import asyncio
from urllib.parse import parse_qs
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, NoCredentialsError

from notification_engine.channels import EmailAdapter, SmsAdapter, WhatsAppAdapter
from notification_engine.domain.exceptions import InvalidRecipientError, ProviderError, SendTimeoutError
from notification_engine.domain.messages import OtpCode, Welcome
from notification_engine.domain.ports import RenderedMessage
from notification_engine.domain.value_objects import ChannelType, ErrorKind, UserContactInfo
from notification_engine.resilience import classify_exception


def aws_session(client) -> MagicMock:
    session = MagicMock()
    session.create_client.return_value.__aenter__.return_value = client
    return session


def client_error(code: str, message: str, status: int, operation: str = "SendEmail") -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": message}, "ResponseMetadata": {"HTTPStatusCode": status}},
        operation,
    )


class TestWhatsAppAdapter:
    @pytest.fixture
    def requests(self) -> list[httpx.Request]:
        return []

    def make_adapter(self, handler, chat_templates) -> WhatsAppAdapter:
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(handler),
            base_url="https://api.twilio.com",
        )
        return WhatsAppAdapter(
            account_sid="AC123",
            auth_token="token",
            from_number="whatsapp:+14155238886",
            templates=chat_templates,
            http_client=client,
        )

    def test_resolve_recipient(self, chat_templates, full_contact) -> None:
        adapter = self.make_adapter(lambda request: httpx.Response(500), chat_templates)
        assert adapter.channel == ChannelType.WHATSAPP
        assert adapter.resolve_recipient(full_contact) == "whatsapp:+919876543210"

    def test_resolve_recipient_uses_default_country_code(self, chat_templates) -> None:
        adapter = self.make_adapter(lambda request: httpx.Response(500), chat_templates)
        contact = UserContactInfo(phone="09876543210")
        assert adapter.resolve_recipient(contact) == "whatsapp:+919876543210"

    def test_resolve_recipient_without_phone(self, chat_templates) -> None:
        adapter = self.make_adapter(lambda request: httpx.Response(500), chat_templates)
        with pytest.raises(InvalidRecipientError):
            adapter.resolve_recipient(UserContactInfo(email="ravi@example.com"))

    def test_validate_recipient(self, chat_templates) -> None:
        adapter = self.make_adapter(lambda request: httpx.Response(500), chat_templates)
        assert adapter.validate_recipient("whatsapp:+919876543210") is True
        assert adapter.validate_recipient("+919876543210") is False
        assert adapter.validate_recipient("whatsapp:9876543210") is False

    def test_rejects_bad_sender(self, chat_templates) -> None:
        with pytest.raises(ValueError):
            WhatsAppAdapter("AC123", "token", "+14155238886", chat_templates)

    @pytest.mark.asyncio
    async def test_send_success(self, chat_templates, requests) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(201, json={"sid": "SM123", "status": "queued"})

        adapter = self.make_adapter(handler, chat_templates)
        content = adapter.format(OtpCode(code="4821"), "Ravi")

        response = await adapter.send("whatsapp:+919876543210", content)

        assert response.message_id == "SM123"
        assert response.status == "queued"
        assert response.sandbox is False
        assert requests[0].url.path == "/2010-04-01/Accounts/AC123/Messages.json"
        form = parse_qs(requests[0].content.decode())
        assert form["From"] == ["whatsapp:+14155238886"]
        assert form["To"] == ["whatsapp:+919876543210"]
        assert "4821" in form["Body"][0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "accepted",
        [
            httpx.Response(201, text="<html>accepted</html>"),
            httpx.Response(201, json={"status": "queued"}),
            httpx.Response(201, json=["SM123"]),
        ],
    )
    async def test_accepted_with_unreadable_body_is_sent_once(
        self, chat_templates, requests, make_sender, full_contact, accepted
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return accepted

        sender = make_sender(self.make_adapter(handler, chat_templates), max_retries=3)

        attempt = await sender.deliver(full_contact, Welcome())

        assert len(requests) == 1
        assert attempt.result.success is True
        assert attempt.result.total_attempts == 1
        assert attempt.result.metadata.provider_message_id is None
        assert attempt.result.metadata.provider_status == "accepted"

    @pytest.mark.asyncio
    async def test_send_api_error(self, chat_templates) -> None:
        """Twilio's JSON error body becomes a classified ProviderError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400,
                json={
                    "code": 21211,
                    "message": "The 'To' number whatsapp:+910000000000 is not a valid phone number.",
                    "more_info": "https://www.twilio.com/docs/errors/21211",
                    "status": 400,
                },
            )

        adapter = self.make_adapter(handler, chat_templates)

        with pytest.raises(ProviderError) as exc_info:
            await adapter.send("whatsapp:+919876543210", RenderedMessage(body="Hello"))

        error = exc_info.value
        assert error.code == "21211"
        assert error.status == 400
        assert error.more_info == "https://www.twilio.com/docs/errors/21211"
        assert classify_exception(error).kind == ErrorKind.VALIDATION

    @pytest.mark.asyncio
    async def test_send_server_error_without_json(self, chat_templates) -> None:
        adapter = self.make_adapter(lambda request: httpx.Response(503, text="Service Unavailable"), chat_templates)

        with pytest.raises(ProviderError) as exc_info:
            await adapter.send("whatsapp:+919876543210", RenderedMessage(body="Hello"))

        assert str(exc_info.value) == "WhatsApp API error: 503"
        classification = classify_exception(exc_info.value)
        assert classification.kind == ErrorKind.SERVICE_UNAVAILABLE
        assert classification.retryable is True

    @pytest.mark.asyncio
    async def test_send_transport_error(self, chat_templates) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        adapter = self.make_adapter(handler, chat_templates)

        with pytest.raises(ProviderError) as exc_info:
            await adapter.send("whatsapp:+919876543210", RenderedMessage(body="Hello"))

        assert classify_exception(exc_info.value).kind == ErrorKind.NETWORK

    @pytest.mark.asyncio
    async def test_send_invalid_recipient(self, chat_templates, requests) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(201, json={"sid": "SM1"})

        adapter = self.make_adapter(handler, chat_templates)

        with pytest.raises(InvalidRecipientError):
            await adapter.send("whatsapp:12345", RenderedMessage(body="Hello"))
        assert requests == []

    @pytest.mark.asyncio
    async def test_send_empty_body(self, chat_templates) -> None:
        adapter = self.make_adapter(lambda request: httpx.Response(201, json={"sid": "SM1"}), chat_templates)

        with pytest.raises(ProviderError) as exc_info:
            await adapter.send("whatsapp:+919876543210", RenderedMessage(body="  "))

        assert exc_info.value.code == "21602"

    @pytest.mark.asyncio
    async def test_send_body_too_long(self, chat_templates) -> None:
        adapter = self.make_adapter(lambda request: httpx.Response(201, json={"sid": "SM1"}), chat_templates)

        with pytest.raises(ProviderError) as exc_info:
            await adapter.send("whatsapp:+919876543210", RenderedMessage(body="x" * 1601))

        assert exc_info.value.code == "21617"

    @pytest.mark.asyncio
    async def test_shared_client_is_not_closed(self, chat_templates) -> None:
        client = httpx.AsyncClient(base_url="https://api.twilio.com")
        adapter = WhatsAppAdapter("AC123", "token", "whatsapp:+14155238886", chat_templates, http_client=client)

        await adapter.aclose()

        assert client.is_closed is False
        await client.aclose()


class TestEmailAdapter:
    @pytest.fixture
    def ses_client(self) -> MagicMock:
        client = MagicMock()
        client.send_email = AsyncMock(return_value={"MessageId": "ses-001"})
        return client

    @pytest.fixture
    def adapter(self, ses_client, email_templates) -> EmailAdapter:
        return EmailAdapter(
            sender_email="garage@example.com",
            templates=email_templates,
            region="ap-south-1",
            session=aws_session(ses_client),
        )

    def test_resolve_recipient(self, adapter, full_contact) -> None:
        assert adapter.resolve_recipient(full_contact) == "ravi@example.com"

    def test_resolve_recipient_without_email(self, adapter, phone_only_contact) -> None:
        with pytest.raises(InvalidRecipientError):
            adapter.resolve_recipient(phone_only_contact)

    def test_validate_recipient(self, adapter) -> None:
        assert adapter.validate_recipient("ravi@example.com") is True
        assert adapter.validate_recipient("ravi@example") is False
        assert adapter.validate_recipient("not an email") is False

    @pytest.mark.asyncio
    async def test_send_success(self, adapter, ses_client) -> None:
        content = adapter.format(Welcome(), "Ravi")

        response = await adapter.send("ravi@example.com", content)

        assert response.message_id == "ses-001"
        kwargs = ses_client.send_email.call_args.kwargs
        assert kwargs["Source"] == "garage@example.com"
        assert kwargs["Destination"] == {"ToAddresses": ["ravi@example.com"]}
        assert kwargs["Message"]["Subject"]["Data"] == "Welcome to City Motor Garage!"
        assert "Text" in kwargs["Message"]["Body"]
        assert "Html" in kwargs["Message"]["Body"]

    @pytest.mark.asyncio
    async def test_accepted_without_message_id_is_sent_once(
        self, adapter, ses_client, make_sender, full_contact
    ) -> None:
        ses_client.send_email.return_value = {"ResponseMetadata": {"HTTPStatusCode": 200}}
        sender = make_sender(adapter, max_retries=3)

        attempt = await sender.deliver(full_contact, Welcome())

        assert ses_client.send_email.await_count == 1
        assert attempt.result.success is True
        assert attempt.result.metadata.provider_message_id is None

    @pytest.mark.asyncio
    async def test_unverified_sender_identity(self, adapter, ses_client) -> None:
        """A sender verification rejection explains how to fix the identity."""
        ses_client.send_email.side_effect = client_error(
            "MessageRejected",
            "Email address is not verified. The following identities failed the check "
            "in region AP-SOUTH-1: garage@example.com",
            400,
        )

        with pytest.raises(ProviderError) as exc_info:
            await adapter.send("ravi@example.com", RenderedMessage(body="Hi", subject="Hi"))

        message = str(exc_info.value)
        assert message.startswith("Email sender identity is not verified")
        assert "ap-south-1" in message
        assert "EMAIL_FROM_ADDRESS" in message
        classification = classify_exception(exc_info.value)
        assert classification.kind == ErrorKind.VALIDATION
        assert classification.retryable is False

    @pytest.mark.asyncio
    async def test_forbidden_is_policy_violation(self, adapter, ses_client) -> None:
        ses_client.send_email.side_effect = client_error(
            "AccessDenied", "User is not authorized to perform ses:SendEmail", 403
        )

        with pytest.raises(ProviderError) as exc_info:
            await adapter.send("ravi@example.com", RenderedMessage(body="Hi", subject="Hi"))

        assert str(exc_info.value).startswith("Email provider error:")
        assert classify_exception(exc_info.value).kind == ErrorKind.POLICY_VIOLATION

    @pytest.mark.asyncio
    async def test_throttling_is_retryable(self, adapter, ses_client) -> None:
        ses_client.send_email.side_effect = client_error("Throttling", "Maximum sending rate exceeded.", 400)

        with pytest.raises(ProviderError) as exc_info:
            await adapter.send("ravi@example.com", RenderedMessage(body="Hi", subject="Hi"))

        classification = classify_exception(exc_info.value)
        assert classification.kind == ErrorKind.RATE_LIMIT
        assert classification.retryable is True

    @pytest.mark.asyncio
    async def test_missing_subject(self, adapter, ses_client) -> None:
        with pytest.raises(ProviderError, match="subject is required"):
            await adapter.send("ravi@example.com", RenderedMessage(body="Hi"))
        ses_client.send_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_sender(self, email_templates, ses_client) -> None:
        adapter = EmailAdapter("garage", email_templates, session=aws_session(ses_client))

        with pytest.raises(ProviderError, match="Invalid sender email format"):
            await adapter.send("ravi@example.com", RenderedMessage(body="Hi", subject="Hi"))

    @pytest.mark.asyncio
    async def test_send_timeout(self, email_templates, ses_client) -> None:
        async def stalled(**kwargs):
            await asyncio.sleep(10)

        ses_client.send_email = AsyncMock(side_effect=stalled)
        adapter = EmailAdapter(
            "garage@example.com",
            email_templates,
            send_timeout=0.05,
            session=aws_session(ses_client),
        )

        with pytest.raises(SendTimeoutError) as exc_info:
            await adapter.send("ravi@example.com", RenderedMessage(body="Hi", subject="Hi"))

        assert str(exc_info.value) == "Email send timeout after 0.05 seconds"
        assert classify_exception(exc_info.value).kind == ErrorKind.SERVICE_UNAVAILABLE


class TestSmsAdapter:
    @pytest.fixture
    def sns_client(self) -> MagicMock:
        client = MagicMock()
        client.publish = AsyncMock(return_value={"MessageId": "sns-001"})
        return client

    def test_format_strips_emphasis(self, chat_templates) -> None:
        adapter = SmsAdapter(chat_templates, session=MagicMock())
        assert "*" not in adapter.format(Welcome(), "Ravi").body

    def test_resolve_recipient(self, chat_templates, full_contact) -> None:
        adapter = SmsAdapter(chat_templates, session=MagicMock())
        assert adapter.resolve_recipient(full_contact) == "+919876543210"

    @pytest.mark.asyncio
    async def test_send_success(self, chat_templates, sns_client) -> None:
        adapter = SmsAdapter(chat_templates, sender_id="GARAGE", session=aws_session(sns_client))

        response = await adapter.send("+919876543210", RenderedMessage(body="Your code is 4821"))

        assert response.message_id == "sns-001"
        kwargs = sns_client.publish.call_args.kwargs
        assert kwargs["PhoneNumber"] == "+919876543210"
        attributes = kwargs["MessageAttributes"]
        assert attributes["AWS.SNS.SMS.SMSType"]["StringValue"] == "Transactional"
        assert attributes["AWS.SNS.SMS.SenderID"]["StringValue"] == "GARAGE"

    @pytest.mark.asyncio
    async def test_sender_id_is_optional(self, chat_templates, sns_client) -> None:
        adapter = SmsAdapter(chat_templates, session=aws_session(sns_client))

        await adapter.send("+919876543210", RenderedMessage(body="Hi"))

        assert "AWS.SNS.SMS.SenderID" not in sns_client.publish.call_args.kwargs["MessageAttributes"]

    @pytest.mark.asyncio
    async def test_accepted_without_message_id_is_sent_once(
        self, chat_templates, sns_client, make_sender, full_contact
    ) -> None:
        sns_client.publish.return_value = {}
        sender = make_sender(SmsAdapter(chat_templates, session=aws_session(sns_client)), max_retries=3)

        attempt = await sender.deliver(full_contact, Welcome())

        assert sns_client.publish.await_count == 1
        assert attempt.result.success is True
        assert attempt.result.metadata.provider_message_id is None

    @pytest.mark.asyncio
    async def test_invalid_parameter(self, chat_templates, sns_client) -> None:
        sns_client.publish.side_effect = client_error(
            "InvalidParameter", "Invalid parameter: PhoneNumber", 400, operation="Publish"
        )
        adapter = SmsAdapter(chat_templates, session=aws_session(sns_client))

        with pytest.raises(ProviderError) as exc_info:
            await adapter.send("+919876543210", RenderedMessage(body="Hi"))

        assert classify_exception(exc_info.value).kind == ErrorKind.VALIDATION

    @pytest.mark.asyncio
    async def test_endpoint_unreachable(self, chat_templates, sns_client) -> None:
        sns_client.publish.side_effect = EndpointConnectionError(endpoint_url="https://sns.ap-south-1.amazonaws.com")
        adapter = SmsAdapter(chat_templates, session=aws_session(sns_client))

        with pytest.raises(ProviderError) as exc_info:
            await adapter.send("+919876543210", RenderedMessage(body="Hi"))

        assert str(exc_info.value).startswith("SMS connection error")
        assert classify_exception(exc_info.value).kind == ErrorKind.NETWORK

    @pytest.mark.asyncio
    async def test_missing_credentials(self, chat_templates, sns_client) -> None:
        sns_client.publish.side_effect = NoCredentialsError()
        adapter = SmsAdapter(chat_templates, session=aws_session(sns_client))

        with pytest.raises(ProviderError) as exc_info:
            await adapter.send("+919876543210", RenderedMessage(body="Hi"))

        assert classify_exception(exc_info.value).kind == ErrorKind.AUTHENTICATION
