from unittest.mock import MagicMock

import httpx
import pytest

from notification_engine.application.services import ChannelSender
from notification_engine.channels import (
    ChatTemplates,
    EmailAdapter,
    EmailTemplates,
    SandboxAdapter,
    SmsAdapter,
    WhatsAppAdapter,
)
from notification_engine.config import Settings
from notification_engine.domain.value_objects import ChannelType, UserContactInfo
from notification_engine.infrastructure.adapters import InMemoryDeliveryAuditLog
from notification_engine.resilience import CircuitBreaker, CircuitBreakerConfig, RetryConfig, RetryExecutor


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep that returns immediately and remembers the requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.calls)


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"Unexpected provider call: {request.url}")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        notification_sandbox=True,
        twilio_account_sid="",
        twilio_auth_token="",
        twilio_secret_id=None,
        email_from_address="",
        audit_backend="memory",
    )


@pytest.fixture
def chat_templates() -> ChatTemplates:
    return ChatTemplates("City Motor Garage", "₹")


@pytest.fixture
def email_templates() -> EmailTemplates:
    return EmailTemplates("City Motor Garage", "₹")


@pytest.fixture
def audit_log() -> InMemoryDeliveryAuditLog:
    return InMemoryDeliveryAuditLog()


@pytest.fixture
def whatsapp_sandbox(chat_templates) -> SandboxAdapter:
    client = httpx.AsyncClient(transport=httpx.MockTransport(_unreachable), base_url="https://api.twilio.com")
    return SandboxAdapter(
        WhatsAppAdapter(
            account_sid="AC123",
            auth_token="token",
            from_number="whatsapp:+14155238886",
            templates=chat_templates,
            http_client=client,
        )
    )


@pytest.fixture
def email_sandbox(email_templates) -> SandboxAdapter:
    return SandboxAdapter(
        EmailAdapter(
            sender_email="garage@example.com",
            templates=email_templates,
            session=MagicMock(),
        )
    )


@pytest.fixture
def sms_sandbox(chat_templates) -> SandboxAdapter:
    return SandboxAdapter(SmsAdapter(templates=chat_templates, session=MagicMock()))


@pytest.fixture
def full_contact() -> UserContactInfo:
    return UserContactInfo(
        email="ravi@example.com",
        phone="9876543210",
        country_code="+91",
        preferred_channel=ChannelType.WHATSAPP,
        name="Ravi",
    )


@pytest.fixture
def phone_only_contact() -> UserContactInfo:
    return UserContactInfo(
        phone="9876543210",
        country_code="+91",
        preferred_channel=ChannelType.WHATSAPP,
        name="Ravi",
    )


@pytest.fixture
def make_sender(audit_log, sleep, clock):
    """Build a ChannelSender with its own breaker and a fast retry policy."""

    def factory(adapter, max_retries: int = 1, failure_threshold: int = 5) -> ChannelSender:
        breaker = CircuitBreaker(
            adapter.channel.value,
            CircuitBreakerConfig(failure_threshold=failure_threshold, recovery_timeout_minutes=1),
            clock=clock,
        )
        executor = RetryExecutor(
            breaker,
            RetryConfig(initial_delay_ms=100, max_delay_ms=1000, max_retries=max_retries),
            sleep=sleep,
        )
        return ChannelSender(adapter, executor, audit_log)

    return factory
