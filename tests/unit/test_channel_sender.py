"""Tests for single-channel delivery."""

from unittest.mock import AsyncMock

import pytest

from notification_engine.domain.entities import DeliveryStatus, MessageRecord
from notification_engine.domain.exceptions import ProviderError
from notification_engine.domain.messages import AppointmentConfirmation, OtpCode
from notification_engine.domain.value_objects import ChannelType, ErrorKind


@pytest.fixture
def confirmation() -> AppointmentConfirmation:
    return AppointmentConfirmation(
        booking_id="BK-1001",
        service_name="Full Service",
        date_time="12 Mar 2025, 10:00",
        location="MG Road Workshop",
        car_details="Honda City 2019",
    )


class TestChannelSender:
    @pytest.mark.asyncio
    async def test_successful_delivery(self, make_sender, whatsapp_sandbox, full_contact, audit_log, confirmation) -> None:
        sender = make_sender(whatsapp_sandbox)

        attempt = await sender.deliver(full_contact, confirmation)

        result = attempt.result
        assert result.success is True
        assert result.channel == ChannelType.WHATSAPP
        assert result.message == "Message sent via whatsapp"
        assert result.total_attempts == 1
        assert result.retry_count == 0
        assert result.metadata.sandbox is True
        assert result.metadata.provider_message_id == whatsapp_sandbox.sent[0].message_id

        record = audit_log.get(attempt.record_id)
        assert record.status == DeliveryStatus.PENDING
        assert record.recipient == "whatsapp:+919876543210"
        assert record.message_type == "appointment_confirmation"
        assert record.reference_id == "BK-1001"
        assert "Hi Ravi!" in record.content

    @pytest.mark.asyncio
    async def test_finalize_writes_completion(self, make_sender, whatsapp_sandbox, full_contact, audit_log, confirmation) -> None:
        sender = make_sender(whatsapp_sandbox)
        attempt = await sender.deliver(full_contact, confirmation)

        await sender.finalize(attempt, DeliveryStatus.SENT)

        record = audit_log.get(attempt.record_id)
        assert record.status == DeliveryStatus.SENT
        assert record.provider_message_id == attempt.result.metadata.provider_message_id
        assert record.provider_response["sandbox"] is True
        assert record.failure_reason is None

    @pytest.mark.asyncio
    async def test_missing_contact_field(self, make_sender, email_sandbox, phone_only_contact, audit_log) -> None:
        """A contact without an address fails validation without reaching the provider."""
        sender = make_sender(email_sandbox)

        attempt = await sender.deliver(phone_only_contact, OtpCode(code="4821"))

        result = attempt.result
        assert result.success is False
        assert result.error_kind == ErrorKind.VALIDATION
        assert result.retryable is False
        assert result.total_attempts == 0
        assert email_sandbox.sent == []
        record = audit_log.get(attempt.record_id)
        assert record.recipient == "unavailable"

    @pytest.mark.asyncio
    async def test_retry_then_failure(self, make_sender, whatsapp_sandbox, full_contact, audit_log, sleep, confirmation) -> None:
        whatsapp_sandbox.fail_next(
            ProviderError("Service Unavailable", status=503),
            ProviderError("Service Unavailable", status=503),
        )
        sender = make_sender(whatsapp_sandbox, max_retries=1)

        attempt = await sender.deliver(full_contact, confirmation)
        await sender.finalize(attempt, DeliveryStatus.RETRY_FAILED)

        result = attempt.result
        assert result.success is False
        assert result.error_kind == ErrorKind.SERVICE_UNAVAILABLE
        assert result.retryable is True
        assert result.total_attempts == 2
        assert result.retry_count == 1
        assert result.metadata.status_code == 503
        assert sleep.calls == [0.1]

        record = audit_log.get(attempt.record_id)
        assert record.status == DeliveryStatus.RETRY_FAILED
        assert record.retry_count == 1
        assert record.last_retry_at is not None
        assert record.failure_reason == "Service Unavailable"
        assert record.provider_response["error_kind"] == "service_unavailable"

    @pytest.mark.asyncio
    async def test_open_circuit(self, make_sender, whatsapp_sandbox, full_contact, confirmation) -> None:
        sender = make_sender(whatsapp_sandbox, failure_threshold=1)
        sender.executor.circuit_breaker.record_failure()

        attempt = await sender.deliver(full_contact, confirmation)

        result = attempt.result
        assert result.success is False
        assert result.message == "whatsapp service temporarily unavailable (circuit breaker open)"
        assert result.metadata.circuit_breaker_open is True
        assert result.total_attempts == 0
        assert whatsapp_sandbox.sent == []

    @pytest.mark.asyncio
    async def test_audit_failure_does_not_change_outcome(
        self, make_sender, whatsapp_sandbox, full_contact, audit_log, confirmation
    ) -> None:
        audit_log.log_message = AsyncMock(side_effect=RuntimeError("database down"))
        sender = make_sender(whatsapp_sandbox)

        attempt = await sender.deliver(full_contact, confirmation)
        await sender.finalize(attempt, DeliveryStatus.SENT)

        assert attempt.result.success is True
        assert attempt.record_id is None

    @pytest.mark.asyncio
    async def test_update_failure_is_logged_not_raised(
        self, make_sender, whatsapp_sandbox, full_contact, audit_log, confirmation
    ) -> None:
        audit_log.update_message = AsyncMock(side_effect=RuntimeError("database down"))
        sender = make_sender(whatsapp_sandbox)
        attempt = await sender.deliver(full_contact, confirmation)

        await sender.finalize(attempt, DeliveryStatus.SENT)

        audit_log.update_message.assert_awaited_once()
        record = audit_log.get(attempt.record_id)
        assert isinstance(record, MessageRecord)
        assert record.status == DeliveryStatus.PENDING
