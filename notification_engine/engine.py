"""
Notification engine composition.

A NotificationEngine is built once at process start and owns every
process-wide piece of delivery state: one circuit breaker per channel, the
provider clients, the audit log and the orchestrator. Call sites receive the
engine explicitly; tests build isolated engines with injected collaborators.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence

import httpx
import structlog
from aiobotocore.session import AioSession

from .application.services import ChannelSender, NotificationOrchestrator
from .config import Settings
from .domain.entities import MessageRecord
from .domain.messages import Notification
from .domain.ports import ChannelAdapter, CredentialSource, DeliveryAuditLog, UserDirectory
from .domain.results import BroadcastSummary, NotificationResult
from .domain.value_objects import ChannelType, UserContactInfo
from .infrastructure.adapters import (
    ChannelAdapterFactory,
    InMemoryDeliveryAuditLog,
    SqlAlchemyDeliveryAuditLog,
)
from .infrastructure.credentials import default_credential_source
from .infrastructure.persistence import Database
from .resilience import CircuitBreaker, CircuitBreakerStatus, RetryExecutor

logger = structlog.get_logger()


class NotificationEngine:
    """Owned delivery engine: breakers, executors, senders and orchestrator."""

    def __init__(
        self,
        settings: Settings,
        adapters: dict[ChannelType, ChannelAdapter],
        audit_log: DeliveryAuditLog,
        user_directory: UserDirectory | None = None,
        database: Database | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._adapters = adapters
        self._audit_log = audit_log
        self._database = database
        self._breakers: dict[ChannelType, CircuitBreaker] = {}
        senders: dict[ChannelType, ChannelSender] = {}

        for channel, adapter in adapters.items():
            breaker = CircuitBreaker(channel.value, settings.circuit_breaker_config(channel), clock=clock)
            executor = RetryExecutor(breaker, settings.retry_config(channel), sleep=sleep)
            self._breakers[channel] = breaker
            senders[channel] = ChannelSender(adapter, executor, audit_log)

        self._orchestrator = NotificationOrchestrator(
            senders,
            fallback_policy=settings.fallback_channels,
            user_directory=user_directory,
            broadcast_delay_ms=settings.notification_broadcast_delay_ms,
            sleep=sleep,
        )

    @classmethod
    async def create(
        cls,
        settings: Settings | None = None,
        credentials: CredentialSource | None = None,
        audit_log: DeliveryAuditLog | None = None,
        user_directory: UserDirectory | None = None,
        http_client: httpx.AsyncClient | None = None,
        aws_session: AioSession | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> "NotificationEngine":
        """
        Build an engine from settings.

        Args:
            settings: Engine settings; read from the environment when omitted
            credentials: Provider credential source; environment/Secrets Manager by default
            audit_log: Audit log; chosen by AUDIT_BACKEND when omitted
            user_directory: Contact lookup for notify_user
            http_client: Shared HTTP client for the WhatsApp adapter
            aws_session: Shared aiobotocore session for SES and SNS
            sleep: Backoff and broadcast sleep, injectable for tests
            clock: Monotonic clock for the circuit breakers

        Returns:
            A ready NotificationEngine; close it with aclose()
        """
        settings = settings or Settings()
        credentials = credentials or default_credential_source(settings)

        database = None
        if audit_log is None:
            if settings.audit_backend == "database":
                database = Database(settings.database_url)
                audit_log = SqlAlchemyDeliveryAuditLog(database.session_factory)
            else:
                audit_log = InMemoryDeliveryAuditLog()

        factory = ChannelAdapterFactory(settings, credentials, http_client=http_client, aws_session=aws_session)
        adapters = await factory.create_all()

        logger.info(
            "Notification engine ready",
            channels=[c.value for c in adapters],
            audit_backend=type(audit_log).__name__,
        )
        return cls(
            settings,
            adapters,
            audit_log,
            user_directory=user_directory,
            database=database,
            sleep=sleep,
            clock=clock,
        )

    @property
    def audit_log(self) -> DeliveryAuditLog:
        return self._audit_log

    @property
    def database(self) -> Database | None:
        return self._database

    def adapter(self, channel: ChannelType) -> ChannelAdapter:
        return self._adapters[channel]

    def circuit_breaker(self, channel: ChannelType) -> CircuitBreaker:
        return self._breakers[channel]

    async def send_notification(
        self,
        contact: UserContactInfo,
        notification: Notification,
    ) -> NotificationResult:
        return await self._orchestrator.send_notification(contact, notification)

    async def notify_user(self, user_id: str, notification: Notification) -> NotificationResult:
        return await self._orchestrator.notify_user(user_id, notification)

    async def broadcast(
        self,
        contacts: Sequence[UserContactInfo],
        notification: Notification,
    ) -> BroadcastSummary:
        return await self._orchestrator.broadcast(contacts, notification)

    def dispatch_in_background(
        self,
        contact: UserContactInfo,
        notification: Notification,
    ) -> asyncio.Task:
        return self._orchestrator.dispatch_in_background(contact, notification)

    def circuit_breaker_status(self, channel: ChannelType) -> CircuitBreakerStatus:
        return self._breakers[channel].status()

    def reset_circuit_breaker(self, channel: ChannelType) -> None:
        self._breakers[channel].reset()

    async def message_history(self, recipient: str, limit: int = 50) -> list[MessageRecord]:
        return await self._audit_log.get_message_history(recipient, limit)

    async def aclose(self) -> None:
        """Wait for background sends, then release provider clients and the database."""
        await self._orchestrator.drain()
        for adapter in self._adapters.values():
            await adapter.aclose()
        if self._database is not None:
            await self._database.close()
        logger.info("Notification engine closed")

    async def __aenter__(self) -> "NotificationEngine":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()
