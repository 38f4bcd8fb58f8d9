"""
Bounded exponential-backoff retry around a single channel send.

The executor consults the channel's circuit breaker before the first attempt
and records the outcome afterwards. Attempts and backoff delays run in the
caller's task; nothing is scheduled in the background.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

from ..domain.exceptions import CircuitOpenError
from ..domain.value_objects import ErrorKind
from .circuit_breaker import CircuitBreaker
from .error_classifier import classify_exception

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """Backoff policy for one channel. Delays are in milliseconds."""

    initial_delay_ms: int = 1000
    max_delay_ms: int = 60000
    max_retries: int = 3
    backoff_multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.initial_delay_ms <= 0:
            raise ValueError("initial_delay_ms must be positive")
        if self.max_delay_ms < self.initial_delay_ms:
            raise ValueError("max_delay_ms must be >= initial_delay_ms")
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        if self.backoff_multiplier <= 0:
            raise ValueError("backoff_multiplier must be positive")

    def delay_ms(self, attempt: int) -> float:
        """Delay to wait after the given failed attempt (1-based)."""
        try:
            delay = self.initial_delay_ms * self.backoff_multiplier ** (attempt - 1)
        except OverflowError:
            return self.max_delay_ms
        return min(delay, self.max_delay_ms)


@dataclass
class RetryOutcome(Generic[T]):
    """Result of a protected execution."""

    success: bool
    attempts: int
    result: T | None = None
    error: BaseException | None = None
    error_kind: ErrorKind | None = None
    retryable: bool = False
    error_code: str | None = None
    circuit_open: bool = False


class RetryExecutor:
    """
    Runs an async operation with circuit breaker protection and retry.

    One executor serves one channel and shares that channel's breaker with
    every concurrent send.
    """

    def __init__(
        self,
        circuit_breaker: CircuitBreaker,
        config: RetryConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Args:
            circuit_breaker: Breaker for the channel
            config: Backoff policy
            sleep: Coroutine taking seconds; injectable so tests do not wait
        """
        self._breaker = circuit_breaker
        self._config = config
        self._sleep = sleep

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._breaker

    @property
    def config(self) -> RetryConfig:
        return self._config

    async def execute_with_protection(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str,
        skip_circuit_breaker: bool = False,
        max_retries: int | None = None,
    ) -> RetryOutcome[T]:
        """
        Execute an operation with breaker gating and exponential backoff.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt
            operation_name: Name used in logs
            skip_circuit_breaker: Neither consult nor update the breaker
            max_retries: Override of the configured retry count

        Returns:
            RetryOutcome with the result or the last error and attempt count
        """
        if not skip_circuit_breaker and not self._breaker.can_attempt():
            state = self._breaker.state.value
            logger.warning(
                "Circuit breaker rejected attempt",
                operation=operation_name,
                circuit=self._breaker.name,
                state=state,
            )
            return RetryOutcome(
                success=False,
                attempts=0,
                error=CircuitOpenError(self._breaker.name, state),
                error_kind=ErrorKind.SERVICE_UNAVAILABLE,
                retryable=False,
                circuit_open=True,
            )

        retries = self._config.max_retries if max_retries is None else max_retries
        max_attempts = retries + 1
        attempt = 1

        while True:
            try:
                result = await operation()
            except Exception as e:
                classification = classify_exception(e)
                logger.warning(
                    "Attempt failed",
                    operation=operation_name,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    error_kind=classification.kind.value,
                    retryable=classification.retryable,
                    error=str(e),
                )

                if not classification.retryable or attempt >= max_attempts:
                    if not skip_circuit_breaker:
                        self._breaker.record_failure()
                    logger.error(
                        "Operation failed",
                        operation=operation_name,
                        attempts=attempt,
                        error_kind=classification.kind.value,
                    )
                    return RetryOutcome(
                        success=False,
                        attempts=attempt,
                        error=e,
                        error_kind=classification.kind,
                        retryable=classification.retryable,
                        error_code=classification.code,
                    )

                delay_ms = self._config.delay_ms(attempt)
                logger.info(
                    "Retrying after backoff",
                    operation=operation_name,
                    attempt=attempt,
                    delay_ms=delay_ms,
                )
                await self._sleep(delay_ms / 1000)
                attempt += 1
                continue

            if not skip_circuit_breaker:
                self._breaker.record_success()
            if attempt > 1:
                logger.info("Operation succeeded after retry", operation=operation_name, attempts=attempt)
            return RetryOutcome(success=True, attempts=attempt, result=result)
