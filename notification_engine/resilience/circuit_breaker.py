"""
Per-channel circuit breaker.

Tracks consecutive failures of one provider and stops attempts while the
provider is failing. After the recovery timeout a single probe attempt is
allowed; its outcome closes or re-opens the circuit.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import structlog

logger = structlog.get_logger()


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Thresholds for one channel's breaker."""

    failure_threshold: int = 5
    recovery_timeout_minutes: float = 5

    def __post_init__(self) -> None:
        if self.failure_threshold <= 0:
            raise ValueError("failure_threshold must be positive")
        if self.recovery_timeout_minutes <= 0:
            raise ValueError("recovery_timeout_minutes must be positive")

    @property
    def recovery_timeout_seconds(self) -> float:
        return self.recovery_timeout_minutes * 60


@dataclass(frozen=True)
class CircuitBreakerStatus:
    """Read-only snapshot for monitoring endpoints."""

    name: str
    state: CircuitState
    failure_count: int
    failure_threshold: int
    recovery_timeout_minutes: float


class CircuitBreaker:
    """
    Circuit breaker for a single channel.

    State transitions happen under a lock so the breaker can be shared by
    concurrent sends, including sends running in worker threads.
    """

    def __init__(
        self,
        name: str,
        config: CircuitBreakerConfig,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            name: Channel name used in logs
            config: Failure threshold and recovery timeout
            clock: Monotonic seconds source, injectable for tests
        """
        self._name = name
        self._config = config
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_at: float | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> CircuitBreakerConfig:
        return self._config

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def can_attempt(self) -> bool:
        """
        Check whether an attempt may be made now.

        Returns True while closed. When open and the recovery timeout has
        elapsed, moves to half-open and returns True once; further calls
        return False until the probe outcome is recorded.
        """
        with self._lock:
            if self._state == CircuitState.CLOSED:
                return True

            if self._state == CircuitState.OPEN and self._recovery_elapsed():
                self._state = CircuitState.HALF_OPEN
                logger.info("Circuit breaker half-open, allowing probe", circuit=self._name)
                return True

            return False

    def record_success(self) -> None:
        """Close the circuit and reset the failure counter."""
        with self._lock:
            if self._state != CircuitState.CLOSED:
                logger.info("Circuit breaker closed", circuit=self._name)
            self._state = CircuitState.CLOSED
            self._failure_count = 0
            self._last_failure_at = None

    def record_failure(self) -> None:
        """Count a failure; open the circuit at the threshold or after a failed probe."""
        with self._lock:
            self._failure_count += 1
            self._last_failure_at = self._clock()

            if self._state == CircuitState.HALF_OPEN:
                self._state = CircuitState.OPEN
                logger.warning(
                    "Circuit breaker re-opened after failed probe",
                    circuit=self._name,
                    failure_count=self._failure_count,
                )
                return

            if self._state == CircuitState.CLOSED and self._failure_count >= self._config.failure_threshold:
                self._state = CircuitState.OPEN
                logger.warning(
                    "Circuit breaker opened",
                    circuit=self._name,
                    failure_count=self._failure_count,
                    recovery_minutes=self._config.recovery_timeout_minutes,
                )

    def reset(self) -> None:
        """Administrative override back to closed."""
        with self._lock:
            self._state = CircuitState.CLOSED
            self._failure_count = 0
            self._last_failure_at = None
        logger.info("Circuit breaker reset", circuit=self._name)

    def status(self) -> CircuitBreakerStatus:
        return CircuitBreakerStatus(
            name=self._name,
            state=self._state,
            failure_count=self._failure_count,
            failure_threshold=self._config.failure_threshold,
            recovery_timeout_minutes=self._config.recovery_timeout_minutes,
        )

    def _recovery_elapsed(self) -> bool:
        if self._last_failure_at is None:
            return True
        return self._clock() - self._last_failure_at >= self._config.recovery_timeout_seconds
