from .circuit_breaker import CircuitBreaker, CircuitBreakerConfig, CircuitBreakerStatus, CircuitState
from .error_classifier import (
    ErrorClassification,
    classify_code,
    classify_error,
    classify_exception,
    is_retryable,
)
from .retry_executor import RetryConfig, RetryExecutor, RetryOutcome

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerStatus",
    "CircuitState",
    "ErrorClassification",
    "RetryConfig",
    "RetryExecutor",
    "RetryOutcome",
    "classify_code",
    "classify_error",
    "classify_exception",
    "is_retryable",
]
