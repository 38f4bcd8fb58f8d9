from enum import Enum


class ErrorKind(str, Enum):
    """Closed classification of provider failures."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    SERVICE_UNAVAILABLE = "service_unavailable"
    POLICY_VIOLATION = "policy_violation"
    NETWORK = "network"
    UNKNOWN = "unknown"
