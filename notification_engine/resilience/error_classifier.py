"""
Provider error classification.

Maps provider error codes and messages to an ErrorKind and decides whether a
failed send is worth retrying. Pure functions over fixed tables; codes are
matched before message text.
"""

import asyncio
from dataclasses import dataclass

from ..domain.exceptions import CircuitOpenError, InvalidRecipientError, ProviderError
from ..domain.value_objects import ErrorKind

# Codes are compared lower-cased. Numeric entries are HTTP statuses and
# Twilio error codes; the others are AWS (SES/SNS) error codes.
_CODE_TABLE: tuple[tuple[ErrorKind, frozenset[str]], ...] = (
    (
        ErrorKind.AUTHENTICATION,
        frozenset({
            "401", "20003",
            "unrecognizedclientexception", "invalidclienttokenid",
            "signaturedoesnotmatch", "incompletesignature", "missingauthenticationtoken",
        }),
    ),
    (
        ErrorKind.RATE_LIMIT,
        frozenset({
            "429", "20429", "63021",
            "throttling", "throttlingexception", "throttled", "toomanyrequestsexception",
        }),
    ),
    (
        ErrorKind.VALIDATION,
        frozenset({
            "400",
            "messagerejected", "invalidparametervalue", "invalidparameter",
            "invalidparameterexception", "validationerror",
        }),
    ),
    (
        ErrorKind.POLICY_VIOLATION,
        frozenset({
            "403", "63018", "63032",
            "accessdenied", "accessdeniedexception", "authorizationerror",
            "accountsendingpausedexception",
        }),
    ),
    (
        ErrorKind.SERVICE_UNAVAILABLE,
        frozenset({
            "500", "502", "503", "504",
            "serviceunavailable", "internalfailure", "internalerror",
            "internalerrorexception", "requesttimeout",
        }),
    ),
)

_MESSAGE_TABLE: tuple[tuple[ErrorKind, tuple[str, ...]], ...] = (
    (ErrorKind.AUTHENTICATION, ("authentication", "unauthorized")),
    (ErrorKind.RATE_LIMIT, ("rate limit", "too many")),
    (ErrorKind.VALIDATION, ("invalid", "validation")),
    (ErrorKind.POLICY_VIOLATION, ("policy", "violation", "forbidden")),
    (ErrorKind.SERVICE_UNAVAILABLE, ("unavailable", "timeout", "timed out")),
    (ErrorKind.NETWORK, ("network", "connection", "dns")),
)

_NON_RETRYABLE_KINDS = frozenset({
    ErrorKind.VALIDATION,
    ErrorKind.AUTHENTICATION,
    ErrorKind.POLICY_VIOLATION,
})

# Twilio codes that will not succeed on retry: unreachable or opted-out
# recipients, template and session-window violations, unsubscribed numbers.
NON_RETRYABLE_CODES = frozenset({
    "21211", "21212", "21614", "21610", "21408", "21623", "21609",
    "63013", "63016", "63018", "63021", "63024", "63032",
    "20003", "20404", "30002", "30454", "63038", "90010",
})


@dataclass(frozen=True)
class ErrorClassification:
    """Classifier verdict for a single failure."""

    kind: ErrorKind
    retryable: bool
    code: str | None = None


def _normalize_code(code: str | int | None) -> str:
    if code is None:
        return ""
    return str(code).strip().lower()


def classify_code(code: str | int | None) -> ErrorKind | None:
    """Classify by provider code alone; None when the code is not in any table."""
    normalized = _normalize_code(code)
    if not normalized:
        return None

    for kind, codes in _CODE_TABLE:
        if normalized in codes:
            return kind

    # Twilio 21xxx: request parameter errors (bad number, missing body, ...)
    if len(normalized) == 5 and normalized.isdigit() and normalized.startswith("21"):
        return ErrorKind.VALIDATION

    return None


def classify_error(code: str | int | None, message: str | None) -> ErrorKind:
    """
    Map a provider code and raw message to an ErrorKind.

    Args:
        code: Provider error code or HTTP status, may be empty
        message: Raw error message, may be empty

    Returns:
        The first matching kind, codes before message text, else UNKNOWN
    """
    by_code = classify_code(code)
    if by_code is not None:
        return by_code

    text = (message or "").lower()
    for kind, needles in _MESSAGE_TABLE:
        if any(needle in text for needle in needles):
            return kind

    return ErrorKind.UNKNOWN


def is_retryable(kind: ErrorKind, code: str | int | None = None) -> bool:
    """
    Decide whether a failure of this kind and code is worth retrying.

    Validation, authentication and policy failures never are. Rate-limit and
    unknown failures are, unless the code is a known permanent provider code.
    """
    if kind in _NON_RETRYABLE_KINDS:
        return False

    if kind in (ErrorKind.UNKNOWN, ErrorKind.RATE_LIMIT):
        normalized = _normalize_code(code)
        if normalized and normalized in NON_RETRYABLE_CODES:
            return False

    return True


def classify_exception(exc: BaseException) -> ErrorClassification:
    """Classify any exception raised by a send operation."""
    if isinstance(exc, InvalidRecipientError):
        return ErrorClassification(kind=ErrorKind.VALIDATION, retryable=False)

    if isinstance(exc, CircuitOpenError):
        return ErrorClassification(kind=ErrorKind.SERVICE_UNAVAILABLE, retryable=False)

    if isinstance(exc, ProviderError):
        kind = classify_code(exc.code) or classify_code(exc.status)
        if kind is None:
            kind = classify_error(None, exc.message)
        return ErrorClassification(kind=kind, retryable=is_retryable(kind, exc.code), code=exc.code)

    if isinstance(exc, asyncio.TimeoutError):
        return ErrorClassification(kind=ErrorKind.SERVICE_UNAVAILABLE, retryable=True)

    kind = classify_error(None, str(exc))
    return ErrorClassification(kind=kind, retryable=is_retryable(kind))
