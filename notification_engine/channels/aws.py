"""Mapping of botocore responses and failures for the SES and SNS adapters."""

import structlog
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from ..domain.exceptions import ProviderError
from ..domain.ports import ProviderResponse

logger = structlog.get_logger()


def client_error_details(error: ClientError) -> tuple[str | None, str, int | None]:
    """Return (code, message, HTTP status) from a botocore ClientError."""
    details = error.response.get("Error", {})
    code = details.get("Code") or None
    message = details.get("Message") or str(error)
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return code, message, status


def provider_error_from_client_error(error: ClientError, label: str) -> ProviderError:
    code, message, status = client_error_details(error)
    details = error.response.get("Error", {})
    return ProviderError(
        f"{label} provider error: {message}",
        code=code,
        status=status,
        errors=[details] if details else [],
    )


def provider_error_from_botocore(error: BotoCoreError, label: str) -> ProviderError:
    """Map client-side botocore failures (credentials, endpoint, transport)."""
    if isinstance(error, NoCredentialsError):
        return ProviderError(f"{label} authentication failed: no AWS credentials configured")
    return ProviderError(f"{label} connection error: {error}")


def accepted_response(response: dict, label: str) -> ProviderResponse:
    """Acknowledgement for a completed SES or SNS call; MessageId may be absent."""
    message_id = response.get("MessageId") if isinstance(response, dict) else None
    if not message_id:
        logger.warning(f"{label} message accepted without a MessageId")
    return ProviderResponse(message_id=message_id or None)
