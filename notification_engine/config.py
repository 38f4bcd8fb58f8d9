from pydantic_settings import BaseSettings

from .domain.value_objects import ChannelType
from .resilience import CircuitBreakerConfig, RetryConfig


class Settings(BaseSettings):
    """Notification engine settings loaded from environment."""

    # Service
    service_name: str = "notification-engine"
    notification_sandbox: bool = False  # Force sandbox adapters even with credentials
    notification_broadcast_delay_ms: int = 1000

    # Branding used in templates
    business_name: str = "City Motor Garage"
    currency_symbol: str = "₹"
    default_country_code: str = "+91"

    # WhatsApp (Twilio)
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_secret_id: str | None = None  # Secrets Manager id holding account_sid/auth_token
    twilio_api_base_url: str = "https://api.twilio.com"
    whatsapp_from_number: str = "whatsapp:+14155238886"
    whatsapp_retry_delay: int = 1000
    whatsapp_max_retry_delay: int = 60000
    whatsapp_max_retries: int = 3
    whatsapp_backoff_multiplier: float = 2.0
    whatsapp_circuit_threshold: int = 5
    whatsapp_circuit_recovery_min: float = 5
    whatsapp_send_timeout: float = 15.0
    whatsapp_enable_email_fallback: bool = True
    whatsapp_enable_sms_fallback: bool = False

    # Email (AWS SES)
    email_from_address: str = ""
    email_retry_delay: int = 1000
    email_max_retry_delay: int = 30000
    email_max_retries: int = 2
    email_backoff_multiplier: float = 2.0
    email_circuit_threshold: int = 5
    email_circuit_recovery_min: float = 5
    email_send_timeout: float = 15.0
    email_enable_whatsapp_fallback: bool = True

    # SMS (AWS SNS)
    sms_sender_id: str = ""
    sms_retry_delay: int = 1000
    sms_max_retry_delay: int = 30000
    sms_max_retries: int = 2
    sms_backoff_multiplier: float = 2.0
    sms_circuit_threshold: int = 5
    sms_circuit_recovery_min: float = 5
    sms_send_timeout: float = 15.0

    # AWS
    aws_region: str = "us-east-1"
    aws_endpoint_url: str | None = None  # For LocalStack

    # Audit log
    audit_backend: str = "memory"  # "memory" or "database"
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "garage"
    db_user: str = "dbadmin"
    db_password: str = ""
    db_url: str | None = None  # Overrides the db_* fields when set

    @property
    def database_url(self) -> str:
        if self.db_url:
            return self.db_url
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    def retry_config(self, channel: ChannelType) -> RetryConfig:
        """Backoff policy for a channel from its *_RETRY_* settings."""
        prefix = channel.value
        return RetryConfig(
            initial_delay_ms=getattr(self, f"{prefix}_retry_delay"),
            max_delay_ms=getattr(self, f"{prefix}_max_retry_delay"),
            max_retries=getattr(self, f"{prefix}_max_retries"),
            backoff_multiplier=getattr(self, f"{prefix}_backoff_multiplier"),
        )

    def circuit_breaker_config(self, channel: ChannelType) -> CircuitBreakerConfig:
        """Breaker thresholds for a channel from its *_CIRCUIT_* settings."""
        prefix = channel.value
        return CircuitBreakerConfig(
            failure_threshold=getattr(self, f"{prefix}_circuit_threshold"),
            recovery_timeout_minutes=getattr(self, f"{prefix}_circuit_recovery_min"),
        )

    def fallback_channels(self, preferred: ChannelType) -> list[ChannelType]:
        """Channels tried, in order, after the preferred one fails."""
        match preferred:
            case ChannelType.WHATSAPP:
                chain = []
                if self.whatsapp_enable_sms_fallback:
                    chain.append(ChannelType.SMS)
                if self.whatsapp_enable_email_fallback:
                    chain.append(ChannelType.EMAIL)
                return chain
            case ChannelType.EMAIL:
                return [ChannelType.WHATSAPP] if self.email_enable_whatsapp_fallback else []
            case ChannelType.SMS:
                return [ChannelType.WHATSAPP, ChannelType.EMAIL]
            case _:
                raise ValueError(f"Unsupported channel type: {preferred}")

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
