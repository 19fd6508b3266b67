from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str

    # Square webhook verification
    square_webhook_signature_key: str = ""
    square_webhook_notification_url: str = ""

    redis_url: str = "redis://localhost:6379/0"

    # Deduplication of redelivered events (Square retries for up to 72h)
    webhook_dedup_enabled: bool = True
    webhook_dedup_ttl_seconds: int = 72 * 60 * 60

    webhook_dispatch_async: bool = False

    rate_limit_enabled: bool = True
    webhook_rate_limit_per_minute: int = 300
    max_body_bytes: int = 1_048_576

    # Raw audit archive
    events_bucket: str = ""
    aws_region: str = "us-east-1"
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    aws_endpoint_url: str | None = None
    aws_sse_kms_key_id: str = ""

    allowed_origins: str = "http://localhost:3000"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]
