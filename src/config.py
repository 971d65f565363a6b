"""Due-date automation service configuration."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Environment-driven settings, read once at startup and passed down."""

    webhook_secret: str = Field(min_length=1)
    api_key: str = ""
    org_id: str | None = None
    base_url: str = "https://api.getmaintainx.com/v1"

    # Replay window for signed webhook requests
    signature_tolerance_minutes: int = 5
    http_timeout: float = 30.0

    service_port: int = Field(default=3000, validation_alias="SERVICE_PORT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    model_config = {"env_prefix": "MAINTAINX_", "env_file": ".env", "extra": "ignore"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings; raises ValidationError if the webhook secret is unset."""
    return Settings()
