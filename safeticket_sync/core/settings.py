"""HTTP timeout settings for the remote table service.

Provides centralized timeout configuration using Pydantic BaseSettings
with environment variable support for operational tuning.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class HttpTimeoutSettings(BaseSettings):
    """Remote table service timeout configuration."""

    http_timeout: float = Field(
        30.0, alias="SUPABASE_HTTP_TIMEOUT", description="Total request timeout in seconds"
    )

    connect_timeout: float = Field(
        10.0, alias="SUPABASE_CONNECT_TIMEOUT", description="Connection timeout in seconds"
    )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
timeout_settings = HttpTimeoutSettings()

# Timeout constants for easy import
HTTP_TIMEOUT: float = timeout_settings.http_timeout
CONNECT_TIMEOUT: float = timeout_settings.connect_timeout
