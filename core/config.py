"""
Configuration management using Pydantic Settings
Handles environment variables and validation
"""
from functools import lru_cache
from typing import Optional

from pydantic import ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings

from core.exceptions import ConfigurationError

PRODUCTION_BASE_URL = "https://api.bounceban.com"
STAGING_BASE_URL = "https://dev.bounceban.com/api"


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Environment
    environment: str = Field(default="development")

    # Application
    app_name: str = "bounceban-verifier"
    app_version: str = "0.1.0"

    # BounceBan API
    bounceban_api_key: Optional[SecretStr] = Field(default=None)
    bounceban_base_url: str = Field(default=PRODUCTION_BASE_URL)
    bounceban_source_tag: str = Field(default="python_client", description="Value of the BB-UTC-Source header")
    skip_tls_verify: bool = Field(default=True, description="Skip TLS certificate validation on API calls")
    request_timeout: float = Field(default=30.0, gt=0)

    # Batch execution
    max_concurrent_jobs: int = Field(default=10, ge=0, description="0 disables the concurrency cap")

    # Polling
    max_poll_attempts: int = Field(default=50)
    min_poll_wait_seconds: float = Field(default=5.0)

    # HTTP retry table
    retry_server_max_retries: int = Field(default=3, ge=0, description="Retries for 429/500 responses")
    retry_server_backoff_ms: int = Field(default=2000, ge=0, description="Multiplied by the attempt number")
    retry_timeout_max_retries: int = Field(default=30, ge=0, description="Retries for 408 responses")
    retry_timeout_wait_ms: int = Field(default=6000, ge=0)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text")  # json or text

    # Monitoring
    prometheus_enabled: bool = Field(default=True)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        allowed = ["development", "test", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        if v not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v

    @field_validator("max_poll_attempts", "min_poll_wait_seconds")
    @classmethod
    def validate_positive(cls, v, info):
        if v <= 0:
            raise ValueError(f"{info.field_name} must be positive")
        return v

    def get_api_key(self) -> str:
        """Get the BounceBan API key or fail loudly"""
        key = self.bounceban_api_key.get_secret_value() if self.bounceban_api_key else None
        if not key:
            raise ConfigurationError("API key not configured for bounceban", setting="bounceban_api_key")
        return key

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    def model_dump(self, **kwargs):
        """Override to mask sensitive fields when serializing"""
        data = super().model_dump(**kwargs)

        value = data.get("bounceban_api_key")
        if value:
            if hasattr(value, "get_secret_value"):
                value = value.get_secret_value()
            else:
                value = str(value)

            # Keep first 4 chars for identification
            if len(value) > 4:
                data["bounceban_api_key"] = value[:4] + "*" * (len(value) - 4)
            else:
                data["bounceban_api_key"] = "*" * len(value)

        return data


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Global settings instance
settings = get_settings()
