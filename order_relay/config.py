"""
Application Configuration Management

Loads configuration from environment variables and an optional .env file.
Partner secrets are held as SecretStr so they never end up in logs or reprs.
"""

from datetime import timedelta
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with validation"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = Field(default="development", description="Environment name")

    # Application
    app_name: str = Field(default="Order Relay")
    app_version: str = Field(default="1.0.0")
    log_level: str = Field(default="INFO")

    # FastAPI
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)

    # Getir partner API
    getir_api_base_url: str = Field(
        default="https://food-external-api-gateway.development.getirapi.com",
        description="Getir food external API gateway",
    )
    getir_app_secret: Optional[SecretStr] = Field(
        default=None, description="Getir application secret key"
    )
    getir_restaurant_secret: Optional[SecretStr] = Field(
        default=None, description="Getir restaurant secret key"
    )
    getir_restaurant_id: Optional[str] = Field(
        default=None, description="Fallback restaurant ID when login omits it"
    )
    getir_token_validity_minutes: float = Field(
        default=55,
        gt=0,
        description="How long an acquired token is treated as valid",
    )
    getir_token_refresh_interval_minutes: float = Field(
        default=55, gt=0, description="Background token refresh interval"
    )
    getir_background_refresh: bool = Field(default=True)

    # Yemeksepeti partner API
    yemeksepeti_api_base_url: str = Field(
        default="https://integration-middleware-tr.me.restaurant-partners.com"
    )

    # Outbound HTTP
    upstream_timeout_seconds: float = Field(default=15.0, gt=0)

    # Order events
    order_event_queue_size: int = Field(default=100, gt=0)

    # CORS
    cors_origins: List[str] = Field(default=["*"])
    cors_allow_credentials: bool = Field(default=False)
    cors_allow_methods: List[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    )
    cors_allow_headers: List[str] = Field(
        default=["Content-Type", "token", "Authorization", "X-Correlation-ID"]
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v_upper

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment"""
        valid_envs = ["development", "test", "staging", "production"]
        v_lower = v.lower()
        if v_lower not in valid_envs:
            raise ValueError(f"Environment must be one of {valid_envs}")
        return v_lower

    @field_validator("getir_api_base_url", "yemeksepeti_api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.environment == "development"

    @property
    def getir_token_validity(self) -> timedelta:
        return timedelta(minutes=self.getir_token_validity_minutes)

    @property
    def getir_token_refresh_interval(self) -> timedelta:
        return timedelta(minutes=self.getir_token_refresh_interval_minutes)

    def missing_getir_secrets(self) -> List[str]:
        """
        List the Getir secrets that are not configured.

        The cached-token routes cannot work without them, but the rest of the
        service can, so callers decide whether a gap is fatal.
        """
        missing = []
        if not self.getir_app_secret or not self.getir_app_secret.get_secret_value():
            missing.append("getir_app_secret")
        if (
            not self.getir_restaurant_secret
            or not self.getir_restaurant_secret.get_secret_value()
        ):
            missing.append("getir_restaurant_secret")
        return missing


@lru_cache()
def get_settings() -> Settings:
    """Get application settings (cached)."""
    return Settings()


# Export singleton instance
settings = get_settings()
