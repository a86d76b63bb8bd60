"""
CargoCore 3PL Operations Dashboard
Centralized Configuration Management

Pydantic settings for the upstream data sources, the LLM collaborator and
observability. Components receive these objects at construction time; the
FastAPI layer hands them out through dependencies so tests can override them
without touching the process environment.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cargocore.errors import ConfigurationError


class AnalyticsSourceSettings(BaseSettings):
    """TinyBird product-details endpoint"""

    model_config = SettingsConfigDict(env_prefix="TINYBIRD_", env_file=".env", extra="ignore", populate_by_name=True)

    base_url: Optional[str] = Field(default=None, description="Products endpoint URL")
    token: Optional[SecretStr] = Field(default=None, description="Query-string token")
    company_url: str = Field(
        default="COMP002_packiyo",
        validation_alias="COMPANY_PRODUCTS_URL",
        description="Company filter for product records",
    )
    limit: int = Field(default=500, validation_alias="PRODUCTS_LIMIT", description="Max rows per fetch")

    def require(self) -> "AnalyticsSourceSettings":
        """Fail fast when the endpoint is not configured"""
        if not self.base_url or not self.token:
            raise ConfigurationError(
                "TINYBIRD_BASE_URL and TINYBIRD_TOKEN environment variables are required"
            )
        return self


class WarehouseSourceSettings(BaseSettings):
    """Warehouse inbound-shipments endpoint"""

    model_config = SettingsConfigDict(env_prefix="WAREHOUSE_", env_file=".env", extra="ignore", populate_by_name=True)

    base_url: Optional[str] = Field(default=None, description="Shipments endpoint URL")
    token: Optional[SecretStr] = Field(default=None, description="Query-string token")
    company_url: str = Field(
        default="COMP002_3PL",
        validation_alias="COMPANY_WAREHOUSE_URL",
        description="Company filter for shipment records",
    )
    limit: int = Field(default=500, validation_alias="SHIPMENTS_LIMIT", description="Max rows per fetch")

    def require(self) -> "WarehouseSourceSettings":
        """Fail fast when the endpoint is not configured"""
        if not self.base_url or not self.token:
            raise ConfigurationError(
                "WAREHOUSE_BASE_URL and WAREHOUSE_TOKEN environment variables are required"
            )
        return self


class LLMSettings(BaseSettings):
    """Chat-completion collaborator (OpenAI-compatible)"""

    model_config = SettingsConfigDict(env_prefix="OPENAI_", env_file=".env", extra="ignore", populate_by_name=True)

    api_key: Optional[SecretStr] = Field(default=None, description="Bearer token; unset disables the LLM")
    api_url: str = Field(
        default="https://api.openai.com/v1/chat/completions",
        description="Chat completions endpoint",
    )
    model: str = Field(default="gpt-4o-mini", description="Model used for recommendations and insights")
    chat_model: str = Field(default="gpt-4", description="Model used by the chat assistant")
    timeout_seconds: float = Field(
        default=30.0,
        validation_alias="LLM_TIMEOUT_SECONDS",
        description="Request timeout",
    )

    @property
    def enabled(self) -> bool:
        """True when an API key is configured"""
        return self.api_key is not None and bool(self.api_key.get_secret_value())


class MonitoringSettings(BaseSettings):
    """Logging configuration"""

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore", populate_by_name=True)

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="cargocore-dashboard", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")
    version: str = Field(default="1.0.0", description="Application version")

    upstream_timeout_seconds: float = Field(
        default=30.0,
        alias="UPSTREAM_TIMEOUT_SECONDS",
        description="Timeout for analytics and warehouse fetches",
    )
    cors_origins: List[str] = Field(default=["*"], description="Allowed CORS origins")

    # Subsystem configurations
    analytics: AnalyticsSourceSettings = Field(default_factory=AnalyticsSourceSettings)
    warehouse: WarehouseSourceSettings = Field(default_factory=WarehouseSourceSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
