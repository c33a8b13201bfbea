"""
Sales Reporting API
Centralized Configuration Management

Configuration is loaded with Pydantic settings from environment variables
(and an optional .env file), grouped into sections with their own prefixes.
"""

from functools import lru_cache
from typing import List, Optional
from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


# Free-mail providers. Companies on these domains are individual buyers
# rather than B2B accounts.
DEFAULT_CONSUMER_DOMAINS = [
    "gmail.com",
    "yahoo.com",
    "hotmail.com",
    "outlook.com",
    "aol.com",
    "icloud.com",
    "protonmail.com",
    "marketplace.amazon.com",
    "comcast.net",
    "verizon.net",
    "msn.com",
    "me.com",
    "att.net",
    "live.com",
    "bellsouth.net",
    "sbcglobal.net",
    "cox.net",
    "mac.com",
    "mail.com",
]


class DatabaseSettings(BaseSettings):
    """PostgreSQL Database Configuration"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_", populate_by_name=True)

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="sales_reporting", description="Database name")
    user: str = Field(default="reporting", description="Database user")
    password: SecretStr = Field(default="secure_password", description="Database password")
    pool_size: int = Field(default=10, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Max overflow connections")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    echo: bool = Field(default=False, description="Echo SQL queries")
    url: Optional[str] = Field(default=None, alias="DATABASE_URL", description="Database URL (overrides host/port)")

    @property
    def async_url(self) -> str:
        """Async database URL for asyncpg"""
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"

    def get_url(self) -> str:
        """Database URL - uses DATABASE_URL if set, otherwise builds from host/port"""
        if self.url:
            return self.url
        return self.async_url


class ReportingSettings(BaseSettings):
    """Report Pipeline Configuration"""

    model_config = SettingsConfigDict(env_prefix="REPORTING_")

    # Page sizes differ per listing; callers pick the one they need
    small_page_size: int = Field(default=10, description="Default page size for companies and customers")
    order_page_size: int = Field(default=25, description="Default page size for orders")
    large_page_size: int = Field(default=50, description="Default page size for contacts and products")
    max_page_size: int = Field(default=500, description="Upper bound for any requested page size")

    default_period: str = Field(default="30d", description="Period used when none is requested")
    consumer_domains: List[str] = Field(
        default_factory=lambda: list(DEFAULT_CONSUMER_DOMAINS),
        description="Email domains excluded by the consumer-domain filter",
    )

    # Reorder planning
    demand_window_days: int = Field(default=90, description="Trailing days of sales used to forecast demand")
    reorder_targets_days: List[int] = Field(default=[90, 180], description="Days of supply targeted by reorder quantities")

    unclassified_label: str = Field(default="Unclassified", description="Group key for rows with no category")


class MonitoringSettings(BaseSettings):
    """Monitoring and Observability Configuration"""

    model_config = SettingsConfigDict(env_prefix="", populate_by_name=True)

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or console")


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
    app_name: str = Field(default="sales-reporting", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")
    api_workers: int = Field(default=4, alias="API_WORKERS", description="API workers")

    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        alias="CORS_ORIGINS",
        description="Allowed CORS origins",
    )

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    reporting: ReportingSettings = Field(default_factory=ReportingSettings)
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
