"""
E-Commerce Sales & Supply Chain Analytics
Centralized Configuration Management

This module provides configuration management using Pydantic settings with
environment variable support, validation, and type safety. Report thresholds
live in their own section so a single run can override them without touching
the process environment.
"""

from functools import lru_cache
from typing import Any, Optional

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """PostgreSQL Database Configuration"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="ecommerce", description="Database name")
    user: str = Field(default="ecommerce", description="Database user")
    password: SecretStr = Field(default="secure_password", description="Database password")
    echo: bool = Field(default=False, description="Echo SQL queries")
    url: Optional[str] = Field(default=None, description="Full async URL (overrides host/port)")

    @property
    def async_url(self) -> str:
        """Async database URL for asyncpg"""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


class ReportSettings(BaseSettings):
    """
    Report Catalog Configuration

    Thresholds used by the report catalog. Every numeric value must be
    non-negative; use resolve_report_settings() to apply per-run overrides.
    """

    model_config = SettingsConfigDict(env_prefix="REPORT_")

    sla_days: int = Field(default=5, description="Max dispatch-to-delivery days counted as on time")
    high_value_ltv_threshold: float = Field(default=50000.0, description="LTV a customer must exceed to be high value")
    top_n: int = Field(default=10, description="Row limit for top SKU reports")
    slow_moving_units_threshold: int = Field(default=10, description="Units sold below which a product is slow moving")
    strict_references: bool = Field(default=False, description="Fail reports on unresolved foreign keys")
    batch_timeout_seconds: Optional[float] = Field(default=None, description="Deadline for a whole batch")
    max_workers: int = Field(default=4, description="Report worker threads")
    snapshot_source: str = Field(default="database", description="Snapshot source for the API: database or seed")

    @field_validator(
        "sla_days",
        "high_value_ltv_threshold",
        "top_n",
        "slow_moving_units_threshold",
    )
    @classmethod
    def validate_non_negative(cls, v):
        """Reject negative thresholds"""
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @field_validator("batch_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: Optional[float]) -> Optional[float]:
        """Reject negative deadlines"""
        if v is not None and v < 0:
            raise ValueError("must not be negative")
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """At least one worker is required"""
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("snapshot_source")
    @classmethod
    def validate_source(cls, v: str) -> str:
        """Validate snapshot source value"""
        allowed = ["database", "seed"]
        if v.lower() not in allowed:
            raise ValueError(f"Snapshot source must be one of: {allowed}")
        return v.lower()


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
    )

    # Application
    app_name: str = Field(default="ecommerce-reports", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    reports: ReportSettings = Field(default_factory=ReportSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()


def resolve_report_settings(
    base: Optional[ReportSettings] = None,
    **overrides: Any,
) -> ReportSettings:
    """
    Build report settings from a base section plus per-run overrides.

    Overrides whose value is None are ignored. The merged values are validated
    again, so a negative override is rejected here rather than mid-batch.

    Raises:
        InvalidConfiguration: If any merged value fails validation
    """
    from src.analytics.errors import InvalidConfiguration

    base = base or get_settings().reports
    values = base.model_dump()
    unknown = [key for key in overrides if key not in values]
    if unknown:
        raise InvalidConfiguration(f"Unknown report settings: {sorted(unknown)}")
    values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return ReportSettings(**values)
    except ValidationError as e:
        raise InvalidConfiguration(str(e)) from e
