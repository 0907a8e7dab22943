"""
Configuration Management for Personal Finance Core

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: Settings only supply defaults.
Every core function takes its inputs explicitly, so a caller (or a test)
can always override a configured value without touching the environment.
"""

from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FinanceSettings(BaseSettings):
    """Defaults for the calculation engine and the daily materializer."""

    model_config = SettingsConfigDict(
        env_prefix="FINCORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Salary crediting
    salary_category: str = Field(
        default="Salary",
        min_length=1,
        description="Ledger category used for automated salary credits"
    )
    salary_note: str = Field(
        default="Automated salary credit",
        description="Note attached to automated salary entries"
    )

    # Goal classification
    on_track_tolerance: float = Field(
        default=0.9,
        gt=0.0,
        le=1.0,
        description="Fraction of the required SIP that still counts as on track"
    )

    # Projection assumptions
    default_expected_return_percent: float = Field(
        default=12.0,
        ge=0.0,
        le=100.0,
        description="Annual return assumed when the caller gives none"
    )
    default_annual_increase_percent: float = Field(
        default=10.0,
        ge=0.0,
        le=100.0,
        description="Yearly step-up of the monthly contribution"
    )

    # Budget
    default_needs_percent: float = Field(default=50.0, ge=0.0, le=100.0)
    default_wants_percent: float = Field(default=30.0, ge=0.0, le=100.0)
    default_savings_percent: float = Field(default=20.0, ge=0.0, le=100.0)
    unclassified_bucket: str = Field(
        default="wants",
        description="Budget bucket for categories missing from the classification table"
    )

    # Recurring rules
    lenient_unknown_frequency: bool = Field(
        default=False,
        description="Advance unknown frequencies by one month instead of rejecting them"
    )

    @field_validator('unclassified_bucket')
    @classmethod
    def validate_bucket(cls, v: str) -> str:
        """Only the three budget buckets are meaningful."""
        v = v.strip().lower()
        if v not in {"needs", "wants", "savings"}:
            raise ValueError(f"unclassified_bucket must be needs, wants or savings, got {v!r}")
        return v

    @model_validator(mode='after')
    def validate_default_split(self) -> 'FinanceSettings':
        """The default budget split must cover the whole income."""
        total = (
            self.default_needs_percent
            + self.default_wants_percent
            + self.default_savings_percent
        )
        if abs(total - 100.0) > 0.01:
            raise ValueError(f"Default budget split must sum to 100, got {total}")
        return self


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINCORE_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    json_output: bool = Field(
        default=True,
        description="Render log lines as JSON (False gives console output)"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def finance(self) -> FinanceSettings:
        return FinanceSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry for every section that failed.
    Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("finance", "logging", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
