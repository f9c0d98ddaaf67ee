"""Engine settings loaded from environment variables."""

from enum import StrEnum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    """Deployment environment."""

    DEV = "dev"
    STAGING = "staging"
    PROD = "prod"


class LogLevel(StrEnum):
    """Supported log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Settings loaded from environment variables / .env file.

    Holds the defaults applied to freshly created data quality
    configurations and the logging setup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Duplicate detection defaults ---
    DEFAULT_TEXT_THRESHOLD: float = Field(
        default=0.85,
        ge=0.0,
        le=1.0,
        description="Jaro-Winkler threshold used when fuzzy matching is enabled.",
    )
    DEFAULT_DATE_TOLERANCE_DAYS: int = Field(
        default=0,
        ge=0,
        description="Days two dates may differ and still match (0 = exact).",
    )

    # --- Derived variables ---
    FORMULA_DECIMALS: int = Field(
        default=2,
        ge=0,
        description="Decimal places formula results are rounded to.",
    )

    # --- Logging ---
    LOG_LEVEL: LogLevel = Field(
        default=LogLevel.INFO,
        description="Log level.",
    )

    # --- Environment ---
    ENVIRONMENT: Environment = Field(
        default=Environment.DEV,
        description="Deployment environment (dev/staging/prod).",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == Environment.PROD


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()
