"""
Configuration management for the tardiness engine backend
"""
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import Optional, List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Required settings
    DATABASE_URL: str = Field(..., description="PostgreSQL database URL")

    APP_ENV: str = Field(default="local", description="Application environment: local, staging, prod")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level: DEBUG, INFO, WARNING, ERROR")

    # CORS settings
    ALLOWED_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins. Use '*' for local only."
    )

    # Schedule times ("HH:MM") are local to this zone; accumulation month/year follows it too
    SCHEDULE_TIMEZONE: str = Field(default="America/Mexico_City", description="Timezone of scheduled start times")

    # Tardiness rule roles -> configured rule codes
    LATE_ARRIVAL_RULE_CODE: str = Field(
        default="tr_late_arrival_001",
        description="Rule code for the normal late-arrival (accumulating) rule",
    )
    POST_FIRST_TARDINESS_RULE_CODE: str = Field(
        default="tr_post_first_tardiness",
        description="Rule code for the strict rule used after the first formal tardy of the month",
    )
    DIRECT_TARDINESS_RULE_CODE: str = Field(
        default="tr_direct_tardiness_001",
        description="Rule code for the direct tardiness rule",
    )
    LATE_ARRIVAL_MAX_MINUTES: int = Field(
        default=15,
        description="Upper bound (inclusive) of the late-arrival band; anything later is direct tardiness",
    )

    # Defaults for employees without an explicit schedule
    DEFAULT_SCHEDULED_START: str = Field(default="08:30", description="Default scheduled start time (HH:MM)")
    DEFAULT_GRACE_PERIOD_MINUTES: int = Field(default=0, description="Default grace period in minutes")

    ACCUMULATION_RETRY_ATTEMPTS: int = Field(
        default=3,
        description="Attempts for get-or-create of a monthly accumulation row under concurrent inserts",
    )
    UNJUSTIFIED_ABSENCE_WINDOW_DAYS: int = Field(
        default=30,
        description="Trailing window used to count unjustified absences",
    )
    DEFAULT_HISTORY_LIMIT: int = Field(default=10, description="Default size of disciplinary history listings")

    # Version (can be git SHA or semver)
    VERSION: Optional[str] = Field(default=None, description="Application version (git SHA or semver)")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

    @field_validator("APP_ENV")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate APP_ENV"""
        allowed = ["local", "staging", "prod"]
        if v not in allowed:
            raise ValueError(f"APP_ENV must be one of {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate LOG_LEVEL"""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v.upper()

    @field_validator("SCHEDULE_TIMEZONE")
    @classmethod
    def validate_schedule_timezone(cls, v: str) -> str:
        """Validate SCHEDULE_TIMEZONE is a known IANA zone"""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"SCHEDULE_TIMEZONE must be an IANA timezone, got {v!r}")
        return v

    @field_validator("LATE_ARRIVAL_MAX_MINUTES", "ACCUMULATION_RETRY_ATTEMPTS")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("DEFAULT_GRACE_PERIOD_MINUTES")
    @classmethod
    def validate_grace(cls, v: int) -> int:
        if v < 0:
            raise ValueError("DEFAULT_GRACE_PERIOD_MINUTES cannot be negative")
        return v

    def validate_production(self) -> None:
        """
        Validate settings for production environment

        Raises:
            ValueError: If production settings are invalid
        """
        if self.APP_ENV == "prod":
            # ALLOWED_ORIGINS must not be wildcard in production
            if self.ALLOWED_ORIGINS == "*" or not self.ALLOWED_ORIGINS:
                raise ValueError(
                    "ALLOWED_ORIGINS must be explicitly set (not '*') in production environment"
                )
            if self.DATABASE_URL.startswith("sqlite"):
                raise ValueError("DATABASE_URL must not point to SQLite in production environment")

    def get_allowed_origins_list(self) -> List[str]:
        """
        Get list of allowed CORS origins

        Returns:
            List of allowed origins (or ['*'] for local)
        """
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]


# Create settings instance
settings = Settings()

# Validate production settings if in prod
if settings.APP_ENV == "prod":
    settings.validate_production()
