"""Application configuration via Pydantic settings."""

from datetime import time
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration object loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Clinic Appointments API"
    debug: bool = False
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    database_url: str = Field(..., alias="DATABASE_URL")
    jwt_secret: str = Field(..., alias="JWT_SECRET")
    jwt_algorithm: str = "HS256"
    jwt_expires_in_minutes: int = Field(60 * 24, alias="JWT_EXPIRES_IN")

    default_timezone: str = Field("UTC", alias="DEFAULT_TIMEZONE")

    payment_api_base: str | None = Field(None, alias="PAYMENT_API_BASE")
    payment_api_key: str | None = Field(None, alias="PAYMENT_API_KEY")
    payment_timeout_seconds: float = Field(5.0, alias="PAYMENT_TIMEOUT_SECONDS")

    default_available_from: time = Field(time(9, 0), alias="DEFAULT_AVAILABLE_FROM")
    default_available_to: time = Field(time(17, 0), alias="DEFAULT_AVAILABLE_TO")
    default_appointment_duration: int = Field(30, alias="DEFAULT_APPOINTMENT_DURATION", gt=0)
    default_daily_appointment_limit: int = Field(18, alias="DEFAULT_DAILY_APPOINTMENT_LIMIT", ge=0)

    enforce_status_transitions: bool = Field(True, alias="ENFORCE_STATUS_TRANSITIONS")
    admin_status_override: bool = Field(True, alias="ADMIN_STATUS_OVERRIDE")


@lru_cache(1)
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()


settings = get_settings()
