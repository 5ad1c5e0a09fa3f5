from datetime import date, datetime
from functools import lru_cache
from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///./followup.db")
    database_echo: bool = Field(default=False)

    # Auth
    jwt_secret_key: str = Field(default="change-me-in-production")
    token_expire_seconds: int = Field(default=86400)  # 24 hours

    # Clinic calendar: "today" for overdue math is taken in this zone
    clinic_timezone: str = Field(default="America/Sao_Paulo")

    # Logging
    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def clinic_today(settings: Settings = None) -> date:
    """Current calendar date in the clinic's timezone."""
    settings = settings or get_settings()
    return datetime.now(ZoneInfo(settings.clinic_timezone)).date()
