from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "LeaveDesk"
    environment: str = "local"
    database_url: str = "sqlite:///./leavedesk.db"
    corporate_email_domain: str = "technetworkinc.com"
    bootstrap_token: str = ""
    session_max_age_days: int = 14
    min_password_length: int = 10
    default_annual_leave: int = 15
    default_sick_leave: int = 10
    require_coverage_partner: bool = True
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


def corporate_email_suffix() -> str:
    domain = get_settings().corporate_email_domain.strip().lower().lstrip("@")
    return f"@{domain}"
