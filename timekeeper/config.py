"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"

EmailProvider = Literal["smtp", "gmail", "mailgun", "sendgrid"]


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        description="Secret key used to verify JWT bearer tokens", min_length=1
    )
    access_token_expire_minutes: int = Field(
        default=60,
        description="Number of minutes before access tokens expire",
        gt=0,
    )
    app_timezone: str = Field(
        default="UTC",
        description="Timezone used to evaluate reminder days and times",
    )

    email_enabled: bool = Field(
        default=False, description="Whether outgoing email delivery is enabled"
    )
    email_provider: EmailProvider = Field(
        default="smtp", description="Transport used to deliver email"
    )
    email_host: str = Field(default="localhost", description="SMTP server host")
    email_port: int = Field(default=587, description="SMTP server port", gt=0, lt=65536)
    email_secure: bool = Field(
        default=False, description="Use implicit TLS (SMTPS) instead of STARTTLS"
    )
    email_username: str | None = Field(default=None, description="SMTP username")
    email_password: str | None = Field(default=None, description="SMTP password")
    email_from: str = Field(
        default="noreply@timesheet.com",
        description="Email address that will appear as the sender",
        min_length=3,
    )
    email_from_name: str = Field(
        default="Timesheet System", description="Display name of the sender"
    )
    email_reply_to: str | None = Field(default=None, description="Reply-To address")
    email_max_retries: int = Field(
        default=3,
        description="Extra delivery attempts after a failed email send",
        ge=0,
    )
    email_retry_delay: int = Field(
        default=5000,
        description="Base delay in milliseconds between email retries (doubles each attempt)",
        ge=0,
    )
    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used when EMAIL_PROVIDER is 'sendgrid'",
    )

    frontend_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the web client, used to build links in emails",
    )
    company_name: str | None = Field(
        default=None,
        description="Company name injected into templates (defaults to the sender name)",
    )
    scheduler_enabled: bool = Field(
        default=True, description="Start the reminder scheduler with the application"
    )
    reminder_tick_minutes: int = Field(
        default=60, description="Minutes between reminder sweeps", gt=0, le=1440
    )
    scheduler_max_workers: int = Field(
        default=4, description="Users evaluated concurrently during a sweep", gt=0
    )
    notification_retention_days: int = Field(
        default=30, description="Age after which read/sent notifications are purged", gt=0
    )
    cleanup_interval_hours: int = Field(
        default=24, description="Hours between retention sweeps", gt=0
    )
    mention_search_limit: int = Field(
        default=5, description="Maximum users matched per @mention token", gt=0
    )
    default_hours_to_log: str = Field(
        default="8", description="Hours suggested in timesheet reminders"
    )

    @model_validator(mode="after")
    def _validate_email_settings(self) -> "Settings":
        if "@" not in self.email_from:
            raise ValueError("EMAIL_FROM must be a valid email address")
        if (
            self.email_enabled
            and self.email_provider == "sendgrid"
            and not self.sendgrid_api_key
        ):
            raise ValueError(
                "SENDGRID_API_KEY must be provided when EMAIL_PROVIDER is 'sendgrid'"
            )
        return self

    @property
    def resolved_company_name(self) -> str:
        return self.company_name or self.email_from_name


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["EmailProvider", "Settings", "get_settings", "reset_settings_cache"]
