"""Schemas used by the email administration endpoints."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, EmailStr, Field

from .notification import WeeklyReportRequest


class EmailStatusRead(BaseModel):
    enabled: bool
    configured: bool
    connected: bool
    provider: str
    from_address: str
    from_name: str


class EmailTemplateRead(BaseModel):
    id: str
    name: str
    subject: str
    variables: list[str]


class ConnectionTestRead(BaseModel):
    success: bool
    message: str


class EmailTestSendRequest(BaseModel):
    to: EmailStr
    template: str = "default"
    subject: str = Field(default="Test Email", min_length=1, max_length=200)
    message: str = Field(
        default="This is a test email to verify the email configuration.",
        min_length=1,
        max_length=5000,
    )
    variables: dict[str, str] = Field(default_factory=dict)


class WelcomeEmailRequest(BaseModel):
    to: EmailStr
    user_name: str = Field(..., min_length=1, max_length=100)


class ReminderDispatchRequest(BaseModel):
    """Timesheet reminder sent by an administrator to another user."""

    user_email: EmailStr
    reminder_date: date | None = None
    hours_to_log: str | None = Field(default=None, min_length=1, max_length=10)


class WeeklyReportDispatchRequest(WeeklyReportRequest):
    user_email: EmailStr


class EmailSendResult(BaseModel):
    success: bool
    detail: str | None = None


class SchedulerStatusRead(BaseModel):
    running: bool
    last_run: datetime | None = None
    next_run: datetime | None = None
    last_result: dict[str, Any] | None = None
    last_cleanup: datetime | None = None


class CleanupRequest(BaseModel):
    max_age_days: int | None = Field(default=None, ge=1)


class CleanupResult(BaseModel):
    deleted: int


__all__ = [
    "CleanupRequest",
    "CleanupResult",
    "ConnectionTestRead",
    "EmailSendResult",
    "EmailStatusRead",
    "EmailTemplateRead",
    "EmailTestSendRequest",
    "ReminderDispatchRequest",
    "SchedulerStatusRead",
    "WeeklyReportDispatchRequest",
    "WelcomeEmailRequest",
]
