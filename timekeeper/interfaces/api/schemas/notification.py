"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from timekeeper.domain.entities import NotificationStatus, NotificationType


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    message: str
    type: NotificationType
    status: NotificationStatus
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
    sent_at: datetime | None = None
    read_at: datetime | None = None


class NotificationPageRead(BaseModel):
    items: list[NotificationRead]
    total: int
    page: int
    page_size: int
    total_pages: int


class UnreadCountRead(BaseModel):
    count: int


class MarkAllReadResponse(BaseModel):
    updated: int


class NotificationTestRequest(BaseModel):
    """Send a sample notification to the authenticated user."""

    type: Literal["email", "push", "in_app", "sms"] = "in_app"
    title: str = Field(default="Test Notification", min_length=1, max_length=200)
    message: str = Field(
        default="This is a test notification.", min_length=1, max_length=2000
    )

    def notification_type(self) -> NotificationType:
        return NotificationType(self.type.upper())


class TimesheetReminderRequest(BaseModel):
    reminder_date: date | None = None


class WeeklyReportRequest(BaseModel):
    total_hours: float = Field(default=0, ge=0)
    projects: int = Field(default=0, ge=0)
    tasks: int = Field(default=0, ge=0)

    def as_report(self) -> dict[str, Any]:
        return {
            "totalHours": self.total_hours,
            "projects": self.projects,
            "tasks": self.tasks,
        }


class ProjectUpdateRequest(BaseModel):
    project_name: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=2000)


__all__ = [
    "MarkAllReadResponse",
    "NotificationPageRead",
    "NotificationRead",
    "ProjectUpdateRequest",
    "NotificationTestRequest",
    "TimesheetReminderRequest",
    "UnreadCountRead",
    "WeeklyReportRequest",
]
