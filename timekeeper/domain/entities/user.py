"""Read-only view of users as exposed by the user directory."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_REMINDER_TIME = "09:00"
DEFAULT_REMINDER_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")


@dataclass(frozen=True)
class NotificationPreferences:
    """Notification settings chosen by a user.

    Users without a stored preferences row get these defaults.
    """

    email_notifications: bool = True
    timesheet_reminders: bool = True
    reminder_time: str = DEFAULT_REMINDER_TIME
    reminder_days: frozenset[str] = field(
        default_factory=lambda: frozenset(DEFAULT_REMINDER_DAYS)
    )


@dataclass(frozen=True)
class DirectoryUser:
    """Core attributes of a user relevant to notification delivery."""

    id: int
    first_name: str
    last_name: str
    email: str
    is_active: bool = True
    role: str = "EMPLOYEE"
    preferences: NotificationPreferences = field(default_factory=NotificationPreferences)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def is_admin(self) -> bool:
        """Return ``True`` when the user is an administrator."""

        return self.role.upper() == "ADMIN"


__all__ = [
    "DEFAULT_REMINDER_DAYS",
    "DEFAULT_REMINDER_TIME",
    "DirectoryUser",
    "NotificationPreferences",
]
