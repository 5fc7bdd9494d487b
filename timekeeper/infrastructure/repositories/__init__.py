"""Repository implementations for infrastructure layer."""

from .notification_repository import NotificationRepository
from .timesheet_repository import TimesheetRepository
from .user_mention_repository import UserMentionRepository
from .user_repository import UserRepository

__all__ = [
    "NotificationRepository",
    "TimesheetRepository",
    "UserMentionRepository",
    "UserRepository",
]
