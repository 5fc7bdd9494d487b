"""Domain entities exposed by the application."""

from .delivery import DeliveryResult
from .email_template import EmailTemplate, RenderedContent
from .mention import Mention, MentionCandidate
from .notification import Notification, NotificationStatus, NotificationType
from .user import (
    DEFAULT_REMINDER_DAYS,
    DEFAULT_REMINDER_TIME,
    DirectoryUser,
    NotificationPreferences,
)

__all__ = [
    "DEFAULT_REMINDER_DAYS",
    "DEFAULT_REMINDER_TIME",
    "DeliveryResult",
    "DirectoryUser",
    "EmailTemplate",
    "Mention",
    "MentionCandidate",
    "Notification",
    "NotificationPreferences",
    "NotificationStatus",
    "NotificationType",
    "RenderedContent",
]
