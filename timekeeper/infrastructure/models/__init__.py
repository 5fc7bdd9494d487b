"""ORM models used by the application infrastructure."""

from .user import UserModel, UserPreferencesModel
from .timesheet import TimesheetModel
from .notification import NotificationModel
from .user_mention import UserMentionModel

__all__ = [
    "UserModel",
    "UserPreferencesModel",
    "TimesheetModel",
    "NotificationModel",
    "UserMentionModel",
]
