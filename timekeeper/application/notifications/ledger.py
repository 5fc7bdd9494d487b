"""Notification ledger: the persisted record of notifications and their status."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from timekeeper.domain.entities import (
    DeliveryResult,
    DirectoryUser,
    Notification,
    NotificationStatus,
    NotificationType,
)
from timekeeper.infrastructure.repositories import NotificationRepository, UserRepository
from timekeeper.utils import now_in_app_timezone

from .channels import ChannelRegistry
from .templates import format_display_date

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Timesheet Reminder"
REMINDER_MESSAGE = "Don't forget to log your hours for today!"

# Statuses that may be purged once old enough; PENDING and FAILED stay for operators.
PURGEABLE_STATUSES = (NotificationStatus.READ, NotificationStatus.SENT)


class NotificationNotFoundError(ValueError):
    """The notification does not exist or belongs to another user."""

    def __init__(self, notification_id: int) -> None:
        super().__init__(f"Notification {notification_id} not found")
        self.notification_id = notification_id


class InvalidNotificationTransitionError(ValueError):
    """A status change that the notification lifecycle does not allow."""


@dataclass(frozen=True)
class NotificationPage:
    items: Sequence[Notification]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


class NotificationLedger:
    """Create notifications, record delivery outcomes and apply user actions."""

    def __init__(
        self,
        session: Session,
        channels: ChannelRegistry,
        *,
        clock: Callable[[], datetime] = now_in_app_timezone,
        frontend_url: str = "http://localhost:3000",
        default_hours_to_log: str = "8",
    ) -> None:
        self.session = session
        self.channels = channels
        self.clock = clock
        self.frontend_url = frontend_url.rstrip("/")
        self.default_hours_to_log = default_hours_to_log
        self._notifications = NotificationRepository(session)
        self._users = UserRepository(session)

    def create(
        self,
        user_id: int,
        title: str,
        message: str,
        type: NotificationType,
        data: Mapping[str, Any] | None = None,
    ) -> Notification:
        """Insert a ``PENDING`` notification; delivery is left to the caller."""

        notification = Notification(
            id=None,
            user_id=user_id,
            title=title,
            message=message,
            type=NotificationType(type),
            status=NotificationStatus.PENDING,
            data=dict(data or {}),
            created_at=self.clock(),
        )
        return self._notifications.create(notification)

    def attempt_delivery(
        self, notification: Notification, recipient: DirectoryUser | None = None
    ) -> Notification:
        """Send ``notification`` through its channel and record the outcome.

        Only ``PENDING`` notifications are delivered. Success stores ``SENT``
        with ``sent_at``; any failure stores ``FAILED``. Nothing is retried
        here; the email channel retries transport errors itself.
        """

        if notification.id is None:
            raise ValueError("Notification must be persisted before delivery")
        if notification.status is not NotificationStatus.PENDING:
            raise InvalidNotificationTransitionError(
                f"Notification {notification.id} is {notification.status.value}, "
                "only PENDING notifications can be delivered"
            )

        recipient = recipient or self._users.get(notification.user_id)
        if recipient is None:
            result = DeliveryResult.failed("recipient not found")
        else:
            try:
                result = self.channels.send(notification, recipient)
            except Exception as exc:
                logger.exception(
                    "Delivery of notification %s raised an error", notification.id
                )
                result = DeliveryResult.failed(str(exc))

        if result.ok:
            return self._notifications.update_status(
                notification.id, NotificationStatus.SENT, sent_at=self.clock()
            )

        logger.warning(
            "Delivery of %s notification %s to user %s failed: %s",
            notification.type.value,
            notification.id,
            notification.user_id,
            result.reason,
        )
        return self._notifications.update_status(notification.id, NotificationStatus.FAILED)

    def notify(
        self,
        user_id: int,
        title: str,
        message: str,
        type: NotificationType,
        data: Mapping[str, Any] | None = None,
        *,
        recipient: DirectoryUser | None = None,
    ) -> Notification:
        """Create a notification and immediately attempt its delivery."""

        notification = self.create(user_id, title, message, type, data)
        return self.attempt_delivery(notification, recipient)

    def get(self, notification_id: int, user_id: int) -> Notification:
        notification = self._notifications.get_for_user(notification_id, user_id=user_id)
        if notification is None:
            raise NotificationNotFoundError(notification_id)
        return notification

    def mark_read(self, notification_id: int, user_id: int) -> Notification:
        """Mark an owned notification read; repeated calls keep the first ``read_at``."""

        notification = self._notifications.mark_read(
            notification_id, user_id=user_id, read_at=self.clock()
        )
        if notification is None:
            raise NotificationNotFoundError(notification_id)
        return notification

    def mark_many_read(self, notification_ids: Sequence[int], user_id: int) -> int:
        return self._notifications.mark_as_read(
            notification_ids, user_id=user_id, read_at=self.clock()
        )

    def mark_all_read(self, user_id: int) -> int:
        return self._notifications.mark_all_read(user_id, read_at=self.clock())

    def delete(self, notification_id: int, user_id: int) -> None:
        if not self._notifications.delete_for_user(notification_id, user_id=user_id):
            raise NotificationNotFoundError(notification_id)

    def cleanup(self, max_age_days: int = 30) -> int:
        """Delete read or sent notifications older than ``max_age_days``."""

        cutoff = self.clock() - timedelta(days=max_age_days)
        deleted = self._notifications.delete_older_than(
            cutoff, statuses=PURGEABLE_STATUSES
        )
        logger.info(
            "Removed %d notifications older than %d days", deleted, max_age_days
        )
        return deleted

    def list_for_user(
        self, user_id: int, page: int = 1, page_size: int = 20
    ) -> NotificationPage:
        page = max(page, 1)
        page_size = max(page_size, 1)
        items = self._notifications.list_for_user(
            user_id, offset=(page - 1) * page_size, limit=page_size
        )
        total = self._notifications.count_for_user(user_id)
        return NotificationPage(items=items, total=total, page=page, page_size=page_size)

    def list_unread(self, user_id: int) -> Sequence[Notification]:
        return self._notifications.list_unread_for_user(user_id)

    def unread_count(self, user_id: int) -> int:
        return self._notifications.count_unread_for_user(user_id)

    def send_timesheet_reminder(
        self,
        user: DirectoryUser,
        reminder_date: date | None = None,
        *,
        hours_to_log: str | None = None,
    ) -> Notification:
        """Remind ``user`` to log hours for ``reminder_date``.

        Users who switched off reminders or email still get an in-app record.
        """

        reminder_date = reminder_date or self.clock().date()
        data = {
            "type": "timesheet_reminder",
            "date": reminder_date.isoformat(),
            "template": "timesheet_reminder",
            "variables": {
                "date": format_display_date(reminder_date),
                "hoursToLog": hours_to_log or self.default_hours_to_log,
                "timesheetUrl": f"{self.frontend_url}/timesheets",
            },
        }
        preferences = user.preferences
        if not (preferences.timesheet_reminders and preferences.email_notifications):
            logger.info("Timesheet reminder emails disabled for user %s", user.id)
            channel = NotificationType.IN_APP
        else:
            channel = NotificationType.EMAIL
        return self.notify(
            user.id, REMINDER_TITLE, REMINDER_MESSAGE, channel, data, recipient=user
        )

    def send_weekly_report(
        self, user: DirectoryUser, report: Mapping[str, Any] | None = None
    ) -> Notification:
        report = dict(report or {})
        details = (
            f"Total Hours: {report.get('totalHours', 0)}\n"
            f"Projects: {report.get('projects', 0)}\n"
            f"Tasks: {report.get('tasks', 0)}"
        )
        data = {
            "type": "weekly_report",
            "reportData": report,
            "date": self.clock().isoformat(),
            "template": "detailed",
            "variables": {"details": details},
        }
        return self.notify(
            user.id,
            "Weekly Timesheet Report",
            "Your weekly timesheet summary is ready.",
            NotificationType.EMAIL,
            data,
            recipient=user,
        )

    def send_project_update(
        self, user: DirectoryUser, project_name: str, update_message: str
    ) -> Notification:
        data = {
            "type": "project_update",
            "projectName": project_name,
            "date": self.clock().isoformat(),
        }
        return self.notify(
            user.id,
            f"Project Update: {project_name}",
            update_message,
            NotificationType.EMAIL,
            data,
            recipient=user,
        )


__all__ = [
    "InvalidNotificationTransitionError",
    "NotificationLedger",
    "NotificationNotFoundError",
    "NotificationPage",
    "REMINDER_MESSAGE",
    "REMINDER_TITLE",
]
