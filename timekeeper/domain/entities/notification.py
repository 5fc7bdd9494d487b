"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class NotificationType(str, Enum):
    """Delivery channel a notification is addressed to."""

    EMAIL = "EMAIL"
    PUSH = "PUSH"
    SMS = "SMS"
    IN_APP = "IN_APP"


class NotificationStatus(str, Enum):
    """Lifecycle of a notification record.

    ``PENDING`` moves to ``SENT`` or ``FAILED`` after a delivery attempt. Any
    non-read state moves to ``READ`` only through an explicit user action.
    """

    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"
    READ = "READ"


@dataclass
class Notification:
    """Information message delivered to a specific user."""

    id: int | None
    user_id: int
    title: str
    message: str
    type: NotificationType
    status: NotificationStatus = NotificationStatus.PENDING
    data: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    sent_at: datetime | None = None
    read_at: datetime | None = None

    @property
    def is_read(self) -> bool:
        return self.status is NotificationStatus.READ


__all__ = ["Notification", "NotificationStatus", "NotificationType"]
