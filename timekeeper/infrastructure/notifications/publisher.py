"""Utility helpers to push notifications to websocket subscribers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from anyio import from_thread

from timekeeper.domain.entities import Notification

from .manager import NotificationConnectionManager, notification_manager

logger = logging.getLogger(__name__)


class NotificationPublisher:
    """Serialize notifications and schedule their delivery."""

    def __init__(self, manager: NotificationConnectionManager) -> None:
        self._manager = manager

    def dispatch(self, notification: Notification) -> bool:
        """Schedule ``notification`` for its user's open websockets.

        Returns ``False`` when the user has no listener or no event loop is
        reachable from the calling thread.
        """

        if not self._manager.has_connections(notification.user_id):
            return False

        message = {"type": "notification", "data": serialize_notification(notification)}
        coroutine_args = (notification.user_id, message)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            loop.create_task(self._manager.send_to_user(*coroutine_args))
            return True

        try:
            # Works from worker threads started by anyio (sync FastAPI routes).
            from_thread.run(self._manager.send_to_user, *coroutine_args)
            return True
        except RuntimeError:
            pass

        loop = self._manager.loop
        if loop is None or loop.is_closed():
            logger.debug(
                "No event loop available to push notification %s", notification.id
            )
            return False
        asyncio.run_coroutine_threadsafe(self._manager.send_to_user(*coroutine_args), loop)
        return True


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the websocket payload representation for ``notification``."""

    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "title": notification.title,
        "message": notification.message,
        "type": notification.type.value,
        "status": notification.status.value,
        "data": notification.data or {},
        "created_at": notification.created_at.isoformat()
        if notification.created_at
        else None,
        "sent_at": notification.sent_at.isoformat() if notification.sent_at else None,
        "read_at": notification.read_at.isoformat() if notification.read_at else None,
    }


notification_publisher = NotificationPublisher(notification_manager)


__all__ = [
    "NotificationPublisher",
    "notification_publisher",
    "serialize_notification",
]
