"""Registry of the websockets that stream in-app notifications to users."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class NotificationConnectionManager:
    """Track the open notification streams of each user.

    A user may keep several tabs open, so connections are grouped per user id.
    The event loop serving the sockets is remembered so that notifications
    created in worker threads (reminder sweeps) can be scheduled onto it.
    """

    def __init__(self) -> None:
        self._connections: defaultdict[int, set[WebSocket]] = defaultdict(set)
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def loop(self) -> asyncio.AbstractEventLoop | None:
        return self._loop

    async def connect(self, user_id: int, websocket: WebSocket) -> None:
        await websocket.accept()
        self._loop = asyncio.get_running_loop()
        self._connections[user_id].add(websocket)
        logger.debug(
            "User %s opened a notification stream (%d open)",
            user_id,
            self.connection_count(user_id),
        )

    def disconnect(self, user_id: int, websocket: WebSocket) -> None:
        streams = self._connections.get(user_id)
        if streams is None:
            return
        streams.discard(websocket)
        if not streams:
            del self._connections[user_id]

    def connection_count(self, user_id: int) -> int:
        return len(self._connections.get(user_id, ()))

    def has_connections(self, user_id: int) -> bool:
        return self.connection_count(user_id) > 0

    async def send_to_user(self, user_id: int, message: dict[str, Any]) -> int:
        """Send ``message`` to every stream of ``user_id``.

        Streams that fail to accept the message are dropped. Returns the number
        of streams that received it.
        """

        delivered = 0
        for websocket in list(self._connections.get(user_id, ())):
            try:
                await websocket.send_json(message)
            except Exception as exc:
                logger.debug("Dropping notification stream of user %s: %s", user_id, exc)
                self.disconnect(user_id, websocket)
            else:
                delivered += 1
        return delivered

    async def close_all(self, code: int = 1001) -> None:
        """Close every open stream, used when the application shuts down."""

        streams = [
            (user_id, websocket)
            for user_id, sockets in self._connections.items()
            for websocket in sockets
        ]
        self._connections.clear()
        for user_id, websocket in streams:
            try:
                await websocket.close(code=code)
            except Exception as exc:
                logger.debug("Stream of user %s already closed: %s", user_id, exc)


notification_manager = NotificationConnectionManager()


__all__ = ["NotificationConnectionManager", "notification_manager"]
