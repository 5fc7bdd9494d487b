"""Delivery channels turning notification records into delivered messages."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Protocol

from timekeeper.domain.entities import (
    DeliveryResult,
    DirectoryUser,
    Notification,
    NotificationType,
)
from timekeeper.infrastructure.email import (
    EmailConfigurationError,
    EmailDeliveryError,
    EmailTransport,
    OutgoingEmail,
)
from timekeeper.infrastructure.notifications import NotificationPublisher

from .templates import DEFAULT_TEMPLATE_ID, TemplateEngine

logger = logging.getLogger(__name__)


class DeliveryChannel(Protocol):
    type: NotificationType

    def send(
        self, notification: Notification, recipient: DirectoryUser
    ) -> DeliveryResult:  # pragma: no cover - Protocol
        ...


class EmailChannel:
    """Render notifications through the template engine and email them.

    The transport is verified once, either explicitly through
    :meth:`configure` at startup or lazily on the first send. When
    verification fails the channel stays unconfigured and every send reports
    a failure instead of raising.
    """

    type = NotificationType.EMAIL

    def __init__(
        self,
        transport: EmailTransport | None,
        templates: TemplateEngine,
        *,
        enabled: bool = True,
        max_retries: int = 0,
        retry_delay_ms: int = 0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._transport = transport
        self._templates = templates
        self.enabled = enabled and transport is not None
        self.max_retries = max_retries
        self.retry_delay_ms = retry_delay_ms
        self._sleep = sleep
        self._lock = threading.Lock()
        self._verified: bool | None = None

    @property
    def configured(self) -> bool:
        return bool(self._verified)

    @property
    def connected(self) -> bool:
        return bool(getattr(self._transport, "connected", False))

    def configure(self) -> bool:
        """Verify the transport; failures are logged and leave the channel unconfigured."""

        with self._lock:
            return self._configure_locked()

    def test_connection(self) -> bool:
        """Re-run transport verification without changing the configured state."""

        if not self.enabled or self._transport is None:
            return False
        with self._lock:
            try:
                self._transport.verify()
            except EmailConfigurationError as exc:
                logger.error("Email connection test failed: %s", exc)
                return False
        return True

    def send(self, notification: Notification, recipient: DirectoryUser) -> DeliveryResult:
        if not recipient.preferences.email_notifications:
            logger.info(
                "Email notifications disabled for user %s; notification %s not emailed",
                recipient.id,
                notification.id,
            )
            return DeliveryResult.failed("recipient disabled email notifications")

        data = notification.data or {}
        variables = {
            "subject": notification.title,
            "message": notification.message,
            "userName": recipient.full_name,
            **(data.get("variables") or {}),
        }
        today = notification.created_at.date() if notification.created_at else None
        content = self._templates.render(
            data.get("template") or DEFAULT_TEMPLATE_ID,
            variables,
            recipient_email=recipient.email,
            today=today,
        )
        email = OutgoingEmail(
            to=recipient.email, subject=content.subject, html=content.html, text=content.text
        )
        return self.deliver(email)

    def deliver(self, email: OutgoingEmail) -> DeliveryResult:
        """Hand a rendered email to the transport, retrying with backoff."""

        if not self.enabled:
            logger.info("Email delivery is disabled; skipping message to %s", email.to)
            return DeliveryResult.failed("email delivery disabled")

        attempts = self.max_retries + 1
        for attempt in range(attempts):
            with self._lock:
                if not self._configure_locked():
                    return DeliveryResult.failed("email channel not configured")
                try:
                    self._transport.send(email)
                except EmailDeliveryError as exc:
                    error = str(exc)
                else:
                    logger.info("Email sent to %s", email.to)
                    return DeliveryResult.delivered()

            if attempt < attempts - 1:
                delay = self.retry_delay_ms * (2**attempt) / 1000
                logger.warning(
                    "Email to %s failed (attempt %d/%d): %s. Retrying in %.1f seconds...",
                    email.to,
                    attempt + 1,
                    attempts,
                    error,
                    delay,
                )
                self._sleep(delay)

        logger.error("Email to %s failed after %d attempts: %s", email.to, attempts, error)
        return DeliveryResult.failed(error)

    def close(self) -> None:
        if self._transport is not None:
            with self._lock:
                self._transport.close()

    def _configure_locked(self) -> bool:
        if self._verified is not None:
            return self._verified
        if not self.enabled:
            logger.info("Email notifications are disabled")
            self._verified = False
            return False
        try:
            self._transport.verify()
        except EmailConfigurationError as exc:
            logger.error("Email service initialization failed: %s", exc)
            self._verified = False
        else:
            logger.info("Email service initialized successfully")
            self._verified = True
        return self._verified


class InAppChannel:
    """In-app notifications are delivered by the ledger record itself.

    Users with an open websocket additionally receive the record right away.
    """

    type = NotificationType.IN_APP

    def __init__(self, publisher: NotificationPublisher | None = None) -> None:
        self._publisher = publisher

    def send(self, notification: Notification, recipient: DirectoryUser) -> DeliveryResult:
        if self._publisher is not None:
            self._publisher.dispatch(notification)
        return DeliveryResult.delivered()


class PushChannel:
    type = NotificationType.PUSH

    def send(self, notification: Notification, recipient: DirectoryUser) -> DeliveryResult:
        # TODO: hand off to a push provider once device tokens are stored.
        logger.info(
            "Push notification would be sent to user %s: %s",
            recipient.id,
            notification.title,
        )
        return DeliveryResult.delivered()


class SmsChannel:
    type = NotificationType.SMS

    def send(self, notification: Notification, recipient: DirectoryUser) -> DeliveryResult:
        logger.warning("SMS delivery requested for notification %s", notification.id)
        return DeliveryResult.failed("unsupported channel: SMS")


class ChannelRegistry:
    """Map notification types to the channel that delivers them."""

    def __init__(self, channels: Iterable[DeliveryChannel]) -> None:
        self._channels: Mapping[NotificationType, DeliveryChannel] = {
            channel.type: channel for channel in channels
        }

    def get(self, notification_type: NotificationType) -> DeliveryChannel | None:
        return self._channels.get(notification_type)

    def send(self, notification: Notification, recipient: DirectoryUser) -> DeliveryResult:
        channel = self.get(notification.type)
        if channel is None:
            return DeliveryResult.failed(f"unsupported channel: {notification.type.value}")
        return channel.send(notification, recipient)


__all__ = [
    "ChannelRegistry",
    "DeliveryChannel",
    "EmailChannel",
    "InAppChannel",
    "PushChannel",
    "SmsChannel",
]
