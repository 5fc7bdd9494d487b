"""Composition of the notification pipeline built once per process."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from timekeeper.config import Settings
from timekeeper.infrastructure.email import EmailTransport, build_transport
from timekeeper.infrastructure.notifications import NotificationPublisher, notification_publisher
from timekeeper.utils import get_app_timezone, now_in_app_timezone

from .channels import ChannelRegistry, EmailChannel, InAppChannel, PushChannel, SmsChannel
from .ledger import NotificationLedger
from .mentions import MentionResolver
from .reminders import ReminderRuleEvaluator
from .scheduler import ReminderScheduler
from .templates import TemplateEngine

logger = logging.getLogger(__name__)


class NotificationServices:
    """Shared notification components, handed to requests and background jobs.

    Ledgers and mention resolvers are bound to a database session and are
    therefore created per unit of work through :meth:`ledger` and
    :meth:`mentions`.
    """

    def __init__(
        self,
        settings: Settings,
        session_factory: Callable[[], Session],
        *,
        templates: TemplateEngine,
        email_channel: EmailChannel,
        channels: ChannelRegistry,
        clock: Callable[[], datetime] = now_in_app_timezone,
    ) -> None:
        self.settings = settings
        self.templates = templates
        self.email_channel = email_channel
        self.channels = channels
        self.clock = clock
        self.scheduler = ReminderScheduler(
            session_factory,
            self.ledger,
            evaluator=ReminderRuleEvaluator(
                timedelta(minutes=settings.reminder_tick_minutes)
            ),
            cleanup_interval=timedelta(hours=settings.cleanup_interval_hours),
            retention_days=settings.notification_retention_days,
            max_workers=settings.scheduler_max_workers,
            timezone=get_app_timezone(),
            clock=clock,
        )

    def ledger(
        self, session: Session, *, clock: Callable[[], datetime] | None = None
    ) -> NotificationLedger:
        return NotificationLedger(
            session,
            self.channels,
            clock=clock or self.clock,
            frontend_url=self.settings.frontend_url,
            default_hours_to_log=self.settings.default_hours_to_log,
        )

    def mentions(self, session: Session) -> MentionResolver:
        return MentionResolver(
            session,
            self.ledger(session),
            search_limit=self.settings.mention_search_limit,
        )

    def email_status(self) -> dict[str, Any]:
        return {
            "enabled": self.email_channel.enabled,
            "configured": self.email_channel.configured,
            "connected": self.email_channel.connected,
            "provider": self.settings.email_provider,
            "from_address": self.settings.email_from,
            "from_name": self.settings.email_from_name,
        }

    def startup(self) -> None:
        """Verify the email transport and start background jobs."""

        if self.email_channel.enabled:
            self.email_channel.configure()
        else:
            logger.warning("Email notifications are disabled; EMAIL deliveries will fail")

        if self.settings.scheduler_enabled:
            self.scheduler.start()
        else:
            logger.info("Reminder scheduler disabled via settings (SCHEDULER_ENABLED=false)")

    def shutdown(self) -> None:
        self.scheduler.stop()
        self.email_channel.close()


def build_notification_services(
    settings: Settings,
    session_factory: Callable[[], Session],
    *,
    transport: EmailTransport | None = None,
    publisher: NotificationPublisher | None = notification_publisher,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], datetime] = now_in_app_timezone,
) -> NotificationServices:
    """Wire the notification pipeline from ``settings``."""

    templates = TemplateEngine(company_name=settings.resolved_company_name)
    email_channel = EmailChannel(
        transport if transport is not None else build_transport(settings),
        templates,
        enabled=settings.email_enabled,
        max_retries=settings.email_max_retries,
        retry_delay_ms=settings.email_retry_delay,
        sleep=sleep,
    )
    channels = ChannelRegistry(
        [email_channel, InAppChannel(publisher), PushChannel(), SmsChannel()]
    )
    return NotificationServices(
        settings,
        session_factory,
        templates=templates,
        email_channel=email_channel,
        channels=channels,
        clock=clock,
    )


__all__ = ["NotificationServices", "build_notification_services"]
