"""Notification pipeline: templates, channels, ledger, mentions and reminders."""

from .channels import (
    ChannelRegistry,
    DeliveryChannel,
    EmailChannel,
    InAppChannel,
    PushChannel,
    SmsChannel,
)
from .ledger import (
    InvalidNotificationTransitionError,
    NotificationLedger,
    NotificationNotFoundError,
    NotificationPage,
)
from .mentions import MentionOutcome, MentionResolver
from .reminders import ReminderDecision, ReminderRuleEvaluator
from .scheduler import ReminderScheduler, ReminderSweepResult
from .service import NotificationServices, build_notification_services
from .templates import DEFAULT_TEMPLATE_ID, DEFAULT_TEMPLATES, TemplateEngine

__all__ = [
    "ChannelRegistry",
    "DEFAULT_TEMPLATES",
    "DEFAULT_TEMPLATE_ID",
    "DeliveryChannel",
    "EmailChannel",
    "InAppChannel",
    "InvalidNotificationTransitionError",
    "MentionOutcome",
    "MentionResolver",
    "NotificationLedger",
    "NotificationNotFoundError",
    "NotificationPage",
    "NotificationServices",
    "PushChannel",
    "ReminderDecision",
    "ReminderRuleEvaluator",
    "ReminderScheduler",
    "ReminderSweepResult",
    "SmsChannel",
    "TemplateEngine",
    "build_notification_services",
]
