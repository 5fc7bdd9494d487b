"""Rules deciding whether a user is due a timesheet reminder."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from timekeeper.domain.entities import DirectoryUser, NotificationPreferences

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

TimesheetCheck = Callable[[int, date], bool]


def weekday_name(value: date) -> str:
    return WEEKDAY_NAMES[value.weekday()]


def parse_reminder_time(value: str) -> time:
    """Parse an ``HH:MM`` reminder time."""

    hours, _, minutes = (value or "").strip().partition(":")
    if not (hours.isdigit() and minutes.isdigit() and len(minutes) == 2):
        raise ValueError(f"Invalid reminder time '{value}', expected HH:MM")
    return time(int(hours), int(minutes))


@dataclass(frozen=True)
class ReminderDecision:
    due: bool
    reason: str
    reminder_date: date | None = None


class ReminderRuleEvaluator:
    """Decide, without side effects, whether a reminder is due for a user.

    A reminder is due when the user's ``reminder_time`` on some date falls in
    the window ``(since, now]``, that date is one of the user's reminder days
    and the user has not logged a timesheet for it yet. With ``since``
    defaulting to ``now - window``, sweeps running every ``window`` cover each
    minute of the day exactly once.
    """

    def __init__(self, window: timedelta = timedelta(hours=1)) -> None:
        if window <= timedelta(0) or window > timedelta(days=1):
            raise ValueError("Reminder window must be positive and at most one day")
        self.window = window

    def due_date(
        self,
        preferences: NotificationPreferences,
        now: datetime,
        *,
        since: datetime | None = None,
    ) -> date | None:
        """Return the date whose reminder time falls inside the window, if any."""

        since = since if since is not None else now - self.window
        reminder_time = parse_reminder_time(preferences.reminder_time)
        # Newest first. The window may span several calendar days, and the extra
        # day covers a ``since`` expressed in another UTC offset.
        day = now.date()
        while day >= since.date() - timedelta(days=1):
            scheduled = datetime.combine(day, reminder_time, tzinfo=now.tzinfo)
            if since < scheduled <= now and weekday_name(day) in preferences.reminder_days:
                return day
            day -= timedelta(days=1)
        return None

    def evaluate(
        self,
        user: DirectoryUser,
        now: datetime,
        has_timesheet: TimesheetCheck,
        *,
        since: datetime | None = None,
    ) -> ReminderDecision:
        preferences = user.preferences
        if not (preferences.timesheet_reminders and preferences.email_notifications):
            return ReminderDecision(False, "reminders disabled")

        try:
            reminder_date = self.due_date(preferences, now, since=since)
        except ValueError as exc:
            logger.warning("Skipping reminder for user %s: %s", user.id, exc)
            return ReminderDecision(False, "invalid reminder time")
        if reminder_date is None:
            return ReminderDecision(False, "not scheduled")

        if has_timesheet(user.id, reminder_date):
            logger.debug(
                "User %s already has a timesheet for %s", user.email, reminder_date
            )
            return ReminderDecision(False, "timesheet logged", reminder_date)

        return ReminderDecision(True, "due", reminder_date)


__all__ = [
    "ReminderDecision",
    "ReminderRuleEvaluator",
    "WEEKDAY_NAMES",
    "parse_reminder_time",
    "weekday_name",
]
