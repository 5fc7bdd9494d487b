"""Background scheduling of timesheet reminders and notification cleanup."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Any

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session

from timekeeper.domain.entities import DirectoryUser, NotificationStatus
from timekeeper.infrastructure.repositories import TimesheetRepository, UserRepository
from timekeeper.utils import get_app_timezone, now_in_app_timezone

from .ledger import NotificationLedger
from .reminders import ReminderRuleEvaluator

logger = logging.getLogger(__name__)

REMINDER_JOB_ID = "timesheet_reminders"
CLEANUP_JOB_ID = "notification_cleanup"

LedgerFactory = Callable[..., NotificationLedger]


@dataclass
class ReminderSweepResult:
    started_at: datetime
    evaluated: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0

    def as_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["started_at"] = self.started_at.isoformat()
        return payload


class ReminderScheduler:
    """Run reminder sweeps on a fixed interval and purge old notifications.

    :meth:`start` and :meth:`stop` control an APScheduler background
    scheduler. :meth:`tick` and :meth:`run_cleanup` perform a single run and
    accept an explicit ``now`` so callers can step time themselves.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        ledger_factory: LedgerFactory,
        *,
        evaluator: ReminderRuleEvaluator,
        cleanup_interval: timedelta = timedelta(hours=24),
        retention_days: int = 30,
        max_workers: int = 4,
        timezone: tzinfo | None = None,
        clock: Callable[[], datetime] = now_in_app_timezone,
    ) -> None:
        self._session_factory = session_factory
        self._ledger_factory = ledger_factory
        self.evaluator = evaluator
        self.tick_interval = evaluator.window
        self.cleanup_interval = cleanup_interval
        self.retention_days = retention_days
        self.max_workers = max_workers
        self.timezone = timezone
        self._clock = clock
        self._scheduler: BackgroundScheduler | None = None
        self._lock = threading.Lock()
        self._last_tick: datetime | None = None
        self.last_result: ReminderSweepResult | None = None
        self.last_cleanup: datetime | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        if self._scheduler is not None:
            logger.info("Reminder scheduler already running, skipping start")
            return

        scheduler = BackgroundScheduler(timezone=self.timezone or get_app_timezone())
        scheduler.add_job(
            self._run_reminders,
            trigger="interval",
            seconds=self.tick_interval.total_seconds(),
            id=REMINDER_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=self._clock(),
        )
        scheduler.add_job(
            self.run_cleanup,
            trigger="interval",
            seconds=self.cleanup_interval.total_seconds(),
            id=CLEANUP_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(
            "Reminder scheduler started: reminders every %s, cleanup every %s",
            self.tick_interval,
            self.cleanup_interval,
        )

    def stop(self) -> None:
        scheduler, self._scheduler = self._scheduler, None
        if scheduler is None:
            return
        scheduler.shutdown(wait=False)
        logger.info("Reminder scheduler stopped")

    def tick(self, now: datetime | None = None) -> ReminderSweepResult:
        """Evaluate every active user once and send the reminders that are due."""

        now = now or self._clock()
        with self._lock:
            since = self._window_start(now)
            self._last_tick = now

        with self._session_factory() as session:
            users = UserRepository(session).find_active_users_with_preferences()

        result = ReminderSweepResult(started_at=now, evaluated=len(users))
        if users:
            with ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="reminders"
            ) as executor:
                outcomes = list(
                    executor.map(lambda user: self._process_user(user, now, since), users)
                )
            result.sent = outcomes.count("sent")
            result.skipped = outcomes.count("skipped")
            result.failed = outcomes.count("failed")

        self.last_result = result
        logger.info(
            "Processed reminders for %d users: %d sent, %d skipped, %d failed",
            result.evaluated,
            result.sent,
            result.skipped,
            result.failed,
        )
        return result

    def run_cleanup(self, now: datetime | None = None) -> int | None:
        """Purge old read or sent notifications; errors are logged, never raised."""

        now = now or self._clock()
        try:
            with self._session_factory() as session:
                ledger = self._ledger_factory(session, clock=lambda: now)
                deleted = ledger.cleanup(self.retention_days)
        except Exception:
            logger.exception("Notification cleanup failed")
            return None
        self.last_cleanup = now
        return deleted

    def status(self) -> dict[str, Any]:
        next_run = None
        if self._scheduler is not None:
            job = self._scheduler.get_job(REMINDER_JOB_ID)
            next_run = job.next_run_time if job else None
        return {
            "running": self.running,
            "last_run": self._last_tick,
            "next_run": next_run,
            "last_result": self.last_result.as_dict() if self.last_result else None,
            "last_cleanup": self.last_cleanup,
        }

    def _run_reminders(self) -> None:
        try:
            self.tick()
        except Exception:
            logger.exception("Error processing scheduled notifications")

    def _window_start(self, now: datetime) -> datetime:
        # Continue from the previous sweep unless it is too old to be meaningful.
        last = self._last_tick
        if last is not None and timedelta(0) < now - last <= 2 * self.tick_interval:
            return last
        return now - self.tick_interval

    def _process_user(self, user: DirectoryUser, now: datetime, since: datetime) -> str:
        try:
            with self._session_factory() as session:
                decision = self.evaluator.evaluate(
                    user,
                    now,
                    TimesheetRepository(session).exists_for_date,
                    since=since,
                )
                if not decision.due:
                    return "skipped"
                ledger = self._ledger_factory(session, clock=lambda: now)
                notification = ledger.send_timesheet_reminder(user, decision.reminder_date)
        except Exception:
            logger.exception("Error processing reminders for user %s", user.email)
            return "failed"

        if notification.status is NotificationStatus.SENT:
            logger.info("Sent timesheet reminder to %s", user.email)
            return "sent"
        return "failed"


__all__ = [
    "CLEANUP_JOB_ID",
    "REMINDER_JOB_ID",
    "ReminderScheduler",
    "ReminderSweepResult",
]
