"""Tests for the reminder scheduler."""

from __future__ import annotations

import logging
from datetime import timedelta
from unittest import mock

import pytest

from support import MONDAY_9AM
from timekeeper.application.notifications import scheduler as scheduler_module
from timekeeper.application.notifications.reminders import ReminderRuleEvaluator
from timekeeper.application.notifications.scheduler import (
    CLEANUP_JOB_ID,
    REMINDER_JOB_ID,
    ReminderScheduler,
)
from timekeeper.domain.entities import NotificationStatus, NotificationType
from timekeeper.infrastructure import database
from timekeeper.infrastructure.repositories import NotificationRepository


@pytest.fixture()
def team(create_user, log_timesheet):
    ana = create_user("ana@example.com", "Ana", "Silva")
    bob = create_user("bob@example.com", "Bob", "Stone")
    log_timesheet(bob.id, MONDAY_9AM.date())
    carol = create_user(
        "carol@example.com", "Carol", "Diaz", preferences={"timesheet_reminders": False}
    )
    create_user("gone@example.com", "Gone", "User", is_active=False)
    return {"ana": ana, "bob": bob, "carol": carol}


def _reminders(db_session, user_id):
    return [
        n
        for n in NotificationRepository(db_session).list_for_user(user_id)
        if n.data.get("type") == "timesheet_reminder"
    ]


def test_tick_sends_due_reminders_only(services, team, db_session, transport) -> None:
    result = services.scheduler.tick(MONDAY_9AM)

    assert (result.evaluated, result.sent, result.skipped, result.failed) == (3, 1, 2, 0)
    [reminder] = _reminders(db_session, team["ana"].id)
    assert reminder.type is NotificationType.EMAIL
    assert reminder.status is NotificationStatus.SENT
    assert reminder.created_at == MONDAY_9AM
    assert _reminders(db_session, team["bob"].id) == []
    assert _reminders(db_session, team["carol"].id) == []
    assert [email.to for email in transport.sent] == ["ana@example.com"]


def test_tick_outside_reminder_window_sends_nothing(services, team, transport) -> None:
    result = services.scheduler.tick(MONDAY_9AM + timedelta(hours=3))

    assert result.sent == 0
    assert transport.sent == []


def test_consecutive_ticks_continue_from_previous_sweep(
    services, create_user, db_session
) -> None:
    user = create_user(
        "late@example.com", preferences={"reminder_time": "09:35"}
    )
    scheduler = services.scheduler

    scheduler.tick(MONDAY_9AM + timedelta(minutes=30))
    # The delayed sweep picks up where the previous one stopped, so 09:35 is not lost.
    scheduler.tick(MONDAY_9AM + timedelta(hours=1, minutes=40))
    scheduler.tick(MONDAY_9AM + timedelta(hours=2, minutes=40))

    assert len(_reminders(db_session, user.id)) == 1


def test_failure_for_one_user_does_not_stop_the_sweep(
    services, team, db_session, monkeypatch, caplog
) -> None:
    evaluator = services.scheduler.evaluator
    original = evaluator.evaluate

    def flaky_evaluate(user, *args, **kwargs):
        if user.email == "bob@example.com":
            raise RuntimeError("directory timeout")
        return original(user, *args, **kwargs)

    monkeypatch.setattr(evaluator, "evaluate", flaky_evaluate)
    with caplog.at_level(logging.ERROR):
        result = services.scheduler.tick(MONDAY_9AM)

    assert result.failed == 1
    assert result.sent == 1
    assert len(_reminders(db_session, team["ana"].id)) == 1
    assert "Error processing reminders for user bob@example.com" in caplog.text


def test_failed_email_counts_as_failed(services, team, transport) -> None:
    transport.fail_times = 100

    result = services.scheduler.tick(MONDAY_9AM)

    assert result.sent == 0
    assert result.failed == 1


def test_run_cleanup_purges_old_notifications(services, create_user) -> None:
    user = create_user("ana@example.com")
    with database.SessionLocal() as session:
        ledger = services.ledger(session, clock=lambda: MONDAY_9AM - timedelta(days=40))
        ledger.notify(user.id, "old", "m", NotificationType.IN_APP)
        ledger.notify(user.id, "stuck", "m", NotificationType.SMS)

    assert services.scheduler.run_cleanup(MONDAY_9AM) == 1
    assert services.scheduler.last_cleanup == MONDAY_9AM


def test_cleanup_errors_are_logged_not_raised(caplog) -> None:
    def broken_ledger(session, **kwargs):
        raise RuntimeError("database is locked")

    scheduler = ReminderScheduler(
        database.SessionLocal, broken_ledger, evaluator=ReminderRuleEvaluator()
    )
    with caplog.at_level(logging.ERROR):
        assert scheduler.run_cleanup(MONDAY_9AM) is None
    assert "Notification cleanup failed" in caplog.text


def test_start_schedules_jobs_and_stop_shuts_down(services, monkeypatch) -> None:
    background = mock.MagicMock()
    monkeypatch.setattr(scheduler_module, "BackgroundScheduler", background)
    scheduler = services.scheduler

    scheduler.start()
    scheduler.start()

    background.assert_called_once()
    instance = background.return_value
    jobs = {call.kwargs["id"]: call.kwargs for call in instance.add_job.call_args_list}
    assert set(jobs) == {REMINDER_JOB_ID, CLEANUP_JOB_ID}
    assert jobs[REMINDER_JOB_ID]["seconds"] == 3600
    assert jobs[REMINDER_JOB_ID]["next_run_time"] == MONDAY_9AM
    assert jobs[REMINDER_JOB_ID]["max_instances"] == 1
    assert jobs[REMINDER_JOB_ID]["coalesce"] is True
    assert jobs[CLEANUP_JOB_ID]["seconds"] == 24 * 3600
    instance.start.assert_called_once()

    scheduler.stop()
    instance.shutdown.assert_called_once_with(wait=False)
    scheduler.stop()
    instance.shutdown.assert_called_once()


def test_status_reports_last_sweep(services, team) -> None:
    assert services.scheduler.status()["last_result"] is None

    services.scheduler.tick(MONDAY_9AM)
    status = services.scheduler.status()

    assert status["running"] is False
    assert status["last_run"] == MONDAY_9AM
    assert status["last_result"]["sent"] == 1
