"""Shared fixtures for the notification service tests."""

from __future__ import annotations

import os

import pytest

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["APP_TIMEZONE"] = "UTC"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["EMAIL_ENABLED"] = "false"

from timekeeper.application.notifications import build_notification_services  # noqa: E402
from timekeeper.config import get_settings  # noqa: E402
from timekeeper.infrastructure import database  # noqa: E402
from timekeeper.infrastructure.models import (  # noqa: E402
    TimesheetModel,
    UserModel,
    UserPreferencesModel,
)
from timekeeper.infrastructure.repositories import UserRepository  # noqa: E402

from support import MONDAY_9AM, FakeTransport, FixedClock  # noqa: E402


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(MONDAY_9AM)


@pytest.fixture()
def db_session():
    """Yield a session bound to a freshly created in-memory schema."""

    database.Base.metadata.drop_all(bind=database.engine)
    database.initialize_database()
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()
        database.Base.metadata.drop_all(bind=database.engine)


@pytest.fixture()
def create_user(db_session):
    """Factory inserting a user and, optionally, its notification preferences."""

    def _create_user(
        email: str,
        first_name: str = "Test",
        last_name: str = "User",
        *,
        role: str = "EMPLOYEE",
        is_active: bool = True,
        preferences: dict | None = None,
    ):
        model = UserModel(
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=role,
            is_active=is_active,
        )
        db_session.add(model)
        db_session.flush()
        if preferences is not None:
            db_session.add(UserPreferencesModel(user_id=model.id, **preferences))
        db_session.commit()
        return UserRepository(db_session).get(model.id)

    return _create_user


@pytest.fixture()
def log_timesheet(db_session):
    def _log_timesheet(user_id: int, day, hours: float = 8) -> None:
        db_session.add(
            TimesheetModel(user_id=user_id, date=day, task_name="Development", hours_worked=hours)
        )
        db_session.commit()

    return _log_timesheet


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def sleeps() -> list[float]:
    return []


@pytest.fixture()
def settings():
    return get_settings().model_copy(
        update={
            "email_enabled": True,
            "email_max_retries": 2,
            "email_retry_delay": 100,
            "scheduler_max_workers": 1,
            "company_name": "Acme Timesheets",
            "frontend_url": "https://app.example.com",
        }
    )


@pytest.fixture()
def services(db_session, settings, transport, sleeps, clock):
    """Notification services wired to fakes and the in-memory database."""

    built = build_notification_services(
        settings,
        database.SessionLocal,
        transport=transport,
        publisher=None,
        sleep=sleeps.append,
        clock=clock,
    )
    yield built
    built.shutdown()


@pytest.fixture()
def ledger(services, db_session):
    return services.ledger(db_session)
