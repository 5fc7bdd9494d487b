"""Tests for the delivery channels and their registry."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from unittest import mock

from support import FakeTransport
from timekeeper.application.notifications.channels import (
    ChannelRegistry,
    EmailChannel,
    InAppChannel,
    PushChannel,
    SmsChannel,
)
from timekeeper.application.notifications.templates import TemplateEngine
from timekeeper.domain.entities import (
    DirectoryUser,
    Notification,
    NotificationPreferences,
    NotificationType,
)

RECIPIENT = DirectoryUser(id=7, first_name="Ana", last_name="Silva", email="ana@example.com")


def _notification(type: NotificationType = NotificationType.EMAIL, **data) -> Notification:
    return Notification(
        id=1,
        user_id=RECIPIENT.id,
        title="Weekly summary",
        message="Your summary is ready.",
        type=type,
        data=data,
        created_at=datetime(2024, 6, 3, 9, 0, tzinfo=timezone.utc),
    )


def _email_channel(transport, **options) -> EmailChannel:
    options.setdefault("sleep", lambda seconds: None)
    return EmailChannel(transport, TemplateEngine(company_name="Acme"), **options)


def test_email_channel_renders_and_sends() -> None:
    transport = FakeTransport()
    channel = _email_channel(transport)

    result = channel.send(_notification(), RECIPIENT)

    assert result.ok is True
    [email] = transport.sent
    assert email.to == "ana@example.com"
    assert email.subject == "Weekly summary"
    assert "Your summary is ready." in email.text
    assert transport.verify_calls == 1


def test_email_channel_uses_requested_template_and_variables() -> None:
    transport = FakeTransport()
    channel = _email_channel(transport)

    channel.send(
        _notification(template="timesheet_reminder", variables={"hoursToLog": "6"}),
        RECIPIENT,
    )

    [email] = transport.sent
    assert email.subject == "Timesheet Reminder - 6/3/2024"
    assert "Hello Ana Silva," in email.text
    assert "Hours to log: 6" in email.text


def test_email_channel_verifies_transport_only_once() -> None:
    transport = FakeTransport()
    channel = _email_channel(transport)

    assert channel.configure() is True
    channel.send(_notification(), RECIPIENT)
    channel.send(_notification(), RECIPIENT)

    assert transport.verify_calls == 1
    assert len(transport.sent) == 2


def test_unconfigured_email_channel_short_circuits(caplog) -> None:
    transport = FakeTransport(verify_error="authentication failed")
    channel = _email_channel(transport)

    with caplog.at_level(logging.ERROR):
        assert channel.configure() is False
    result = channel.send(_notification(), RECIPIENT)

    assert result.ok is False
    assert result.reason == "email channel not configured"
    assert transport.attempts == 0
    assert transport.verify_calls == 1
    assert "authentication failed" in caplog.text


def test_disabled_email_channel_reports_failure() -> None:
    transport = FakeTransport()
    channel = _email_channel(transport, enabled=False)

    result = channel.send(_notification(), RECIPIENT)

    assert result.ok is False
    assert channel.configured is False
    assert transport.verify_calls == 0


def test_email_channel_retries_with_exponential_backoff(caplog) -> None:
    transport = FakeTransport(fail_times=2)
    sleeps: list[float] = []
    channel = _email_channel(transport, max_retries=3, retry_delay_ms=500, sleep=sleeps.append)

    with caplog.at_level(logging.WARNING):
        result = channel.send(_notification(), RECIPIENT)

    assert result.ok is True
    assert transport.attempts == 3
    assert sleeps == [0.5, 1.0]
    assert "attempt 1/4" in caplog.text


def test_email_channel_gives_up_after_max_retries() -> None:
    transport = FakeTransport(fail_times=10)
    sleeps: list[float] = []
    channel = _email_channel(transport, max_retries=2, retry_delay_ms=100, sleep=sleeps.append)

    result = channel.send(_notification(), RECIPIENT)

    assert result.ok is False
    assert result.reason == "temporary failure 3"
    assert transport.attempts == 3
    assert sleeps == [0.1, 0.2]


def test_email_channel_respects_opt_out() -> None:
    transport = FakeTransport()
    channel = _email_channel(transport)
    opted_out = DirectoryUser(
        id=8,
        first_name="Bo",
        last_name="Lee",
        email="bo@example.com",
        preferences=NotificationPreferences(email_notifications=False),
    )

    result = channel.send(_notification(), opted_out)

    assert result.ok is False
    assert transport.attempts == 0


def test_test_connection_reverifies_transport() -> None:
    transport = FakeTransport()
    channel = _email_channel(transport)
    channel.configure()

    assert channel.test_connection() is True
    transport.verify_error = "gone"
    assert channel.test_connection() is False
    assert channel.configured is True


def test_in_app_channel_publishes_and_succeeds() -> None:
    publisher = mock.Mock()
    publisher.dispatch.return_value = False
    notification = _notification(NotificationType.IN_APP)

    result = InAppChannel(publisher).send(notification, RECIPIENT)

    assert result.ok is True
    publisher.dispatch.assert_called_once_with(notification)


def test_push_channel_is_a_logging_stub(caplog) -> None:
    with caplog.at_level(logging.INFO):
        result = PushChannel().send(_notification(NotificationType.PUSH), RECIPIENT)

    assert result.ok is True
    assert "Push notification would be sent" in caplog.text


def test_sms_channel_fails_cleanly() -> None:
    result = SmsChannel().send(_notification(NotificationType.SMS), RECIPIENT)

    assert result.ok is False
    assert result.reason == "unsupported channel: SMS"


def test_registry_routes_by_type_and_rejects_unknown_channels() -> None:
    transport = FakeTransport()
    registry = ChannelRegistry([_email_channel(transport), InAppChannel()])

    assert registry.send(_notification(NotificationType.EMAIL), RECIPIENT).ok is True
    assert registry.send(_notification(NotificationType.IN_APP), RECIPIENT).ok is True
    missing = registry.send(_notification(NotificationType.PUSH), RECIPIENT)

    assert missing.ok is False
    assert missing.reason == "unsupported channel: PUSH"
    assert registry.get(NotificationType.SMS) is None
