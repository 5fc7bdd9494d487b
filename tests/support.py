"""Test doubles shared by the test modules."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from timekeeper.infrastructure.email import EmailConfigurationError, EmailDeliveryError

# 2024-06-03 is a Monday.
MONDAY_9AM = datetime(2024, 6, 3, 9, 0, tzinfo=timezone.utc)


class FixedClock:
    """Callable clock returning a controllable instant."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeTransport:
    """Email transport double recording the messages it accepts."""

    def __init__(self, *, fail_times: int = 0, verify_error: str | None = None) -> None:
        self.fail_times = fail_times
        self.verify_error = verify_error
        self.sent = []
        self.attempts = 0
        self.verify_calls = 0
        self.closed = False

    @property
    def connected(self) -> bool:
        return self.verify_calls > 0 and self.verify_error is None

    def verify(self) -> None:
        self.verify_calls += 1
        if self.verify_error:
            raise EmailConfigurationError(self.verify_error)

    def send(self, email) -> None:
        self.attempts += 1
        if self.attempts <= self.fail_times:
            raise EmailDeliveryError(f"temporary failure {self.attempts}")
        self.sent.append(email)

    def close(self) -> None:
        self.closed = True

