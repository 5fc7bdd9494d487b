"""Tests for the settings model."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from timekeeper.config import Settings


def test_reminder_tick_is_limited_to_one_day() -> None:
    assert Settings(reminder_tick_minutes=1440).reminder_tick_minutes == 1440

    with pytest.raises(ValidationError):
        Settings(reminder_tick_minutes=1441)
    with pytest.raises(ValidationError):
        Settings(reminder_tick_minutes=0)


def test_sendgrid_provider_requires_an_api_key() -> None:
    with pytest.raises(ValidationError):
        Settings(email_enabled=True, email_provider="sendgrid", sendgrid_api_key=None)


def test_company_name_defaults_to_sender_name() -> None:
    settings = Settings(email_from_name="Acme Payroll", company_name=None)

    assert settings.resolved_company_name == "Acme Payroll"
