"""Timezone handling for reminder evaluation and stored timestamps.

Reminder days and times are interpreted in the application timezone
(``APP_TIMEZONE``). Timestamps travel through the domain as aware datetimes
and are written to the database as naive values in that same zone.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Final

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from timekeeper.config import get_settings

logger = logging.getLogger(__name__)

_UTC_OFFSET: Final[re.Pattern[str]] = re.compile(
    r"^(?:UTC|GMT)(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)


def parse_utc_offset(value: str) -> tzinfo | None:
    """Parse names such as ``UTC-5`` or ``GMT+05:30`` into a fixed offset."""

    match = _UTC_OFFSET.match(value.strip())
    if match is None:
        return None
    offset = timedelta(
        hours=int(match.group("hours")), minutes=int(match.group("minutes") or 0)
    )
    if offset >= timedelta(days=1):
        return None
    return timezone(-offset if match.group("sign") == "-" else offset)


def resolve_timezone(name: str | None) -> tzinfo:
    """Return the zone called ``name``; unknown or empty names give UTC."""

    name = (name or "").strip()
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        pass
    offset = parse_utc_offset(name)
    if offset is not None:
        return offset
    logger.warning("Unknown timezone %r, reminders will be evaluated in UTC", name)
    return timezone.utc


@lru_cache(maxsize=1)
def get_app_timezone() -> tzinfo:
    return resolve_timezone(get_settings().app_timezone)


def now_in_app_timezone() -> datetime:
    return datetime.now(tz=get_app_timezone())


def now_in_app_naive_datetime() -> datetime:
    """Column default for creation timestamps."""

    return now_in_app_timezone().replace(tzinfo=None)


def ensure_app_timezone(value: datetime | None) -> datetime | None:
    """Attach or convert ``value`` to the application timezone.

    Naive values are read back from the database and are already expressed in
    the application zone.
    """

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=get_app_timezone())
    return value.astimezone(get_app_timezone())


def ensure_app_naive_datetime(value: datetime | None) -> datetime | None:
    """Return ``value`` as a naive datetime in the application zone, ready to store."""

    localized = ensure_app_timezone(value)
    return localized.replace(tzinfo=None) if localized is not None else None


__all__ = [
    "ensure_app_naive_datetime",
    "ensure_app_timezone",
    "get_app_timezone",
    "now_in_app_naive_datetime",
    "now_in_app_timezone",
    "parse_utc_offset",
    "resolve_timezone",
]
