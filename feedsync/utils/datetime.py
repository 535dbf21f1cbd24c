"""Helpers for working with timezone-aware datetimes."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Final

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_DEFAULT_TIMEZONE: Final[str] = "UTC"
_OFFSET_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:UTC|GMT)(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)


@lru_cache(maxsize=1)
def get_app_timezone() -> tzinfo:
    """Return the configured application timezone.

    The timezone comes from the ``APP_TIMEZONE`` setting. Offsets such as
    ``UTC-05:00`` are accepted when the name is not in the tz database, and
    anything unresolvable falls back to UTC. Without an ``API_URL`` configured
    the settings cannot load, so UTC is used as well.
    """

    from feedsync.config import get_settings

    try:
        tz_name = (get_settings().app_timezone or "").strip()
    except ValueError:
        tz_name = ""
    return resolve_timezone(tz_name or _DEFAULT_TIMEZONE)


def now_in_app_timezone() -> datetime:
    """Return the current time localized to the configured timezone."""

    return datetime.now(tz=get_app_timezone())


def ensure_app_timezone(
    value: datetime | None, tz: tzinfo | None = None
) -> datetime | None:
    """Normalize ``value`` so it is expressed in ``tz`` or the configured timezone."""

    if value is None:
        return None

    tz = tz if tz is not None else get_app_timezone()
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def time_ago(
    value: datetime, now: datetime | None = None, *, tz: tzinfo | None = None
) -> str:
    """Render ``value`` relative to ``now`` the way the feed displays it.

    Minutes are shown under an hour, hours under a day and days under a week;
    older entries show their calendar date in ``tz`` (the configured timezone
    when omitted).
    """

    tz = tz if tz is not None else get_app_timezone()
    value = ensure_app_timezone(value, tz)
    now = ensure_app_timezone(now, tz) if now is not None else datetime.now(tz=tz)
    minutes = max(int((now - value).total_seconds() // 60), 0)
    hours = minutes // 60
    days = hours // 24

    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    return value.date().isoformat()


def resolve_timezone(tz_name: str) -> tzinfo:
    """Resolve ``tz_name`` into a ``timezone`` instance."""

    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        match = _OFFSET_PATTERN.match(tz_name)
        if match:
            sign = -1 if match.group("sign") == "-" else 1
            hours = int(match.group("hours"))
            minutes = int(match.group("minutes") or 0)
            offset = timedelta(hours=hours, minutes=minutes)
            return timezone(sign * offset)
    return timezone.utc
