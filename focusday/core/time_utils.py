"""Date and duration helpers — pure functions.

Date keys are ``YYYY-MM-DD`` strings in the owner's local time zone; they
are the lookup key for every day record, so streak boundaries depend on
them being stable for a given instant and zone.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

_KEY_FORMAT = "%Y-%m-%d"


def _local_now(tz_name: str = "") -> datetime:
    if tz_name:
        return datetime.now(ZoneInfo(tz_name))
    return datetime.now().astimezone()


def today_key(now: datetime | None = None, tz_name: str | None = None) -> str:
    """Return the current date as YYYY-MM-DD.

    Args:
        now: Instant to use instead of the wall clock. Aware datetimes are
             converted to ``tz_name`` when one is given.
        tz_name: IANA zone name. None reads the TIMEZONE setting; an empty
                 string means the system local zone.
    """
    if tz_name is None:
        from focusday.config import settings
        tz_name = settings.TIMEZONE

    if now is None:
        now = _local_now(tz_name)
    elif tz_name and now.tzinfo is not None:
        now = now.astimezone(ZoneInfo(tz_name))
    return now.strftime(_KEY_FORMAT)


def parse_key(date_key: str) -> date:
    return datetime.strptime(date_key, _KEY_FORMAT).date()


def shift_day(date_key: str, days: int) -> str:
    """Move a date key by ``days`` (negative = into the past)."""
    return (parse_key(date_key) + timedelta(days=days)).strftime(_KEY_FORMAT)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.isoformat()


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO timestamp; naive values are taken as UTC."""
    moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def format_elapsed(seconds: int) -> str:
    """Render seconds as "1h 2m 5s", dropping leading zero units."""
    seconds = max(0, int(seconds))
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def format_duration_short(seconds: int) -> str:
    """Coarser variant without seconds: "1h 5m", "45m"."""
    seconds = max(0, int(seconds))
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60

    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_goal_minutes(minutes: int) -> str:
    """Goal display: "1h", "1h 30m", "45m"."""
    hours, mins = divmod(int(minutes), 60)
    if hours > 0:
        return f"{hours}h {mins}m" if mins > 0 else f"{hours}h"
    return f"{mins}m"


def date_label(date_key: str, today: str) -> str:
    """Human label for a date key relative to ``today``."""
    if date_key == today:
        return "Today"
    if date_key == shift_day(today, -1):
        return "Yesterday"
    d = parse_key(date_key)
    return f"{d.strftime('%b')} {d.day}, {d.year}"
