"""Budget week and user-day boundaries."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_week(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def local_today(now_utc: datetime, tz_name: str) -> date:
    return now_utc.replace(tzinfo=timezone.utc).astimezone(ZoneInfo(tz_name)).date()


def week_start_boundary(now_utc: datetime, tz_name: str) -> Tuple[date, datetime]:
    """
    Monday of the user's current week and the matching naive UTC instant.
    """
    tz = ZoneInfo(tz_name)
    monday = start_of_week(local_today(now_utc, tz_name))
    local_midnight = datetime.combine(monday, time.min, tzinfo=tz)
    return monday, local_midnight.astimezone(timezone.utc).replace(tzinfo=None)


def day_window(now_utc: datetime, tz_name: str, rollover_hour: int) -> Tuple[datetime, datetime]:
    """
    Naive UTC ``[start, end)`` of the user's current day.

    A user day starts at ``rollover_hour`` local time, so with a rollover of 4
    a spend at 02:00 still belongs to the previous day.
    """
    if not 0 <= rollover_hour <= 23:
        raise ValueError(f"Rollover hour must be between 0 and 23, got {rollover_hour}")
    tz = ZoneInfo(tz_name)
    local_now = now_utc.replace(tzinfo=timezone.utc).astimezone(tz)
    start_day = local_now.date()
    if local_now.hour < rollover_hour:
        start_day -= timedelta(days=1)
    start = datetime.combine(start_day, time(hour=rollover_hour), tzinfo=tz)
    end = datetime.combine(start_day + timedelta(days=1), time(hour=rollover_hour), tzinfo=tz)
    return (
        start.astimezone(timezone.utc).replace(tzinfo=None),
        end.astimezone(timezone.utc).replace(tzinfo=None),
    )


def to_utc(value: datetime, tz_name: str) -> datetime:
    """
    Naive UTC form of ``value``.

    A naive ``value`` is read as wall-clock time in ``tz_name``; an aware one
    keeps its own offset.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=ZoneInfo(tz_name))
    return value.astimezone(timezone.utc).replace(tzinfo=None)
