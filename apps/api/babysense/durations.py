"""Age and duration arithmetic shared by the suggestion engine, tips and stats."""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


class InvalidCareDataError(ValueError):
    """Raised when callers hand the engine data that breaks its contract."""


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def age_in_days(birth_date: Optional[date], now: datetime) -> int:
    """Whole days elapsed since birth, counting the birth date as UTC midnight."""

    if birth_date is None:
        raise InvalidCareDataError("birth_date is required to compute age")
    days = (as_utc(now).date() - birth_date).days
    if days < 0:
        raise InvalidCareDataError(f"birth_date {birth_date.isoformat()} is in the future")
    return days


def duration_minutes(start: datetime, end: Optional[datetime]) -> Optional[int]:
    """Floor of elapsed minutes; ``None`` for ongoing activities."""

    if end is None:
        return None
    elapsed = as_utc(end) - as_utc(start)
    if elapsed.total_seconds() < 0:
        raise InvalidCareDataError(
            f"activity ends before it starts ({start.isoformat()} > {end.isoformat()})"
        )
    return int(elapsed.total_seconds() // 60)


def age_unit(days: int) -> str:
    if days < 7:
        return "days"
    if days < 60:
        return "weeks"
    return "months"


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def human_age_label(days: int) -> str:
    unit = age_unit(days)
    if unit == "days":
        return f"{_plural(days, 'day')} old"
    if unit == "weeks":
        return f"{_plural(days // 7, 'week')} old"
    return f"{_plural(days // 30, 'month')} old"


def time_ago_label(created_at: datetime, now: datetime) -> str:
    elapsed_minutes = int((as_utc(now) - as_utc(created_at)).total_seconds() // 60)
    hours = elapsed_minutes // 60
    if hours < 1:
        return f"{elapsed_minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def is_overdue(scheduled_for: Optional[datetime], now: datetime) -> bool:
    if scheduled_for is None:
        return False
    return as_utc(scheduled_for) < as_utc(now)


def due_label(scheduled_for: Optional[datetime], now: datetime) -> str:
    if scheduled_for is None:
        return "No due date"
    hours = int((as_utc(scheduled_for) - as_utc(now)).total_seconds() // 3600)
    if hours < 0:
        return f"Overdue by {abs(hours)}h"
    if hours < 24:
        return f"Due in {hours}h"
    return as_utc(scheduled_for).date().isoformat()


def format_sleep_minutes(minutes: int) -> str:
    return f"{minutes // 60}h {minutes % 60}m"


def duration_label(start: datetime, end: Optional[datetime]) -> str:
    minutes = duration_minutes(start, end)
    if minutes is None:
        return "Ongoing"
    if minutes < 60:
        return f"{minutes}m"
    return format_sleep_minutes(minutes)


def day_label(moment: datetime, now: datetime) -> str:
    """Group label for a timestamp, in ``now``'s timezone."""

    tz = now.tzinfo or timezone.utc
    local = as_utc(moment).astimezone(tz).date()
    days_back = (now.date() - local).days
    if days_back == 0:
        return "Today"
    if days_back == 1:
        return "Yesterday"
    return local.isoformat()
