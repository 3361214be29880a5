"""Daily care summary against typical targets."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from pydantic import BaseModel

from .durations import duration_minutes, format_sleep_minutes
from .schemas import ActivityCategory, CareActivity

FEEDING_TARGET = 8
SLEEP_TARGET_MINUTES = 720
DIAPER_TARGET = 6


class StatLine(BaseModel):
    label: str
    value: int
    target: int
    display_value: str
    display_target: str
    percentage: float


class DailySummary(BaseModel):
    date: str
    activity_count: int
    feedings: StatLine
    sleep: StatLine
    diapers: StatLine


def _stat(label: str, value: int, target: int, formatted: Optional[str] = None, formatted_target: Optional[str] = None) -> StatLine:
    percentage = min(value / target * 100, 100.0)
    return StatLine(
        label=label,
        value=value,
        target=target,
        display_value=formatted or str(value),
        display_target=formatted_target or str(target),
        percentage=round(percentage),
    )


def activities_on_day(activities: Sequence[CareActivity], now: datetime) -> List[CareActivity]:
    """Activities whose start falls on ``now``'s calendar day in ``now``'s timezone."""

    tz = now.tzinfo or timezone.utc
    today = now.date()
    selected = []
    for activity in activities:
        start = activity.start_time
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        if start.astimezone(tz).date() == today:
            selected.append(activity)
    return selected


def summarize_day(activities: Sequence[CareActivity], now: datetime) -> DailySummary:
    todays = activities_on_day(activities, now)
    feedings = sum(1 for a in todays if a.activity_type == ActivityCategory.FEEDING)
    diapers = sum(1 for a in todays if a.activity_type == ActivityCategory.DIAPER)
    sleep_minutes = 0
    for activity in todays:
        if activity.activity_type != ActivityCategory.SLEEP:
            continue
        minutes = duration_minutes(activity.start_time, activity.end_time)
        if minutes is not None:
            sleep_minutes += minutes

    return DailySummary(
        date=now.date().isoformat(),
        activity_count=len(todays),
        feedings=_stat("Feedings Today", feedings, FEEDING_TARGET),
        sleep=_stat(
            "Sleep Today",
            sleep_minutes,
            SLEEP_TARGET_MINUTES,
            format_sleep_minutes(sleep_minutes),
            format_sleep_minutes(SLEEP_TARGET_MINUTES),
        ),
        diapers=_stat("Diaper Changes", diapers, DIAPER_TARGET),
    )
