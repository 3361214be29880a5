"""Rule-based reminder suggestions derived from age and recent care history."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from .durations import InvalidCareDataError, age_in_days, as_utc, duration_minutes
from .schemas import (
    ActivityCategory,
    BabyProfile,
    CareActivity,
    Reminder,
    ReminderType,
    Suggestion,
    SuggestionPriority,
)

logger = logging.getLogger(__name__)

FEEDING_SAMPLE_SIZE = 10
MIN_FEEDINGS_FOR_PREDICTION = 2
VITAMIN_D_MIN_AGE_DAYS = 60
MIN_TRACKED_SLEEPS = 3
MAX_SUGGESTIONS = 3

# (min_days, max_days, title, message); inclusive, non-overlapping.
MILESTONE_BANDS = [
    (
        30,
        35,
        "1-Month Milestone Check",
        "Time to check if baby is lifting their head during tummy time",
    ),
    (
        60,
        70,
        "2-Month Milestone Check",
        "Look for social smiles and better head control",
    ),
    (
        120,
        130,
        "4-Month Milestone Check",
        "Watch for rolling from tummy to back and reaching for toys",
    ),
    (
        180,
        190,
        "6-Month Milestone Check",
        "Check whether baby sits with support and shows interest in solid food",
    ),
    (
        270,
        280,
        "9-Month Milestone Check",
        "Look for crawling, pulling to stand and responding to their name",
    ),
    (
        365,
        375,
        "12-Month Milestone Check",
        "Time for first words, waving bye-bye and cruising along furniture",
    ),
]

VITAMIN_D_TITLE = "Vitamin D Supplement"
VITAMIN_D_MESSAGE = "Daily vitamin D drops for breastfed babies"
SLEEP_TIP_TITLE = "Sleep Tracking Tip"
SLEEP_TIP_MESSAGE = "Track sleep patterns to identify your baby's natural rhythm"


def _newest_first(activities: Iterable[CareActivity], category: ActivityCategory) -> List[CareActivity]:
    matching = [activity for activity in activities if activity.activity_type == category]
    return sorted(matching, key=lambda activity: as_utc(activity.start_time), reverse=True)


def average_feeding_interval(activities: Sequence[CareActivity]) -> Optional[timedelta]:
    """Mean gap between the most recent feedings, or ``None`` with fewer than two."""

    feedings = _newest_first(activities, ActivityCategory.FEEDING)[:FEEDING_SAMPLE_SIZE]
    if len(feedings) < MIN_FEEDINGS_FOR_PREDICTION:
        return None
    total = timedelta(0)
    for newer, older in zip(feedings, feedings[1:]):
        total += as_utc(newer.start_time) - as_utc(older.start_time)
    return total / (len(feedings) - 1)


def predict_next_feeding(activities: Sequence[CareActivity], now: datetime) -> Optional[Suggestion]:
    interval = average_feeding_interval(activities)
    if interval is None:
        return None
    latest = _newest_first(activities, ActivityCategory.FEEDING)[0]
    next_feeding = as_utc(latest.start_time) + interval
    if not next_feeding > as_utc(now):
        logger.debug("feeding prediction in the past", extra={"predicted": next_feeding.isoformat()})
        return None
    return Suggestion(
        type=ReminderType.FEEDING,
        title="Next Feeding Reminder",
        message=f"Based on recent patterns, next feeding is due around {next_feeding.strftime('%H:%M')} UTC",
        scheduled_for=next_feeding,
        priority=SuggestionPriority.HIGH,
    )


def milestone_suggestions(age_days: int) -> List[Suggestion]:
    return [
        Suggestion(
            type=ReminderType.MILESTONE,
            title=title,
            message=message,
            priority=SuggestionPriority.MEDIUM,
        )
        for min_days, max_days, title, message in MILESTONE_BANDS
        if min_days <= age_days <= max_days
    ]


def has_open_medicine_reminder(reminders: Iterable[Reminder]) -> bool:
    return any(
        reminder.reminder_type == ReminderType.MEDICINE and not reminder.is_completed
        for reminder in reminders
    )


def vitamin_d_nudge(age_days: int, reminders: Sequence[Reminder]) -> Optional[Suggestion]:
    if age_days < VITAMIN_D_MIN_AGE_DAYS or has_open_medicine_reminder(reminders):
        return None
    return Suggestion(
        type=ReminderType.MEDICINE,
        title=VITAMIN_D_TITLE,
        message=VITAMIN_D_MESSAGE,
        priority=SuggestionPriority.MEDIUM,
    )


def sleep_tracking_nudge(activities: Sequence[CareActivity]) -> Optional[Suggestion]:
    sleeps = [activity for activity in activities if activity.activity_type == ActivityCategory.SLEEP]
    if len(sleeps) >= MIN_TRACKED_SLEEPS:
        return None
    return Suggestion(
        type=ReminderType.TIP,
        title=SLEEP_TIP_TITLE,
        message=SLEEP_TIP_MESSAGE,
        priority=SuggestionPriority.LOW,
    )


def validate_snapshot(baby: BabyProfile, activities: Sequence[CareActivity], now: datetime) -> int:
    """Reject malformed input up front and return the baby's age in days."""

    age_days = age_in_days(baby.birth_date, now)
    for activity in activities:
        if activity.baby_id and activity.baby_id != baby.id:
            raise InvalidCareDataError(
                f"activity {activity.id} belongs to baby {activity.baby_id}, not {baby.id}"
            )
        duration_minutes(activity.start_time, activity.end_time)
    return age_days


def generate_suggestions(
    baby: BabyProfile,
    activities: Sequence[CareActivity],
    reminders: Sequence[Reminder],
    now: datetime,
    *,
    limit: int = MAX_SUGGESTIONS,
) -> List[Suggestion]:
    """Evaluate every rule in fixed order and keep the first ``limit`` results.

    Order is feeding prediction, milestone bands, vitamin D, sleep tracking.
    Priority is a display hint only and never reorders the list, so the
    truncation always drops the latest-evaluated rules.
    """

    age_days = validate_snapshot(baby, activities, now)

    suggestions: List[Suggestion] = []
    feeding = predict_next_feeding(activities, now)
    if feeding:
        suggestions.append(feeding)
    suggestions.extend(milestone_suggestions(age_days))
    medicine = vitamin_d_nudge(age_days, reminders)
    if medicine:
        suggestions.append(medicine)
    sleep = sleep_tracking_nudge(activities)
    if sleep:
        suggestions.append(sleep)

    logger.debug(
        "suggestions evaluated",
        extra={"baby_id": baby.id, "age_days": age_days, "fired": len(suggestions)},
    )
    return suggestions[:limit]
