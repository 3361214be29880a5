from datetime import datetime, timedelta, timezone

import pytest

from babysense.durations import InvalidCareDataError
from babysense.schemas import (
    ActivityCategory,
    BabyProfile,
    CareActivity,
    Reminder,
    ReminderType,
    SuggestionPriority,
)
from babysense.suggestion_engine import (
    average_feeding_interval,
    generate_suggestions,
    milestone_suggestions,
    predict_next_feeding,
    sleep_tracking_nudge,
    vitamin_d_nudge,
)

T = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)
BABY_ID = "baby-1"


def baby_aged(days: int, now: datetime = T) -> BabyProfile:
    return BabyProfile(id=BABY_ID, name="Ada", birth_date=now.date() - timedelta(days=days))


def activity(category: ActivityCategory, start: datetime, end=None) -> CareActivity:
    return CareActivity(baby_id=BABY_ID, activity_type=category, start_time=start, end_time=end)


def feeding(start: datetime) -> CareActivity:
    return activity(ActivityCategory.FEEDING, start)


def sleeps(count: int):
    return [
        activity(ActivityCategory.SLEEP, T - timedelta(hours=12 + i), T - timedelta(hours=11 + i))
        for i in range(count)
    ]


def reminder(reminder_type: ReminderType, *, completed: bool = False) -> Reminder:
    return Reminder(baby_id=BABY_ID, title="r", message="m", reminder_type=reminder_type, is_completed=completed)


def test_feeding_prediction_uses_mean_interval():
    feedings = [feeding(T), feeding(T - timedelta(hours=2)), feeding(T - timedelta(hours=4))]

    suggestion = predict_next_feeding(feedings, T + timedelta(hours=1))

    assert suggestion is not None
    assert suggestion.type == ReminderType.FEEDING
    assert suggestion.priority == SuggestionPriority.HIGH
    assert suggestion.scheduled_for == T + timedelta(hours=2)
    assert suggestion.message.endswith("14:00 UTC")


def test_feeding_prediction_ignores_input_order():
    feedings = [feeding(T - timedelta(hours=4)), feeding(T), feeding(T - timedelta(hours=2))]

    suggestion = predict_next_feeding(feedings, T + timedelta(hours=1))

    assert suggestion is not None
    assert suggestion.scheduled_for == T + timedelta(hours=2)


def test_feeding_prediction_skipped_when_already_past():
    feedings = [feeding(T), feeding(T - timedelta(hours=2)), feeding(T - timedelta(hours=4))]

    assert predict_next_feeding(feedings, T + timedelta(hours=3)) is None
    assert predict_next_feeding(feedings, T + timedelta(hours=2)) is None


def test_naive_feeding_times_are_read_as_utc():
    naive = T.replace(tzinfo=None)
    feedings = [feeding(naive), feeding(naive - timedelta(hours=2))]

    suggestions = generate_suggestions(baby_aged(45), feedings, [], T + timedelta(hours=1))

    assert suggestions[0].type == ReminderType.FEEDING
    assert suggestions[0].scheduled_for == T + timedelta(hours=2)


def test_mixed_naive_and_aware_feedings():
    feedings = [
        feeding(T.replace(tzinfo=None)),
        feeding(T - timedelta(hours=2)),
        feeding((T - timedelta(hours=4)).replace(tzinfo=None)),
    ]

    suggestion = predict_next_feeding(feedings, (T + timedelta(hours=1)).replace(tzinfo=None))

    assert suggestion is not None
    assert suggestion.scheduled_for == T + timedelta(hours=2)


def test_single_feeding_never_predicts():
    assert average_feeding_interval([feeding(T)]) is None
    assert predict_next_feeding([feeding(T)], T) is None


def test_only_recent_feedings_are_sampled():
    feedings = [feeding(T - timedelta(hours=i)) for i in range(10)]
    feedings.append(feeding(T - timedelta(hours=100)))

    assert average_feeding_interval(feedings) == timedelta(hours=1)


def test_non_feeding_activities_do_not_affect_interval():
    history = [
        feeding(T),
        activity(ActivityCategory.DIAPER, T - timedelta(minutes=30)),
        feeding(T - timedelta(hours=3)),
    ]

    assert average_feeding_interval(history) == timedelta(hours=3)


@pytest.mark.parametrize(
    ("age_days", "expected"),
    [
        (29, []),
        (30, ["1-Month Milestone Check"]),
        (35, ["1-Month Milestone Check"]),
        (36, []),
        (59, []),
        (60, ["2-Month Milestone Check"]),
        (70, ["2-Month Milestone Check"]),
        (71, []),
        (125, ["4-Month Milestone Check"]),
        (370, ["12-Month Milestone Check"]),
    ],
)
def test_milestone_band_boundaries(age_days, expected):
    suggestions = milestone_suggestions(age_days)

    assert [s.title for s in suggestions] == expected
    assert all(s.type == ReminderType.MILESTONE for s in suggestions)
    assert all(s.priority == SuggestionPriority.MEDIUM for s in suggestions)


def test_vitamin_d_starts_at_sixty_days():
    assert vitamin_d_nudge(59, []) is None
    nudge = vitamin_d_nudge(60, [])
    assert nudge is not None
    assert nudge.type == ReminderType.MEDICINE
    assert nudge.title == "Vitamin D Supplement"


def test_vitamin_d_suppressed_by_open_medicine_reminder():
    assert vitamin_d_nudge(60, [reminder(ReminderType.MEDICINE)]) is None
    assert vitamin_d_nudge(90, [reminder(ReminderType.MEDICINE)]) is None


def test_open_medicine_reminder_removes_vitamin_d_from_ranking():
    reminders = [reminder(ReminderType.MEDICINE)]

    suggestions = generate_suggestions(baby_aged(60), [], reminders, T)

    assert [s.type for s in suggestions] == [ReminderType.MILESTONE, ReminderType.TIP]


def test_vitamin_d_not_suppressed_by_completed_or_other_reminders():
    reminders = [
        reminder(ReminderType.MEDICINE, completed=True),
        reminder(ReminderType.FEEDING),
    ]

    assert vitamin_d_nudge(90, reminders) is not None


def test_sleep_tracking_nudge_until_three_sleeps():
    nudge = sleep_tracking_nudge(sleeps(2))
    assert nudge is not None
    assert nudge.type == ReminderType.TIP
    assert nudge.priority == SuggestionPriority.LOW

    assert sleep_tracking_nudge(sleeps(3)) is None


def test_generate_truncates_in_evaluation_order():
    history = [feeding(T), feeding(T - timedelta(hours=2)), feeding(T - timedelta(hours=4))]

    suggestions = generate_suggestions(baby_aged(60), history, [], T + timedelta(hours=1))

    assert [s.type for s in suggestions] == [
        ReminderType.FEEDING,
        ReminderType.MILESTONE,
        ReminderType.MEDICINE,
    ]


def test_generate_keeps_order_when_fewer_rules_fire():
    history = [feeding(T), feeding(T - timedelta(hours=2))]

    suggestions = generate_suggestions(baby_aged(45), history, [], T + timedelta(hours=1))

    assert [s.type for s in suggestions] == [ReminderType.FEEDING, ReminderType.TIP]


def test_generate_returns_only_sleep_tip_for_quiet_newborn():
    suggestions = generate_suggestions(baby_aged(10), [], [], T)

    assert [s.title for s in suggestions] == ["Sleep Tracking Tip"]


def test_generate_can_return_nothing():
    assert generate_suggestions(baby_aged(10), sleeps(3), [], T) == []


def test_generate_respects_custom_limit():
    suggestions = generate_suggestions(baby_aged(60), [], [], T, limit=1)

    assert [s.type for s in suggestions] == [ReminderType.MILESTONE]


def test_generate_is_deterministic():
    history = [feeding(T), feeding(T - timedelta(hours=3))] + sleeps(1)
    reminders = [reminder(ReminderType.FEEDING)]
    baby = baby_aged(65)
    now = T + timedelta(minutes=30)

    first = generate_suggestions(baby, history, reminders, now)
    second = generate_suggestions(baby, history, reminders, now)

    assert [s.model_dump_json() for s in first] == [s.model_dump_json() for s in second]


def test_milestone_resurfaces_on_every_call_inside_band():
    baby = baby_aged(31)

    first = generate_suggestions(baby, sleeps(3), [], T)
    second = generate_suggestions(baby, sleeps(3), [], T)

    assert [s.title for s in first] == ["1-Month Milestone Check"]
    assert first == second


def test_generate_rejects_missing_birth_date():
    baby = BabyProfile(id=BABY_ID, name="Ada")

    with pytest.raises(InvalidCareDataError):
        generate_suggestions(baby, [], [], T)


def test_generate_rejects_future_birth_date():
    baby = BabyProfile(id=BABY_ID, name="Ada", birth_date=T.date() + timedelta(days=1))

    with pytest.raises(InvalidCareDataError):
        generate_suggestions(baby, [], [], T)


def test_generate_rejects_activity_ending_before_start():
    broken = activity(ActivityCategory.SLEEP, T, T - timedelta(minutes=5))

    with pytest.raises(InvalidCareDataError):
        generate_suggestions(baby_aged(10), [broken], [], T)


def test_generate_rejects_activity_for_another_baby():
    stray = CareActivity(baby_id="baby-2", activity_type=ActivityCategory.FEEDING, start_time=T)

    with pytest.raises(InvalidCareDataError):
        generate_suggestions(baby_aged(10), [stray], [], T)
