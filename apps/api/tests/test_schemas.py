import pytest
from pydantic import ValidationError

from babysense.schemas import (
    CareActivity,
    DiaperDetails,
    FeedingDetails,
    Reminder,
    ReminderType,
    Suggestion,
    SuggestionPriority,
)


def test_stored_feeding_metadata_is_tagged():
    activity = CareActivity.model_validate(
        {
            "id": "a1",
            "baby_id": "b1",
            "activity_type": "feeding",
            "start_time": "2025-03-10T12:00:00Z",
            "metadata": {"type": "bottle", "amount": "120"},
        }
    )

    assert isinstance(activity.metadata, FeedingDetails)
    assert activity.metadata.amount == 120.0


def test_metadata_dropped_for_categories_without_details():
    activity = CareActivity.model_validate(
        {
            "activity_type": "sleep",
            "start_time": "2025-03-10T12:00:00Z",
            "metadata": {"quality": "good"},
        }
    )

    assert activity.metadata is None


def test_diaper_condition_is_validated():
    with pytest.raises(ValidationError):
        CareActivity.model_validate(
            {
                "activity_type": "diaper",
                "start_time": "2025-03-10T12:00:00Z",
                "metadata": {"type": "wet", "condition": "green"},
            }
        )


def test_details_must_match_category():
    with pytest.raises(ValidationError):
        CareActivity.model_validate(
            {
                "activity_type": "feeding",
                "start_time": "2025-03-10T12:00:00Z",
                "metadata": {"kind": "diaper", "type": "wet"},
            }
        )


def test_typed_details_accepted_directly():
    activity = CareActivity(
        activity_type="diaper",
        start_time="2025-03-10T12:00:00Z",
        metadata=DiaperDetails(type="both"),
    )

    assert activity.metadata.type == "both"


def test_reminder_flattens_joined_baby_name():
    reminder = Reminder.model_validate(
        {
            "id": "r1",
            "baby_id": "b1",
            "title": "Feeding Time",
            "message": "Time for baby's next feeding session",
            "reminder_type": "feeding",
            "babies": {"name": "Ada"},
        }
    )

    assert reminder.baby_name == "Ada"
    assert reminder.is_completed is False


def test_suggestion_becomes_reminder_payload():
    suggestion = Suggestion(
        type=ReminderType.MILESTONE,
        title="2-Month Milestone Check",
        message="Look for social smiles and better head control",
        priority=SuggestionPriority.MEDIUM,
    )

    payload = suggestion.to_reminder("b1")

    assert payload.baby_id == "b1"
    assert payload.reminder_type == ReminderType.MILESTONE
    assert payload.scheduled_for is None
