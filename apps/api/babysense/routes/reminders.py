from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from .. import data_access
from ..durations import InvalidCareDataError, due_label, is_overdue
from ..schemas import CreateReminderPayload, Reminder, ReminderType, Suggestion
from ..suggestion_engine import generate_suggestions
from ..supabase import UserContext, get_user_context, parse_uuid

router = APIRouter(prefix="/api/v1", tags=["reminders"])
logger = logging.getLogger(__name__)

REMINDER_PRESETS: Dict[ReminderType, Dict[str, str]] = {
    ReminderType.FEEDING: {"title": "Feeding Time", "message": "Time for baby's next feeding session"},
    ReminderType.SLEEP: {"title": "Nap Time", "message": "Put baby down for their scheduled nap"},
    ReminderType.MEDICINE: {"title": "Medicine Time", "message": "Give baby their prescribed medication"},
    ReminderType.APPOINTMENT: {"title": "Doctor Appointment", "message": "Upcoming pediatrician visit"},
    ReminderType.MILESTONE: {"title": "Development Milestone", "message": "Check baby's developmental progress"},
    ReminderType.TIP: {"title": "Parenting Tip", "message": "Remember to practice tummy time daily"},
}


class ReminderView(BaseModel):
    reminder: Reminder
    due_label: str
    is_overdue: bool


class ReminderBoard(BaseModel):
    pending: List[ReminderView]
    completed: List[ReminderView]


class UpdateReminderPayload(BaseModel):
    is_completed: bool


class SuggestionBoard(BaseModel):
    baby_id: str
    suggestions: List[Suggestion]


@router.get("/reminders/presets")
async def reminder_presets_endpoint() -> Dict[str, Dict[str, str]]:
    return {reminder_type.value: preset for reminder_type, preset in REMINDER_PRESETS.items()}


@router.get("/reminders", response_model=ReminderBoard)
async def list_reminders_endpoint(
    baby_id: Optional[str] = Query(None, description="Optional baby id"),
    auth: UserContext = Depends(get_user_context),
) -> ReminderBoard:
    baby_uuid = parse_uuid(baby_id, "baby_id") if baby_id else None
    reminders = await data_access.list_reminders(auth, baby_uuid)
    now = datetime.now(timezone.utc)
    board = ReminderBoard(pending=[], completed=[])
    for reminder in reminders:
        view = ReminderView(
            reminder=reminder,
            due_label=due_label(reminder.scheduled_for, now),
            is_overdue=not reminder.is_completed and is_overdue(reminder.scheduled_for, now),
        )
        (board.completed if reminder.is_completed else board.pending).append(view)
    return board


@router.post("/reminders", response_model=Reminder)
async def create_reminder_endpoint(
    payload: CreateReminderPayload,
    auth: UserContext = Depends(get_user_context),
) -> Reminder:
    baby = await data_access.get_baby(auth, parse_uuid(payload.baby_id, "baby_id"))
    title = payload.title.strip()
    message = payload.message.strip()
    if not title or not message:
        raise HTTPException(status_code=400, detail="title and message are required")
    reminder = await data_access.create_reminder(
        auth,
        payload.model_copy(update={"baby_id": baby.id, "title": title, "message": message}),
    )
    logger.info(
        "reminder created",
        extra={"baby_id": baby.id, "reminder_type": payload.reminder_type.value},
    )
    return reminder


@router.patch("/reminders/{reminder_id}", response_model=Reminder)
async def update_reminder_endpoint(
    reminder_id: str,
    payload: UpdateReminderPayload,
    auth: UserContext = Depends(get_user_context),
) -> Reminder:
    return await data_access.set_reminder_completed(
        auth, parse_uuid(reminder_id, "reminder_id"), payload.is_completed
    )


@router.delete("/reminders/{reminder_id}")
async def delete_reminder_endpoint(
    reminder_id: str,
    auth: UserContext = Depends(get_user_context),
) -> dict:
    reminder_uuid = parse_uuid(reminder_id, "reminder_id")
    await data_access.delete_reminder(auth, reminder_uuid)
    return {"deleted": reminder_uuid}


@router.get("/babies/{baby_id}/suggestions", response_model=SuggestionBoard)
async def list_suggestions_endpoint(
    baby_id: str,
    auth: UserContext = Depends(get_user_context),
) -> SuggestionBoard:
    baby = await data_access.get_baby(auth, parse_uuid(baby_id, "baby_id"))
    activities = await data_access.list_recent_activities(auth, baby.id)
    reminders = await data_access.list_reminders(auth, baby.id)
    try:
        suggestions = generate_suggestions(baby, activities, reminders, datetime.now(timezone.utc))
    except InvalidCareDataError as exc:
        logger.warning("suggestions rejected malformed data", extra={"baby_id": baby.id, "error": str(exc)})
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    logger.info(
        "baby-scoped request",
        extra={"method": "GET", "path": "/suggestions", "baby_id": baby.id, "count": len(suggestions)},
    )
    return SuggestionBoard(baby_id=baby.id, suggestions=suggestions)


@router.post("/babies/{baby_id}/suggestions/reminders", response_model=Reminder)
async def create_reminder_from_suggestion_endpoint(
    baby_id: str,
    suggestion: Suggestion,
    auth: UserContext = Depends(get_user_context),
) -> Reminder:
    baby = await data_access.get_baby(auth, parse_uuid(baby_id, "baby_id"))
    return await data_access.create_reminder(auth, suggestion.to_reminder(baby.id))
