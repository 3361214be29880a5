"""Supabase-backed reads and writes, always scoped to the signed-in user."""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import HTTPException

from .config import CONFIG
from .schemas import (
    BabyProfile,
    CareActivity,
    CreateReminderPayload,
    CryAnalysis,
    CryClassification,
    Reminder,
)
from .supabase import UserContext

logger = logging.getLogger(__name__)

BABY_FIELDS = "id,name,birth_date,gender,photo_url,created_at"
ACTIVITY_FIELDS = "id,baby_id,activity_type,start_time,end_time,notes,metadata"
REMINDER_FIELDS = "id,baby_id,title,message,reminder_type,scheduled_for,is_completed,created_at,babies(name)"
ANALYSIS_FIELDS = "id,baby_id,predicted_need,confidence_score,analysis_result,created_at,babies(name)"


async def list_babies(auth: UserContext) -> List[BabyProfile]:
    rows = await auth.supabase.select(
        "babies",
        params={
            "select": BABY_FIELDS,
            "user_id": f"eq.{auth.user_id}",
            "order": "created_at.desc",
        },
    )
    return [BabyProfile.model_validate(row) for row in rows]


async def get_baby(auth: UserContext, baby_id: str) -> BabyProfile:
    rows = await auth.supabase.select(
        "babies",
        params={
            "select": BABY_FIELDS,
            "id": f"eq.{baby_id}",
            "user_id": f"eq.{auth.user_id}",
            "limit": "1",
        },
    )
    if not rows:
        raise HTTPException(status_code=404, detail="Baby not found")
    return BabyProfile.model_validate(rows[0])


async def create_baby(
    auth: UserContext,
    *,
    name: str,
    birth_date: date,
    gender: Optional[str] = None,
    photo_url: Optional[str] = None,
) -> BabyProfile:
    rows = await auth.supabase.insert(
        "babies",
        {
            "user_id": auth.user_id,
            "name": name,
            "birth_date": birth_date.isoformat(),
            "gender": gender,
            "photo_url": photo_url,
        },
    )
    if not rows:
        raise HTTPException(status_code=502, detail="Baby was not returned after insert")
    return BabyProfile.model_validate(rows[0])


async def update_baby(auth: UserContext, baby_id: str, updates: Dict[str, Any]) -> BabyProfile:
    payload = dict(updates)
    if isinstance(payload.get("birth_date"), date):
        payload["birth_date"] = payload["birth_date"].isoformat()
    payload["updated_at"] = datetime.now(timezone.utc).isoformat()
    rows = await auth.supabase.update(
        "babies",
        payload,
        params={"id": f"eq.{baby_id}", "user_id": f"eq.{auth.user_id}"},
    )
    if not rows:
        raise HTTPException(status_code=404, detail="Baby not found")
    return BabyProfile.model_validate(rows[0])


async def delete_baby(auth: UserContext, baby_id: str) -> None:
    await auth.supabase.delete(
        "babies",
        params={"id": f"eq.{baby_id}", "user_id": f"eq.{auth.user_id}"},
    )
    logger.info("baby deleted", extra={"baby_id": baby_id, "user_id": auth.user_id})


async def list_recent_activities(
    auth: UserContext,
    baby_id: str,
    *,
    limit: Optional[int] = None,
) -> List[CareActivity]:
    """Newest first, capped so the engine never scans an unbounded window."""

    rows = await auth.supabase.select(
        "care_activities",
        params={
            "select": ACTIVITY_FIELDS,
            "user_id": f"eq.{auth.user_id}",
            "baby_id": f"eq.{baby_id}",
            "order": "start_time.desc",
            "limit": str(limit or CONFIG.recent_activity_limit),
        },
    )
    return [CareActivity.model_validate(row) for row in rows]


async def log_activity(auth: UserContext, activity: CareActivity) -> CareActivity:
    metadata = None
    if activity.metadata is not None:
        metadata = activity.metadata.model_dump(exclude={"kind"}, exclude_none=True) or None
    rows = await auth.supabase.insert(
        "care_activities",
        {
            "baby_id": activity.baby_id,
            "user_id": auth.user_id,
            "activity_type": activity.activity_type.value,
            "start_time": activity.start_time.isoformat(),
            "end_time": activity.end_time.isoformat() if activity.end_time else None,
            "notes": activity.notes or None,
            "metadata": metadata,
        },
    )
    return CareActivity.model_validate(rows[0]) if rows else activity


async def list_reminders(auth: UserContext, baby_id: Optional[str] = None) -> List[Reminder]:
    params = {
        "select": REMINDER_FIELDS,
        "user_id": f"eq.{auth.user_id}",
        "order": "scheduled_for.asc",
    }
    if baby_id:
        params["baby_id"] = f"eq.{baby_id}"
    rows = await auth.supabase.select("reminders", params=params)
    return [Reminder.model_validate(row) for row in rows]


async def create_reminder(auth: UserContext, payload: CreateReminderPayload) -> Reminder:
    rows = await auth.supabase.insert(
        "reminders",
        {
            "baby_id": payload.baby_id,
            "user_id": auth.user_id,
            "title": payload.title,
            "message": payload.message,
            "reminder_type": payload.reminder_type.value,
            "scheduled_for": payload.scheduled_for.isoformat() if payload.scheduled_for else None,
            "is_completed": False,
        },
    )
    if not rows:
        raise HTTPException(status_code=502, detail="Reminder was not returned after insert")
    return Reminder.model_validate(rows[0])


async def set_reminder_completed(auth: UserContext, reminder_id: str, is_completed: bool) -> Reminder:
    rows = await auth.supabase.update(
        "reminders",
        {"is_completed": is_completed},
        params={"id": f"eq.{reminder_id}", "user_id": f"eq.{auth.user_id}"},
    )
    if not rows:
        raise HTTPException(status_code=404, detail="Reminder not found")
    return Reminder.model_validate(rows[0])


async def delete_reminder(auth: UserContext, reminder_id: str) -> None:
    await auth.supabase.delete(
        "reminders",
        params={"id": f"eq.{reminder_id}", "user_id": f"eq.{auth.user_id}"},
    )


async def record_cry_analysis(
    auth: UserContext,
    baby: BabyProfile,
    result: CryClassification,
    *,
    analyzed_at: datetime,
) -> CryAnalysis:
    rows = await auth.supabase.insert(
        "cry_analyses",
        {
            "baby_id": baby.id,
            "user_id": auth.user_id,
            "predicted_need": result.need.value,
            "confidence_score": result.confidence,
            "analysis_result": {
                "description": result.description,
                "recommendations": result.recommendations,
                "timestamp": analyzed_at.isoformat(),
            },
        },
        params={"select": ANALYSIS_FIELDS},
    )
    if not rows:
        raise HTTPException(status_code=502, detail="Analysis was not returned after insert")
    return CryAnalysis.model_validate(rows[0])


async def list_recent_analyses(auth: UserContext, *, limit: Optional[int] = None) -> List[CryAnalysis]:
    rows = await auth.supabase.select(
        "cry_analyses",
        params={
            "select": ANALYSIS_FIELDS,
            "user_id": f"eq.{auth.user_id}",
            "order": "created_at.desc",
            "limit": str(limit or CONFIG.recent_analysis_limit),
        },
    )
    return [CryAnalysis.model_validate(row) for row in rows]
