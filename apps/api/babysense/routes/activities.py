from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ValidationError

from .. import data_access
from ..care_stats import DailySummary, summarize_day
from ..durations import InvalidCareDataError, day_label, duration_label, duration_minutes
from ..schemas import ACTIVITY_TITLES, ActivityCategory, CareActivity
from ..supabase import UserContext, get_user_context, parse_uuid

router = APIRouter(prefix="/api/v1", tags=["activities"])
logger = logging.getLogger(__name__)


class LogActivityPayload(BaseModel):
    activity_type: ActivityCategory
    start_time: datetime
    end_time: Optional[datetime] = None
    is_ongoing: bool = False
    notes: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class TimelineEntry(BaseModel):
    activity: CareActivity
    title: str
    day: str
    duration: str


class TimelineDay(BaseModel):
    day: str
    entries: List[TimelineEntry]


@router.get("/babies/{baby_id}/activities", response_model=List[TimelineDay])
async def list_activities_endpoint(
    baby_id: str,
    limit: int = Query(50, ge=1, le=200),
    auth: UserContext = Depends(get_user_context),
) -> List[TimelineDay]:
    """Recent activities grouped by day, newest first."""

    baby_uuid = parse_uuid(baby_id, "baby_id")
    logger.info(
        "baby-scoped request",
        extra={"method": "GET", "path": "/activities", "baby_id": baby_uuid},
    )
    activities = await data_access.list_recent_activities(auth, baby_uuid, limit=limit)
    now = datetime.now(timezone.utc)
    days: List[TimelineDay] = []
    for activity in activities:
        label = day_label(activity.start_time, now)
        try:
            duration = duration_label(activity.start_time, activity.end_time)
        except InvalidCareDataError:
            logger.warning("activity ends before it starts", extra={"activity_id": activity.id})
            duration = "Invalid"
        entry = TimelineEntry(
            activity=activity,
            title=activity.activity_type.value.capitalize(),
            day=label,
            duration=duration,
        )
        if days and days[-1].day == label:
            days[-1].entries.append(entry)
        else:
            days.append(TimelineDay(day=label, entries=[entry]))
    return days


@router.post("/babies/{baby_id}/activities", response_model=CareActivity)
async def log_activity_endpoint(
    baby_id: str,
    payload: LogActivityPayload,
    auth: UserContext = Depends(get_user_context),
) -> CareActivity:
    baby = await data_access.get_baby(auth, parse_uuid(baby_id, "baby_id"))
    end_time = None if payload.is_ongoing else payload.end_time
    try:
        activity = CareActivity(
            baby_id=baby.id,
            activity_type=payload.activity_type,
            start_time=payload.start_time,
            end_time=end_time,
            notes=(payload.notes or "").strip() or None,
            metadata=payload.metadata or None,
        )
        duration_minutes(activity.start_time, activity.end_time)
    except (ValidationError, InvalidCareDataError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    saved = await data_access.log_activity(auth, activity)
    logger.info(
        "activity logged",
        extra={
            "baby_id": baby.id,
            "activity_type": activity.activity_type.value,
            "title": ACTIVITY_TITLES[activity.activity_type],
        },
    )
    return saved


@router.get("/babies/{baby_id}/stats/today", response_model=DailySummary)
async def today_stats_endpoint(
    baby_id: str,
    auth: UserContext = Depends(get_user_context),
) -> DailySummary:
    baby_uuid = parse_uuid(baby_id, "baby_id")
    activities = await data_access.list_recent_activities(auth, baby_uuid)
    try:
        return summarize_day(activities, datetime.now(timezone.utc))
    except InvalidCareDataError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
