from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from .. import data_access
from ..durations import InvalidCareDataError, age_in_days, human_age_label
from ..schemas import BabyProfile
from ..supabase import UserContext, get_user_context, parse_uuid

router = APIRouter(prefix="/api/v1", tags=["babies"])
logger = logging.getLogger(__name__)


class CreateBabyPayload(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    birth_date: date
    gender: Optional[str] = None
    photo_url: Optional[str] = None


class UpdateBabyPayload(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    birth_date: Optional[date] = None
    gender: Optional[str] = None


class BabyCard(BaseModel):
    baby: BabyProfile
    age_in_days: int
    age_label: str


def _reject_future_birth_date(birth_date: Optional[date]) -> None:
    if birth_date and birth_date > datetime.now(timezone.utc).date():
        raise HTTPException(status_code=400, detail="birth_date cannot be in the future")


@router.get("/babies", response_model=List[BabyProfile])
async def list_babies_endpoint(auth: UserContext = Depends(get_user_context)) -> List[BabyProfile]:
    return await data_access.list_babies(auth)


@router.post("/babies", response_model=BabyProfile)
async def create_baby_endpoint(
    payload: CreateBabyPayload,
    auth: UserContext = Depends(get_user_context),
) -> BabyProfile:
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="name is required")
    _reject_future_birth_date(payload.birth_date)
    return await data_access.create_baby(
        auth,
        name=name,
        birth_date=payload.birth_date,
        gender=payload.gender,
        photo_url=payload.photo_url,
    )


@router.patch("/babies/{baby_id}", response_model=BabyProfile)
async def update_baby_endpoint(
    baby_id: str,
    payload: UpdateBabyPayload,
    auth: UserContext = Depends(get_user_context),
) -> BabyProfile:
    baby_uuid = parse_uuid(baby_id, "baby_id")
    updates = {field: getattr(payload, field) for field in payload.model_fields_set}
    if "name" in updates:
        updates["name"] = (updates["name"] or "").strip()
        if not updates["name"]:
            raise HTTPException(status_code=400, detail="name cannot be empty")
    _reject_future_birth_date(updates.get("birth_date"))
    if not updates:
        return await data_access.get_baby(auth, baby_uuid)
    return await data_access.update_baby(auth, baby_uuid, updates)


@router.delete("/babies/{baby_id}")
async def delete_baby_endpoint(
    baby_id: str,
    auth: UserContext = Depends(get_user_context),
) -> dict:
    baby_uuid = parse_uuid(baby_id, "baby_id")
    await data_access.delete_baby(auth, baby_uuid)
    return {"deleted": baby_uuid}


@router.get("/babies/{baby_id}/profile", response_model=BabyCard)
async def baby_profile_endpoint(
    baby_id: str,
    auth: UserContext = Depends(get_user_context),
) -> BabyCard:
    baby = await data_access.get_baby(auth, parse_uuid(baby_id, "baby_id"))
    try:
        days = age_in_days(baby.birth_date, datetime.now(timezone.utc))
    except InvalidCareDataError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return BabyCard(baby=baby, age_in_days=days, age_label=human_age_label(days))
