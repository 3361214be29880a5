from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from .. import data_access
from ..durations import InvalidCareDataError, age_in_days
from ..schemas import BabyProfile
from ..supabase import UserContext, get_user_context, parse_uuid
from ..tips import TipRotation, TipView, current_tip, next_tip

router = APIRouter(prefix="/api/v1", tags=["tips"])


class TipRotationPayload(BaseModel):
    """Rotation state echoed back by the client from its last TipView."""

    baby_id: Optional[str] = None
    index: int = Field(default=0, ge=0)


def _baby_age(baby: BabyProfile) -> int:
    try:
        return age_in_days(baby.birth_date, datetime.now(timezone.utc))
    except InvalidCareDataError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("/babies/{baby_id}/tips", response_model=TipView)
async def current_tip_endpoint(
    baby_id: str,
    index: int = Query(0, ge=0),
    rotation_baby_id: Optional[str] = Query(None, description="Baby the index was issued for"),
    auth: UserContext = Depends(get_user_context),
) -> TipView:
    baby = await data_access.get_baby(auth, parse_uuid(baby_id, "baby_id"))
    rotation = TipRotation(baby_id=rotation_baby_id or baby.id, index=index).for_baby(baby.id)
    return current_tip(_baby_age(baby), rotation)


@router.post("/babies/{baby_id}/tips/next", response_model=TipView)
async def next_tip_endpoint(
    baby_id: str,
    payload: TipRotationPayload,
    auth: UserContext = Depends(get_user_context),
) -> TipView:
    baby = await data_access.get_baby(auth, parse_uuid(baby_id, "baby_id"))
    rotation = TipRotation(baby_id=payload.baby_id, index=payload.index).for_baby(baby.id)
    _, view = next_tip(_baby_age(baby), rotation)
    return view
