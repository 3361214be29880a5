from __future__ import annotations

import base64
import binascii
import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import List, Literal

import httpx
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from .. import data_access
from ..cry_classifier import CryClassificationError, CryClassifier, create_cry_classifier
from ..durations import time_ago_label
from ..schemas import CryAnalysis
from ..supabase import UserContext, get_user_context, parse_uuid

router = APIRouter(prefix="/api/v1", tags=["cry-analyses"])
logger = logging.getLogger(__name__)


class AnalyzeCryPayload(BaseModel):
    baby_id: str
    audio_base64: str = Field(..., min_length=1)
    audio_format: Literal["wav", "mp3"] = "wav"


class AnalysisHistoryEntry(BaseModel):
    analysis: CryAnalysis
    time_ago: str
    confidence_percent: int


@lru_cache
def get_cry_classifier() -> CryClassifier:
    return create_cry_classifier()


@router.post("/cry-analyses", response_model=CryAnalysis)
async def analyze_cry_endpoint(
    payload: AnalyzeCryPayload,
    auth: UserContext = Depends(get_user_context),
    classifier: CryClassifier = Depends(get_cry_classifier),
) -> CryAnalysis:
    baby = await data_access.get_baby(auth, parse_uuid(payload.baby_id, "baby_id"))
    try:
        audio = base64.b64decode(payload.audio_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(status_code=400, detail="audio_base64 is not valid base64") from exc

    try:
        result = classifier.classify(audio, baby.id, audio_format=payload.audio_format)
    except CryClassificationError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    analyzed_at = datetime.now(timezone.utc)
    try:
        return await data_access.record_cry_analysis(auth, baby, result, analyzed_at=analyzed_at)
    except (HTTPException, httpx.HTTPError) as exc:
        # The parent still gets the result when saving fails.
        logger.exception("Error saving cry analysis", exc_info=exc)
        return CryAnalysis(
            id="temp",
            baby_id=baby.id,
            baby_name=baby.name,
            predicted_need=result.need,
            confidence_score=result.confidence,
            analysis_result={
                "description": result.description,
                "recommendations": result.recommendations,
            },
            created_at=analyzed_at,
        )


@router.get("/cry-analyses", response_model=List[AnalysisHistoryEntry])
async def list_cry_analyses_endpoint(
    auth: UserContext = Depends(get_user_context),
) -> List[AnalysisHistoryEntry]:
    analyses = await data_access.list_recent_analyses(auth)
    now = datetime.now(timezone.utc)
    return [
        AnalysisHistoryEntry(
            analysis=analysis,
            time_ago=time_ago_label(analysis.created_at, now),
            confidence_percent=round(analysis.confidence_score * 100),
        )
        for analysis in analyses
    ]
