"""Pydantic schemas shared across the engine and the API."""
from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator


class ActivityCategory(str, Enum):
    FEEDING = "feeding"
    SLEEP = "sleep"
    DIAPER = "diaper"
    PLAY = "play"
    MEDICINE = "medicine"
    OTHER = "other"


class ReminderType(str, Enum):
    FEEDING = "feeding"
    SLEEP = "sleep"
    DIAPER = "diaper"
    PLAY = "play"
    MEDICINE = "medicine"
    OTHER = "other"
    APPOINTMENT = "appointment"
    MILESTONE = "milestone"
    TIP = "tip"


class SuggestionPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TipCategory(str, Enum):
    SLEEP = "sleep"
    FEEDING = "feeding"
    DEVELOPMENT = "development"
    BEHAVIOR = "behavior"


class CryNeed(str, Enum):
    HUNGER = "hunger"
    SLEEP = "sleep"
    DISCOMFORT = "discomfort"
    ATTENTION = "attention"
    PAIN = "pain"


ACTIVITY_TITLES = {
    ActivityCategory.FEEDING: "Log Feeding",
    ActivityCategory.SLEEP: "Log Sleep",
    ActivityCategory.DIAPER: "Log Diaper Change",
    ActivityCategory.PLAY: "Log Playtime",
    ActivityCategory.MEDICINE: "Log Medicine",
    ActivityCategory.OTHER: "Log Activity",
}


class FeedingDetails(BaseModel):
    kind: Literal["feeding"] = "feeding"
    type: Optional[Literal["breast", "bottle", "solid"]] = None
    amount: Optional[float] = Field(default=None, ge=0, description="Amount in ml/oz")


class DiaperDetails(BaseModel):
    kind: Literal["diaper"] = "diaper"
    type: Optional[Literal["wet", "dirty", "both"]] = None
    condition: Optional[Literal["normal", "loose", "hard", "unusual"]] = None


class MedicineDetails(BaseModel):
    kind: Literal["medicine"] = "medicine"
    name: Optional[str] = None
    dosage: Optional[str] = Field(default=None, description="Free-form dosage like 5ml")


ActivityDetails = Annotated[
    Union[FeedingDetails, DiaperDetails, MedicineDetails],
    Field(discriminator="kind"),
]

_DETAIL_CATEGORIES = {
    ActivityCategory.FEEDING.value,
    ActivityCategory.DIAPER.value,
    ActivityCategory.MEDICINE.value,
}


class BabyProfile(BaseModel):
    id: str
    name: str
    birth_date: Optional[date] = None
    gender: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None


class CareActivity(BaseModel):
    id: Optional[str] = None
    baby_id: Optional[str] = None
    activity_type: ActivityCategory
    start_time: datetime
    end_time: Optional[datetime] = None
    notes: Optional[str] = None
    metadata: Optional[ActivityDetails] = None

    @model_validator(mode="before")
    @classmethod
    def _tag_metadata(cls, data: Any) -> Any:
        """Stored rows carry untagged metadata; tag it from the category."""
        if not isinstance(data, dict):
            return data
        metadata = data.get("metadata")
        if not isinstance(metadata, dict):
            return data
        category = data.get("activity_type")
        if isinstance(category, ActivityCategory):
            category = category.value
        if category not in _DETAIL_CATEGORIES:
            return {**data, "metadata": None}
        if "kind" not in metadata:
            return {**data, "metadata": {**metadata, "kind": category}}
        return data

    @model_validator(mode="after")
    def _details_match_category(self) -> "CareActivity":
        if self.metadata is not None and self.metadata.kind != self.activity_type.value:
            raise ValueError(
                f"{self.metadata.kind} details cannot be attached to a {self.activity_type.value} activity"
            )
        return self


class Reminder(BaseModel):
    id: Optional[str] = None
    baby_id: Optional[str] = None
    baby_name: Optional[str] = None
    title: str = ""
    message: str = ""
    reminder_type: ReminderType
    scheduled_for: Optional[datetime] = None
    is_completed: bool = False
    created_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_baby(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("babies"), dict):
            data = {**data, "baby_name": data["babies"].get("name")}
        return data


class CreateReminderPayload(BaseModel):
    baby_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    reminder_type: ReminderType
    scheduled_for: Optional[datetime] = None


class Suggestion(BaseModel):
    type: ReminderType
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    scheduled_for: Optional[datetime] = None
    priority: SuggestionPriority

    def to_reminder(self, baby_id: str) -> CreateReminderPayload:
        return CreateReminderPayload(
            baby_id=baby_id,
            title=self.title,
            message=self.message,
            reminder_type=self.type,
            scheduled_for=self.scheduled_for,
        )


class Tip(BaseModel):
    title: str
    body: str
    category: TipCategory


class CryClassification(BaseModel):
    need: CryNeed
    confidence: float = Field(..., ge=0.0, le=1.0)
    description: str
    recommendations: List[str] = Field(default_factory=list)


class CryAnalysis(BaseModel):
    id: str
    baby_id: Optional[str] = None
    baby_name: Optional[str] = None
    predicted_need: CryNeed
    confidence_score: float = Field(..., ge=0.0, le=1.0)
    analysis_result: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    @model_validator(mode="before")
    @classmethod
    def _flatten_baby(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("babies"), dict):
            data = {**data, "baby_name": data["babies"].get("name")}
        return data
