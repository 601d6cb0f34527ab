"""Pydantic schemas shared across the API."""
from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ActivityType(str, Enum):
    SLEEP = "sleep"
    FEEDING = "feeding"
    BOTTLE = "bottle"
    NURSING = "nursing"
    PUMPING = "pumping"
    DIAPER = "diaper"
    WET = "wet"
    DIRTY = "dirty"
    BOTH = "both"
    SOLIDS = "solids"
    BATH = "bath"
    MEDICINE = "medicine"
    TEMPERATURE = "temperature"
    TUMMY_TIME = "tummy_time"
    GROWTH = "growth"
    POTTY = "potty"
    NAIL_TRIMMING = "nail_trimming"


class PredictedActivity(str, Enum):
    FEEDING = "feeding"
    SLEEP = "sleep"
    DIAPER = "diaper"
    PUMPING = "pumping"


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ActivityStatus(str, Enum):
    UPCOMING = "upcoming"
    SOON = "soon"
    OVERDUE = "overdue"


def _ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ActivityRecord(BaseModel):
    """A logged event for a baby, as read from the activities table."""

    id: Optional[str] = None
    type: str
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, description="Minutes for sleep and tummy time")
    amount: Optional[float] = None
    amount_ml: Optional[float] = None
    notes: Optional[str] = None
    is_scheduled: bool = False
    details: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("start_time", "end_time")
    @classmethod
    def _normalize_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _ensure_utc(value)

    @field_validator("is_scheduled", mode="before")
    @classmethod
    def _null_is_not_scheduled(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("details", mode="before")
    @classmethod
    def _null_details(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def is_skip_marker(self) -> bool:
        return self.details.get("skipped") is True


class BabyProfile(BaseModel):
    id: str
    family_id: Optional[str] = None
    first_name: str = ""
    birth_date: Optional[datetime] = None
    feed_interval_hours: Optional[float] = None

    @field_validator("birth_date", mode="before")
    @classmethod
    def _date_to_datetime(cls, value: Any) -> Any:
        if isinstance(value, str) and len(value) == 10:
            value = date.fromisoformat(value)
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
        return value

    @field_validator("birth_date")
    @classmethod
    def _normalize_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _ensure_utc(value)


class UserAlarmPreferences(BaseModel):
    alarm_feeding_enabled: bool = False
    alarm_sleep_enabled: bool = False
    alarm_diaper_enabled: bool = False
    alarm_pumping_enabled: bool = False
    alarm_feeding_threshold: Optional[int] = Field(default=None, ge=0)
    alarm_sleep_threshold: Optional[int] = Field(default=None, ge=0)
    alarm_diaper_threshold: Optional[int] = Field(default=None, ge=0)
    alarm_pumping_threshold: Optional[int] = Field(default=None, ge=0)

    @field_validator(
        "alarm_feeding_enabled",
        "alarm_sleep_enabled",
        "alarm_diaper_enabled",
        "alarm_pumping_enabled",
        mode="before",
    )
    @classmethod
    def _null_is_disabled(cls, value: Any) -> Any:
        return False if value is None else value

    def is_enabled(self, category: PredictedActivity) -> bool:
        return bool(getattr(self, f"alarm_{category.value}_enabled"))

    def threshold_for(self, category: PredictedActivity) -> Optional[int]:
        return getattr(self, f"alarm_{category.value}_threshold")

    def enabled_categories(self) -> List[PredictedActivity]:
        return [category for category in PredictedActivity if self.is_enabled(category)]

    @property
    def any_enabled(self) -> bool:
        return bool(self.enabled_categories())


class PatternEntry(BaseModel):
    time: datetime
    interval_from_previous: Optional[float] = None
    amount_ml: Optional[float] = None
    duration: Optional[int] = None
    type: Optional[str] = None


class PredictionWeights(BaseModel):
    age_based: float = 1.0
    recent_average: float = 0.0
    last_interval: float = 0.0


class CalculationDetails(BaseModel):
    age_based_interval: float
    recent_average_interval: Optional[float] = None
    last_interval: Optional[float] = None
    weights: PredictionWeights = Field(default_factory=PredictionWeights)
    data_points: int = 0
    source: str = Field(default="age-based", description="age-based | blended | configured")


class Prediction(BaseModel):
    """Best estimate of the next occurrence of one activity category."""

    activity_type: PredictedActivity
    next_time: datetime
    interval_hours: float
    confidence_level: ConfidenceLevel
    average_interval_hours: Optional[float] = None
    last_time: Optional[datetime] = None
    recent_pattern: List[PatternEntry] = Field(default_factory=list)
    is_overdue: bool = False
    overdue_minutes: Optional[int] = None
    suggested_recovery_time: Optional[datetime] = None
    recent_skip_time: Optional[datetime] = None
    calculation_details: CalculationDetails
    suggested_duration: Optional[int] = None
    suggested_amount: Optional[float] = None
    suggested_type: Optional[str] = None


class SkipState(BaseModel):
    is_recently_skipped: bool
    effective_is_overdue: bool
    display_next_time: datetime


class OverdueActivity(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    activity_type: PredictedActivity
    baby_id: str
    baby_name: str
    overdue_minutes: int
    next_expected_time: datetime


class OverdueCheckResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    overdue_activities: List[OverdueActivity] = Field(default_factory=list)


class ActivityCard(BaseModel):
    """Everything a dashboard card needs for one activity category."""

    prediction: Prediction
    skip: SkipState
    threshold_minutes: int
    threshold_description: str
    status: ActivityStatus


class BabyPredictionsResponse(BaseModel):
    baby_id: str
    baby_name: str
    age_days: Optional[int] = None
    generated_at: datetime
    cards: Dict[PredictedActivity, ActivityCard]
