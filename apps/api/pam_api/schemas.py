"""Pydantic schemas shared across the API."""
from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .clock import to_utc


class ActivityCategory(str, Enum):
    FEEDING = "feeding"
    SLEEP = "sleep"
    NAPPY = "nappy"
    TUMMY_TIME = "tummy_time"


CATEGORY_ALIASES = {
    "diaper": ActivityCategory.NAPPY,
    "tummy": ActivityCategory.TUMMY_TIME,
}


class ActivityEvent(BaseModel):
    """One logged occurrence; never mutated after it is written."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    child_id: str
    category: ActivityCategory
    subtype: Optional[str] = Field(default=None, description="breast | bottle | wet | dirty | ...")
    started_at: datetime
    ended_at: Optional[datetime] = None
    duration_minutes: Optional[float] = Field(default=None, ge=0)
    amount_ml: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None

    @field_validator("category", mode="before")
    @classmethod
    def _resolve_alias(cls, value):
        if isinstance(value, str):
            return CATEGORY_ALIASES.get(value.lower(), value.lower())
        return value

    @field_validator("started_at", "ended_at")
    @classmethod
    def _normalise_to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_utc(value) if value is not None else None

    @model_validator(mode="after")
    def _check_order(self) -> "ActivityEvent":
        if self.ended_at is not None and self.ended_at < self.started_at:
            raise ValueError("ended_at must not be earlier than started_at")
        return self

    @property
    def minutes(self) -> Optional[float]:
        """Logged duration, or the span between start and end when only that is known."""
        if self.duration_minutes is not None:
            return self.duration_minutes
        if self.ended_at is not None:
            return (self.ended_at - self.started_at).total_seconds() / 60
        return None


class DailyAnalytics(BaseModel):
    date: date
    feeding_count: int = 0
    feeding_total_minutes: float = 0
    feeding_total_ml: float = 0
    sleep_count: int = 0
    sleep_total_minutes: float = 0
    nappy_count: int = 0
    wet_nappies: int = 0
    dirty_nappies: int = 0
    tummy_time_minutes: float = 0


class PatternBase(BaseModel):
    sample_count: int = 0

    @property
    def has_sufficient_data(self) -> bool:
        return self.sample_count > 0


class SleepPattern(PatternBase):
    average_sleep_duration: int = 0
    average_naps_per_day: float = 0
    longest_sleep_stretch: float = 0
    total_sleep_per_day: int = 0
    average_night_sleep: int = Field(default=0, description="Minutes per day from sessions starting 18:00-06:00")
    average_day_sleep: int = 0
    night_sleep_start: Optional[str] = None
    morning_wake_time: Optional[str] = None
    sleep_efficiency: int = 0


class FeedingPattern(PatternBase):
    average_feeding_interval: int = 0
    average_feeding_duration: int = 0
    average_bottle_amount: int = 0
    feedings_per_day: float = 0
    preferred_feeding_times: List[str] = Field(default_factory=list)
    breast_vs_bottle_ratio: float = 0


class NappyPattern(PatternBase):
    average_nappies_per_day: float = 0
    wet_vs_dirty_ratio: float = 0
    longest_dry_stretch: float = 0
    typical_change_hours: List[str] = Field(default_factory=list)


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    CONCERNING = "concerning"


class TrendResult(BaseModel):
    metric: str
    direction: TrendDirection = TrendDirection.STABLE
    percentage: float = Field(default=0, description="Signed change of the second half vs the first")


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class InsightType(str, Enum):
    FEEDING_CLUSTER = "feeding_cluster"
    FEEDING_ROUTINE = "feeding_routine"
    SLEEP_IMPROVEMENT = "sleep_improvement"
    SLEEP_REGRESSION = "sleep_regression"
    SLEEP_SCHEDULE = "sleep_schedule"


class Insight(BaseModel):
    type: InsightType
    title: str
    description: str
    confidence: int = Field(ge=0, le=100)
    actionable: bool
    recommendation: Optional[str] = None


class AlertType(str, Enum):
    PATTERN_CHANGE = "pattern_change"
    MILESTONE_APPROACHING = "milestone_approaching"
    ROUTINE_SUGGESTION = "routine_suggestion"


class AlertAction(BaseModel):
    label: str
    url: str


class SmartAlert(BaseModel):
    id: str
    type: AlertType
    title: str
    message: str
    priority: Priority
    created_at: datetime
    action: Optional[AlertAction] = None

    @property
    def actionable(self) -> bool:
        return self.action is not None


class InsightReport(BaseModel):
    insights: List[Insight] = Field(default_factory=list)
    alerts: List[SmartAlert] = Field(default_factory=list)


class WeeklyInsight(BaseModel):
    week: int
    insight: str
    category: str = Field(description="sleep | feeding | nappy | development")
    is_positive: bool


class ReportSummary(BaseModel):
    total_days: int
    avg_feedings_per_day: float
    avg_sleep_hours_per_day: float
    avg_nappies_per_day: float
    growth_notes: List[str] = Field(default_factory=list)


class ReportTrend(BaseModel):
    metric: str
    direction: TrendDirection
    percentage: float = 0
    description: str


class HealthcareReport(BaseModel):
    child_name: str
    start: datetime
    end: datetime
    summary: ReportSummary
    sleep: SleepPattern
    feeding: FeedingPattern
    nappy: NappyPattern
    trends: List[ReportTrend] = Field(default_factory=list)
    concerns: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    milestones: List[str] = Field(default_factory=list)


class ChecklistCategory(str, Enum):
    IMMUNISATION = "immunisation"
    REGISTRATION = "registration"
    MILESTONE = "milestone"
    CHECKUP = "checkup"


class ChecklistMetadata(BaseModel):
    vaccines: Optional[List[str]] = None
    requirements: Optional[List[str]] = None
    links: Optional[Dict[str, str]] = None
    milestone_type: Optional[str] = None
    is_optional: Optional[bool] = None


class ChecklistItem(BaseModel):
    id: str
    child_id: str
    title: str
    description: str
    due_date: date
    category: ChecklistCategory
    priority: Priority
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    metadata: ChecklistMetadata = Field(default_factory=ChecklistMetadata)


class ChecklistSyncResult(BaseModel):
    child_id: str
    generated: int
    inserted: int
    skipped: int
    integration_failures: int = 0


class DashboardStats(BaseModel):
    total_items: int
    completed_items: int
    upcoming_items: int
    overdue_items: int
    completion_percentage: int
