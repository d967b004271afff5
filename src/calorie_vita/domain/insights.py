"""Models for analytics insights."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Period(Enum):
    """Analytics windows and their length in days."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def days(self) -> int:
        return {"daily": 1, "weekly": 7, "monthly": 30}[self.value]


@dataclass(frozen=True)
class Insight:
    """Rule-based observation shown on the analytics screen."""

    title: str
    message: str
    tone: str
    created_at: datetime


@dataclass(frozen=True)
class Recommendation:
    """Rule-based suggestion ordered by priority."""

    title: str
    description: str
    icon: str
    tone: str
    priority: int
    created_at: datetime


@dataclass(frozen=True)
class PeriodTotals:
    """Card totals for a period."""

    period: Period
    calories_consumed: int
    steps: int
    workouts: int
    calories_change: str
    steps_change: str
    workouts_change: str


class AIInsights(BaseModel):
    """Structured output of the AI insights call."""

    summary: str
    tips: list[str] = Field(default_factory=list, max_length=5)


@dataclass(frozen=True)
class AIInsightResult:
    """AI insight text plus caching metadata."""

    text: str
    generated_at: datetime
    cached: bool = False
    degraded: bool = False
