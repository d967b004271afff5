"""Domain models for health bridge data."""

from dataclasses import dataclass
from datetime import date, datetime

LOW_ACTIVITY_STEPS = 5000
MODERATE_ACTIVITY_STEPS = 10000
ACTIVE_STEPS = 15000


@dataclass(frozen=True)
class TimeRange:
    """Half-open instant range passed to the health bridge."""

    start: datetime
    end: datetime

    def to_params(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass(frozen=True)
class WorkoutSession:
    """Exercise session record from the health bridge."""

    start: datetime
    end: datetime

    @property
    def duration_minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60.0


@dataclass(frozen=True)
class HealthTodayData:
    """Today's activity rollup returned by getTodayData."""

    steps: int = 0
    calories_burned: float = 0.0
    workout_sessions: int = 0
    workout_duration_minutes: float = 0.0

    def to_dict(self) -> dict[str, object]:
        return {
            "steps": self.steps,
            "calories_burned": self.calories_burned,
            "workout_sessions": self.workout_sessions,
            "workout_duration_minutes": self.workout_duration_minutes,
        }


@dataclass(frozen=True)
class FitnessSnapshot:
    """Transient per-day activity snapshot, re-fetched per query."""

    date: date
    steps: int | None = None
    calories_burned: float | None = None
    distance_km: float | None = None
    weight_kg: float | None = None

    @property
    def has_data(self) -> bool:
        return self.steps is not None or self.calories_burned is not None

    @property
    def activity_level(self) -> str:
        if self.steps is None:
            return "Unknown"
        return activity_level_for_steps(self.steps)

    @property
    def formatted_steps(self) -> str:
        if self.steps is None:
            return "N/A"
        return format_steps(self.steps)


@dataclass(frozen=True)
class WeeklyFitnessSummary:
    """Totals and averages over the snapshots that carry data."""

    snapshots: list[FitnessSnapshot]
    total_steps: int
    total_calories_burned: float
    total_distance_km: float
    average_steps: float
    average_calories: float
    average_distance_km: float

    @classmethod
    def from_snapshots(cls, snapshots: list[FitnessSnapshot]) -> "WeeklyFitnessSummary":
        valid = [snapshot for snapshot in snapshots if snapshot.has_data]
        if not valid:
            return cls(snapshots, 0, 0.0, 0.0, 0.0, 0.0, 0.0)
        total_steps = sum(snapshot.steps or 0 for snapshot in valid)
        total_calories = sum(snapshot.calories_burned or 0.0 for snapshot in valid)
        total_distance = sum(snapshot.distance_km or 0.0 for snapshot in valid)
        count = len(valid)
        return cls(
            snapshots=snapshots,
            total_steps=total_steps,
            total_calories_burned=total_calories,
            total_distance_km=total_distance,
            average_steps=total_steps / count,
            average_calories=total_calories / count,
            average_distance_km=total_distance / count,
        )

    @property
    def average_activity_level(self) -> str:
        return activity_level_for_steps(self.average_steps)


def activity_level_for_steps(steps: float) -> str:
    """Bucket a step count into a named activity level."""
    if steps < LOW_ACTIVITY_STEPS:
        return "Low"
    if steps < MODERATE_ACTIVITY_STEPS:
        return "Moderate"
    if steps < ACTIVE_STEPS:
        return "Active"
    return "Very Active"


def format_steps(steps: int) -> str:
    """Format a step count compactly (1.2K, 3.4M)."""
    if steps >= 1_000_000:
        return f"{steps / 1_000_000:.1f}M"
    if steps >= 1000:
        return f"{steps / 1000:.1f}K"
    return str(steps)
