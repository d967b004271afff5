"""Domain models for daily summaries and macros."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime

DEFAULT_CALORIES_GOAL = 2000
DEFAULT_STEPS_GOAL = 10000
DEFAULT_WATER_GLASSES_GOAL = 8


@dataclass(frozen=True)
class MacroBreakdown:
    """Macronutrient grams for a day or a period."""

    carbs: float = 0.0
    protein: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0
    sugar: float = 0.0

    def __add__(self, other: "MacroBreakdown") -> "MacroBreakdown":
        return MacroBreakdown(
            carbs=self.carbs + other.carbs,
            protein=self.protein + other.protein,
            fat=self.fat + other.fat,
            fiber=self.fiber + other.fiber,
            sugar=self.sugar + other.sugar,
        )

    @property
    def total_calories(self) -> float:
        """Calories contributed by carbs, protein and fat."""
        return self.carbs * 4 + self.protein * 4 + self.fat * 9

    @property
    def carbs_percentage(self) -> float:
        return self.carbs * 4 / self.total_calories if self.carbs > 0 else 0.0

    @property
    def protein_percentage(self) -> float:
        return self.protein * 4 / self.total_calories if self.protein > 0 else 0.0

    @property
    def fat_percentage(self) -> float:
        return self.fat * 9 / self.total_calories if self.fat > 0 else 0.0

    @staticmethod
    def recommended_daily() -> "MacroBreakdown":
        """Reference intake for a 2000 kcal diet."""
        return MacroBreakdown(carbs=300, protein=150, fat=67, fiber=25, sugar=50)

    @property
    def is_within_recommended(self) -> bool:
        rec = self.recommended_daily()
        return (
            self.carbs <= rec.carbs * 1.2
            and rec.protein * 0.8 <= self.protein <= rec.protein * 1.2
            and self.fat <= rec.fat * 1.2
        )

    @property
    def quality_score(self) -> float:
        """Closeness to the recommended intake, 0-100."""
        rec = self.recommended_daily()
        score = (
            _closeness(self.carbs, rec.carbs) * 0.4
            + _closeness(self.protein, rec.protein) * 0.35
            + _closeness(self.fat, rec.fat) * 0.25
        )
        return _clamp(score * 100, 0.0, 100.0)

    def to_dict(self) -> dict[str, float]:
        return {
            "carbs": self.carbs,
            "protein": self.protein,
            "fat": self.fat,
            "fiber": self.fiber,
            "sugar": self.sugar,
        }


@dataclass(frozen=True)
class FoodEntry:
    """A logged food item as stored in the remote store."""

    logged_at: datetime
    name: str
    calories: int
    macros: MacroBreakdown = field(default_factory=MacroBreakdown)


@dataclass(frozen=True)
class UserGoals:
    """Per-user daily targets."""

    calories_goal: int = DEFAULT_CALORIES_GOAL
    steps_goal: int = DEFAULT_STEPS_GOAL
    water_glasses_goal: int = DEFAULT_WATER_GLASSES_GOAL


@dataclass(frozen=True)
class DailySummary:
    """Per-day rollup of consumption and activity."""

    date: date
    calories_consumed: int = 0
    calories_burned: int = 0
    calories_goal: int = DEFAULT_CALORIES_GOAL
    steps: int = 0
    steps_goal: int = DEFAULT_STEPS_GOAL
    water_glasses: int = 0
    water_glasses_goal: int = DEFAULT_WATER_GLASSES_GOAL
    exercise_minutes: int = 0
    meals_logged: int = 0
    sleep_hours: float = 0.0
    weight_kg: float | None = None
    bmi: float | None = None
    macro_breakdown: MacroBreakdown = field(default_factory=MacroBreakdown)

    @classmethod
    def placeholder(cls, day: date, goals: UserGoals | None = None) -> "DailySummary":
        """Zero-filled summary used when no source produced data."""
        resolved = goals or UserGoals()
        return cls(
            date=day,
            calories_goal=resolved.calories_goal,
            steps_goal=resolved.steps_goal,
            water_glasses_goal=resolved.water_glasses_goal,
        )

    @property
    def calories_remaining(self) -> int:
        return self.calories_goal - self.calories_consumed + self.calories_burned

    @property
    def calorie_progress(self) -> float:
        return _ratio(self.calories_consumed, self.calories_goal)

    @property
    def steps_progress(self) -> float:
        return _ratio(self.steps, self.steps_goal)

    @property
    def water_glasses_progress(self) -> float:
        return _ratio(self.water_glasses, self.water_glasses_goal)

    @property
    def is_goal_achieved(self) -> bool:
        return self.calories_consumed >= self.calories_goal

    @property
    def overall_progress(self) -> float:
        """Mean of steps and water progress, 0-100."""
        progress = (self.steps_progress + self.water_glasses_progress) / 2
        return _clamp(progress * 100, 0.0, 100.0)

    def with_changes(self, **changes: object) -> "DailySummary":
        return replace(self, **changes)

    def to_dict(self) -> dict[str, object]:
        return {
            "date": self.date.isoformat(),
            "calories_consumed": self.calories_consumed,
            "calories_burned": self.calories_burned,
            "calories_goal": self.calories_goal,
            "calories_remaining": self.calories_remaining,
            "steps": self.steps,
            "steps_goal": self.steps_goal,
            "water_glasses": self.water_glasses,
            "water_glasses_goal": self.water_glasses_goal,
            "exercise_minutes": self.exercise_minutes,
            "meals_logged": self.meals_logged,
            "sleep_hours": self.sleep_hours,
            "weight_kg": self.weight_kg,
            "bmi": self.bmi,
            "overall_progress": self.overall_progress,
            "macro_breakdown": self.macro_breakdown.to_dict(),
        }


def _ratio(value: float, goal: float) -> float:
    if goal <= 0:
        return 0.0
    return _clamp(value / goal, 0.0, 1.0)


def _closeness(value: float, target: float) -> float:
    return _clamp(1 - abs(value - target) / target, 0.0, 1.0)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
