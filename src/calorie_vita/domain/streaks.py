"""Domain models for daily goal streaks."""

from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from enum import Enum


class DailyGoalType(Enum):
    """Goal kinds tracked for streaks."""

    CALORIE_GOAL = "calorie_goal"
    WATER_INTAKE = "water_intake"
    EXERCISE = "exercise"
    STEPS = "steps"
    SLEEP = "sleep"
    WEIGHT_TRACKING = "weight_tracking"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


@dataclass(frozen=True)
class GoalStreak:
    """Consecutive-day record for one goal type."""

    goal_type: DailyGoalType
    current_streak: int
    longest_streak: int
    achieved_today: bool
    last_achieved_date: date
    streak_start_date: date
    total_days_achieved: int

    @classmethod
    def empty(cls, goal_type: DailyGoalType, today: date) -> "GoalStreak":
        """A fresh streak whose last achievement is yesterday."""
        yesterday = today - timedelta(days=1)
        return cls(
            goal_type=goal_type,
            current_streak=0,
            longest_streak=0,
            achieved_today=False,
            last_achieved_date=yesterday,
            streak_start_date=yesterday,
            total_days_achieved=0,
        )

    def with_changes(self, **changes: object) -> "GoalStreak":
        return replace(self, **changes)

    def to_dict(self) -> dict[str, object]:
        return {
            "goal_type": self.goal_type.value,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "achieved_today": self.achieved_today,
            "last_achieved_date": self.last_achieved_date.isoformat(),
            "streak_start_date": self.streak_start_date.isoformat(),
            "total_days_achieved": self.total_days_achieved,
        }


@dataclass(frozen=True)
class UserStreakSummary:
    """All goal streaks of a user plus overall counters."""

    goal_streaks: dict[DailyGoalType, GoalStreak] = field(default_factory=dict)
    total_active_streaks: int = 0
    longest_overall_streak: int = 0
    last_activity_date: date | None = None
    total_days_active: int = 0

    @classmethod
    def empty(cls, today: date) -> "UserStreakSummary":
        return cls(
            goal_streaks={
                goal_type: GoalStreak.empty(goal_type, today)
                for goal_type in DailyGoalType
            }
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "goal_streaks": {
                goal_type.value: streak.to_dict()
                for goal_type, streak in self.goal_streaks.items()
            },
            "total_active_streaks": self.total_active_streaks,
            "longest_overall_streak": self.longest_overall_streak,
            "last_activity_date": (
                self.last_activity_date.isoformat() if self.last_activity_date else None
            ),
            "total_days_active": self.total_days_active,
        }
