"""Writes to today's stored daily summary."""

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Protocol
from uuid import UUID

from calorie_vita.domain.rewards import ActivityType
from calorie_vita.domain.streaks import DailyGoalType, UserStreakSummary
from calorie_vita.domain.summaries import (
    DailySummary,
    FoodEntry,
    MacroBreakdown,
    UserGoals,
)
from calorie_vita.services.periods import local_today
from calorie_vita.services.rewards import ActivityResult, RewardsService
from calorie_vita.services.streaks import EVALUATED_GOALS, StreakService

_logger = logging.getLogger(__name__)

MAX_WATER_GLASSES = 50
MAX_STEPS = 100_000
MAX_EXERCISE_CALORIES = 5000
MAX_EXERCISE_MINUTES = 480
MAX_MEAL_CALORIES = 10_000
MAX_SLEEP_HOURS = 24
WEIGHT_RANGE_KG = (20, 500)
BMI_RANGE = (10, 100)
CALORIES_GOAL_RANGE = (800, 5000)
STEPS_GOAL_RANGE = (1000, 50_000)
WATER_GOAL_RANGE = (1, 20)


class DailySummaryRepository(Protocol):
    """Persistence interface for stored daily summaries."""

    def get_summary(self, user_id: UUID, day: date) -> DailySummary | None:
        """Return the stored summary for a day."""

    def upsert_summary(
        self,
        user_id: UUID,
        summary: DailySummary,
        exercise_type: str | None = None,
    ) -> None:
        """Insert or replace the summary row for its date."""

    def get_goals(self, user_id: UUID) -> UserGoals | None:
        """Return the user's daily goals."""

    def upsert_goals(self, user_id: UUID, goals: UserGoals) -> None:
        """Insert or replace the user's daily goals."""

    def add_food_entry(self, user_id: UUID, entry: FoodEntry) -> None:
        """Store a logged food item."""


@dataclass(frozen=True)
class SummaryUpdate:
    """Stored summary after a write plus its reward and streak effects."""

    summary: DailySummary
    reward: ActivityResult | None = None
    streaks: UserStreakSummary | None = None
    goal_rewards: tuple[ActivityResult, ...] = ()

    @property
    def results(self) -> list[ActivityResult]:
        head = [self.reward] if self.reward else []
        return [*head, *self.goal_rewards]


@dataclass
class DailySummaryService:
    """Validates and stores today's meals, water, steps, exercise and body data.

    Writes are read-modify-write without a transaction; concurrent writers
    for the same day can overwrite each other. Water and steps only earn
    points when the stored value goes up.
    """

    repository: DailySummaryRepository
    rewards_service: RewardsService
    streak_service: StreakService

    def get_today(self, user_id: UUID, timezone_name: str) -> DailySummary:
        """Return today's stored summary or a zero-filled one."""
        today = local_today(timezone_name)
        stored = self.repository.get_summary(user_id, today)
        if stored is not None:
            return stored
        return DailySummary.placeholder(today, self.repository.get_goals(user_id))

    def log_meal(  # noqa: PLR0913
        self,
        user_id: UUID,
        name: str,
        calories: int,
        timezone_name: str,
        macros: MacroBreakdown | None = None,
    ) -> SummaryUpdate:
        """Store a food entry and add its calories to today's total."""
        if not name.strip():
            raise ValueError("Food name is required")
        if not 0 <= calories <= MAX_MEAL_CALORIES:
            raise ValueError(f"Invalid meal calories: {calories}")
        entry = FoodEntry(
            logged_at=datetime.now(tz=UTC),
            name=name.strip(),
            calories=calories,
            macros=macros or MacroBreakdown(),
        )
        self.repository.add_food_entry(user_id, entry)
        current = self.get_today(user_id, timezone_name)
        summary = current.with_changes(
            calories_consumed=current.calories_consumed + calories,
            meals_logged=current.meals_logged + 1,
        )
        self.repository.upsert_summary(user_id, summary)
        return self._after_write(
            user_id,
            summary,
            ActivityType.MEAL_LOGGING,
            {"calories": calories, "food_name": entry.name},
        )

    def update_water_intake(
        self, user_id: UUID, glasses: int, timezone_name: str
    ) -> SummaryUpdate:
        if not 0 <= glasses <= MAX_WATER_GLASSES:
            raise ValueError(f"Invalid water intake: {glasses} glasses")
        current = self.get_today(user_id, timezone_name)
        summary = current.with_changes(water_glasses=glasses)
        self.repository.upsert_summary(user_id, summary)
        return self._after_write(
            user_id,
            summary,
            ActivityType.WATER_INTAKE if glasses > current.water_glasses else None,
            {"water_glasses": glasses},
        )

    def update_steps(
        self, user_id: UUID, steps: int, timezone_name: str
    ) -> SummaryUpdate:
        if not 0 <= steps <= MAX_STEPS:
            raise ValueError(f"Invalid steps: {steps}")
        current = self.get_today(user_id, timezone_name)
        summary = current.with_changes(steps=steps)
        self.repository.upsert_summary(user_id, summary)
        added = steps - current.steps
        return self._after_write(
            user_id,
            summary,
            ActivityType.STEPS if added > 0 else None,
            {"steps": steps, "steps_added": added},
        )

    def add_exercise(  # noqa: PLR0913
        self,
        user_id: UUID,
        calories_burned: int,
        duration_minutes: int,
        exercise_type: str,
        timezone_name: str,
    ) -> SummaryUpdate:
        """Add an exercise session to today's burned calories and minutes."""
        if not 0 <= calories_burned <= MAX_EXERCISE_CALORIES:
            raise ValueError(f"Invalid calories burned: {calories_burned}")
        if not 0 <= duration_minutes <= MAX_EXERCISE_MINUTES:
            raise ValueError(f"Invalid duration: {duration_minutes} minutes")
        current = self.get_today(user_id, timezone_name)
        summary = current.with_changes(
            calories_burned=current.calories_burned + calories_burned,
            exercise_minutes=current.exercise_minutes + duration_minutes,
        )
        self.repository.upsert_summary(user_id, summary, exercise_type=exercise_type)
        return self._after_write(
            user_id,
            summary,
            ActivityType.EXERCISE,
            {
                "calories_burned": summary.calories_burned,
                "session_calories": calories_burned,
                "duration_minutes": duration_minutes,
                "exercise_type": exercise_type,
            },
        )

    def update_weight(
        self, user_id: UUID, weight_kg: float, bmi: float, timezone_name: str
    ) -> SummaryUpdate:
        """Record today's weight; only the first check-in of the day earns points."""
        if not WEIGHT_RANGE_KG[0] <= weight_kg <= WEIGHT_RANGE_KG[1]:
            raise ValueError(f"Invalid weight: {weight_kg} kg")
        if not BMI_RANGE[0] <= bmi <= BMI_RANGE[1]:
            raise ValueError(f"Invalid BMI: {bmi}")
        current = self.get_today(user_id, timezone_name)
        summary = current.with_changes(weight_kg=weight_kg, bmi=bmi)
        self.repository.upsert_summary(user_id, summary)
        return self._after_write(
            user_id,
            summary,
            ActivityType.WEIGHT_CHECK_IN if current.weight_kg is None else None,
            {"weight_kg": weight_kg, "bmi": bmi},
        )

    def update_sleep(
        self, user_id: UUID, hours: float, timezone_name: str
    ) -> SummaryUpdate:
        if not 0 <= hours <= MAX_SLEEP_HOURS:
            raise ValueError(f"Invalid sleep hours: {hours}")
        current = self.get_today(user_id, timezone_name)
        summary = current.with_changes(sleep_hours=hours)
        self.repository.upsert_summary(user_id, summary)
        first_entry = current.sleep_hours == 0 and hours > 0
        return self._after_write(
            user_id,
            summary,
            ActivityType.SLEEP_LOGGING if first_entry else None,
            {"hours": hours},
        )

    def update_goals(
        self, user_id: UUID, goals: UserGoals, timezone_name: str
    ) -> SummaryUpdate:
        """Store new daily goals and apply them to today's summary."""
        _check_range("calories goal", goals.calories_goal, CALORIES_GOAL_RANGE)
        _check_range("steps goal", goals.steps_goal, STEPS_GOAL_RANGE)
        _check_range("water goal", goals.water_glasses_goal, WATER_GOAL_RANGE)
        self.repository.upsert_goals(user_id, goals)
        summary = self.get_today(user_id, timezone_name).with_changes(
            calories_goal=goals.calories_goal,
            steps_goal=goals.steps_goal,
            water_glasses_goal=goals.water_glasses_goal,
        )
        self.repository.upsert_summary(user_id, summary)
        return self._after_write(user_id, summary, None, {})

    def _after_write(
        self,
        user_id: UUID,
        summary: DailySummary,
        activity: ActivityType | None,
        data: dict[str, object],
    ) -> SummaryUpdate:
        # The write already succeeded; streak and reward failures are logged only.
        try:
            before = self.streak_service.get_summary(user_id, summary.date)
            streaks = self.streak_service.evaluate_day(user_id, summary, summary.date)
        except Exception:
            _logger.exception("Streak update failed for user %s", user_id)
            return SummaryUpdate(summary=summary)

        streak_days = max(
            (s.current_streak for s in streaks.goal_streaks.values()), default=0
        )
        reward = None
        goal_rewards = []
        try:
            if activity is not None:
                reward = self.rewards_service.process_activity(
                    user_id,
                    activity,
                    {**data, "met_calorie_goal": summary.is_goal_achieved},
                    streak_days=streak_days,
                )
            for bonus in _goal_bonuses(before, streaks):
                goal_rewards.append(
                    self.rewards_service.process_activity(
                        user_id, bonus, streak_days=streak_days
                    )
                )
        except Exception:
            _logger.exception("Reward processing failed for user %s", user_id)
        return SummaryUpdate(
            summary=summary,
            reward=reward,
            streaks=streaks,
            goal_rewards=tuple(goal_rewards),
        )


def _goal_bonuses(
    before: UserStreakSummary, after: UserStreakSummary
) -> list[ActivityType]:
    """Bonus activities for goals first achieved by this write."""
    newly = {
        goal
        for goal in EVALUATED_GOALS
        if after.goal_streaks[goal].achieved_today
        and not before.goal_streaks[goal].achieved_today
    }
    bonuses = []
    if DailyGoalType.CALORIE_GOAL in newly:
        bonuses.append(ActivityType.CALORIE_GOAL)
    if newly and all(after.goal_streaks[goal].achieved_today for goal in EVALUATED_GOALS):
        bonuses.append(ActivityType.DAILY_GOAL_COMPLETION)
    return bonuses


def _check_range(label: str, value: int, bounds: tuple[int, int]) -> None:
    if not bounds[0] <= value <= bounds[1]:
        raise ValueError(f"Invalid {label}: {value}")
