"""Goal streak calculators and persistence service."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Protocol
from uuid import UUID

from calorie_vita.domain.streaks import DailyGoalType, GoalStreak, UserStreakSummary
from calorie_vita.domain.summaries import DailySummary

_logger = logging.getLogger(__name__)

EXERCISE_STEPS_THRESHOLD = 5000

# Goals that can be judged from a daily summary alone.
EVALUATED_GOALS = (
    DailyGoalType.CALORIE_GOAL,
    DailyGoalType.STEPS,
    DailyGoalType.EXERCISE,
    DailyGoalType.WATER_INTAKE,
)


def evaluate_goal(goal_type: DailyGoalType, summary: DailySummary) -> bool:
    """Return True when the summary meets the goal's threshold."""
    if goal_type is DailyGoalType.CALORIE_GOAL:
        return summary.calories_consumed >= summary.calories_goal
    if goal_type is DailyGoalType.STEPS:
        return summary.steps >= summary.steps_goal
    if goal_type is DailyGoalType.EXERCISE:
        return summary.calories_burned > 0 or summary.steps > EXERCISE_STEPS_THRESHOLD
    if goal_type is DailyGoalType.WATER_INTAKE:
        return summary.water_glasses >= summary.water_glasses_goal
    return summary.calories_consumed > 0


def advance_streak(streak: GoalStreak, today: date) -> GoalStreak:
    """Record an achievement for today."""
    if streak.last_achieved_date == today:
        if streak.achieved_today:
            return streak
        # Re-marked after being cleared today; the day was already counted.
        return streak.with_changes(achieved_today=True)

    if streak.last_achieved_date == today - timedelta(days=1) and (
        streak.current_streak > 0
    ):
        current = streak.current_streak + 1
        start = streak.streak_start_date
    else:
        current = 1
        start = today

    return streak.with_changes(
        current_streak=current,
        longest_streak=max(streak.longest_streak, current),
        achieved_today=True,
        last_achieved_date=today,
        streak_start_date=start,
        total_days_achieved=streak.total_days_achieved + 1,
    )


def clear_today(streak: GoalStreak) -> GoalStreak:
    """Mark today as not achieved without touching the counters."""
    if not streak.achieved_today:
        return streak
    return streak.with_changes(achieved_today=False)


def decay_streak(streak: GoalStreak, today: date) -> GoalStreak:
    """Apply the passage of days since the last achievement."""
    if streak.last_achieved_date >= today:
        return streak
    if streak.last_achieved_date < today - timedelta(days=1):
        return streak.with_changes(current_streak=0, achieved_today=False)
    return streak.with_changes(achieved_today=False)


def streak_from_history(
    goal_type: DailyGoalType, summaries: Iterable[DailySummary], today: date
) -> GoalStreak:
    """Rebuild a streak from daily summaries.

    A run that ended yesterday is still current; today's summary only counts
    when it already meets the goal.
    """
    achieved_days = sorted(
        summary.date
        for summary in summaries
        if summary.date <= today and evaluate_goal(goal_type, summary)
    )
    if not achieved_days:
        return GoalStreak.empty(goal_type, today)

    longest = 0
    run = 0
    run_start = achieved_days[0]
    previous: date | None = None
    for day in achieved_days:
        if previous is not None and day == previous + timedelta(days=1):
            run += 1
        else:
            run = 1
            run_start = day
        longest = max(longest, run)
        previous = day

    last = achieved_days[-1]
    current = run if last >= today - timedelta(days=1) else 0
    return GoalStreak(
        goal_type=goal_type,
        current_streak=current,
        longest_streak=longest,
        achieved_today=last == today,
        last_achieved_date=last,
        streak_start_date=run_start,
        total_days_achieved=len(achieved_days),
    )


def summarize(goal_streaks: dict[DailyGoalType, GoalStreak]) -> UserStreakSummary:
    """Compute the overall counters for a set of goal streaks."""
    streaks = list(goal_streaks.values())
    achieved = [streak for streak in streaks if streak.total_days_achieved > 0]
    return UserStreakSummary(
        goal_streaks=dict(goal_streaks),
        total_active_streaks=sum(1 for streak in streaks if streak.achieved_today),
        longest_overall_streak=max(
            (streak.longest_streak for streak in streaks), default=0
        ),
        last_activity_date=max(
            (streak.last_achieved_date for streak in achieved), default=None
        ),
        total_days_active=max(
            (streak.total_days_achieved for streak in streaks), default=0
        ),
    )


class StreakRepository(Protocol):
    """Persistence interface for goal streaks."""

    def load_streaks(self, user_id: UUID) -> list[GoalStreak]:
        """Return stored streaks for the user."""

    def save_streaks(self, user_id: UUID, streaks: list[GoalStreak]) -> None:
        """Insert or update the given streaks."""

    def delete_streaks(self, user_id: UUID) -> None:
        """Remove all streaks for the user."""


@dataclass
class StreakService:
    """Loads, updates and persists per-goal streaks."""

    repository: StreakRepository

    def get_summary(self, user_id: UUID, today: date) -> UserStreakSummary:
        """Return all streaks decayed to today, filling missing goals."""
        return summarize(self._load(user_id, today))

    def mark_goal_achieved(
        self, user_id: UUID, goal_type: DailyGoalType, today: date
    ) -> UserStreakSummary:
        streaks = self._load(user_id, today)
        updated = advance_streak(streaks[goal_type], today)
        streaks[goal_type] = updated
        self.repository.save_streaks(user_id, [updated])
        _logger.info(
            "Goal achieved: user=%s goal=%s streak=%s",
            user_id,
            goal_type.value,
            updated.current_streak,
        )
        return summarize(streaks)

    def mark_goal_not_achieved(
        self, user_id: UUID, goal_type: DailyGoalType, today: date
    ) -> UserStreakSummary:
        streaks = self._load(user_id, today)
        updated = clear_today(streaks[goal_type])
        streaks[goal_type] = updated
        self.repository.save_streaks(user_id, [updated])
        return summarize(streaks)

    def evaluate_day(
        self, user_id: UUID, summary: DailySummary, today: date
    ) -> UserStreakSummary:
        """Advance every goal the summary meets."""
        streaks = self._load(user_id, today)
        changed = []
        for goal_type in EVALUATED_GOALS:
            if evaluate_goal(goal_type, summary):
                updated = advance_streak(streaks[goal_type], today)
                if updated != streaks[goal_type]:
                    streaks[goal_type] = updated
                    changed.append(updated)
        if changed:
            self.repository.save_streaks(user_id, changed)
        return summarize(streaks)

    def reset(self, user_id: UUID, today: date) -> UserStreakSummary:
        self.repository.delete_streaks(user_id)
        return UserStreakSummary.empty(today)

    def _load(self, user_id: UUID, today: date) -> dict[DailyGoalType, GoalStreak]:
        stored = {
            streak.goal_type: streak for streak in self.repository.load_streaks(user_id)
        }
        return {
            goal_type: decay_streak(
                stored.get(goal_type) or GoalStreak.empty(goal_type, today), today
            )
            for goal_type in DailyGoalType
        }
