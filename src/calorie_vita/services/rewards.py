"""Experience points, levels and badge unlocking."""

import logging
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID

from calorie_vita.domain.rewards import (
    ActivityType,
    BadgeCategory,
    RewardType,
    UserLevel,
    UserProgress,
    UserReward,
)

_logger = logging.getLogger(__name__)

LEVELS: tuple[UserLevel, ...] = tuple(
    sorted(UserLevel, key=lambda level: level.required_points)
)

BASE_XP: dict[ActivityType, int] = {
    ActivityType.MEAL_LOGGING: 10,
    ActivityType.EXERCISE: 20,
    ActivityType.CALORIE_GOAL: 20,
    ActivityType.WATER_INTAKE: 5,
    ActivityType.WEIGHT_CHECK_IN: 15,
    ActivityType.SLEEP_LOGGING: 5,
    ActivityType.DAILY_GOAL_COMPLETION: 50,
}
STEPS_XP_PER_THOUSAND = 5
MAX_ACTIVITIES_PER_HOUR = 10
MAX_SESSION_CALORIES = 5000

# (minimum streak days, multiplier), highest first.
STREAK_MULTIPLIERS: tuple[tuple[int, float], ...] = (
    (365, 2.0),
    (100, 1.5),
    (30, 1.2),
    (7, 1.1),
)

ActivityData = Mapping[str, object]


def level_for_points(points: int) -> UserLevel:
    """Return the highest level whose threshold is reached."""
    current = LEVELS[0]
    for level in LEVELS:
        if points >= level.required_points:
            current = level
    return current


def next_level(level: UserLevel) -> UserLevel:
    """Return the following level, or the same level at the top."""
    index = LEVELS.index(level)
    return LEVELS[min(index + 1, len(LEVELS) - 1)]


def points_to_next_level(points: int, level: UserLevel) -> int:
    upcoming = next_level(level)
    if upcoming is level:
        return 0
    return max(upcoming.required_points - points, 0)


def level_progress(points: int, level: UserLevel) -> float:
    """Fraction of the way from the level threshold to the next one."""
    upcoming = next_level(level)
    if upcoming is level:
        return 1.0
    span = upcoming.required_points - level.required_points
    progress = (points - level.required_points) / span
    return max(0.0, min(1.0, progress))


def streak_multiplier(streak_days: int) -> float:
    for minimum, multiplier in STREAK_MULTIPLIERS:
        if streak_days >= minimum:
            return multiplier
    return 1.0


def calculate_xp(
    activity: ActivityType, data: ActivityData | None = None, streak_days: int = 0
) -> int:
    """Return the points earned for an activity, boosted by the streak."""
    if activity is ActivityType.STEPS:
        # Only newly added steps earn points when the caller reports them.
        values = data or {}
        steps = int(values.get("steps_added", values.get("steps", 0)) or 0)
        base = (steps // 1000) * STEPS_XP_PER_THOUSAND
    else:
        base = BASE_XP.get(activity, 0)
    # Half-up rounding keeps 16.5 -> 17.
    return math.floor(base * streak_multiplier(streak_days) + 0.5)


@dataclass(frozen=True)
class RewardRule:
    """A catalogue badge and the condition that unlocks it."""

    reward: UserReward
    condition: Callable[[UserProgress, ActivityData], bool]


def _count(data: ActivityData, key: str) -> int:
    return int(data.get(key, 0) or 0)


def _meals_logged(minimum: int) -> Callable[[UserProgress, ActivityData], bool]:
    return lambda _progress, data: _count(data, "total_meals_logged") >= minimum


def _streak_days(minimum: int) -> Callable[[UserProgress, ActivityData], bool]:
    return lambda progress, _data: progress.current_streak >= minimum


REWARD_CATALOGUE: tuple[RewardRule, ...] = (
    RewardRule(
        UserReward(
            id="first_meal",
            title="First Bite",
            description="Log your first meal",
            points=50,
            type=RewardType.MILESTONE,
            category=BadgeCategory.LOGGING,
        ),
        _meals_logged(1),
    ),
    RewardRule(
        UserReward(
            id="meals_10",
            title="Getting Started",
            description="Log 10 meals",
            points=50,
            type=RewardType.MILESTONE,
            category=BadgeCategory.LOGGING,
        ),
        _meals_logged(10),
    ),
    RewardRule(
        UserReward(
            id="meals_50",
            title="Dedicated Logger",
            description="Log 50 meals",
            points=200,
            type=RewardType.MILESTONE,
            category=BadgeCategory.LOGGING,
        ),
        _meals_logged(50),
    ),
    RewardRule(
        UserReward(
            id="meals_100",
            title="Logging Legend",
            description="Log 100 meals",
            points=400,
            type=RewardType.MILESTONE,
            category=BadgeCategory.LOGGING,
        ),
        _meals_logged(100),
    ),
    RewardRule(
        UserReward(
            id="water_warrior",
            title="Water Warrior",
            description="Drink 8 glasses of water in a day",
            points=50,
            type=RewardType.DAILY,
            category=BadgeCategory.WATER,
        ),
        lambda _progress, data: _count(data, "water_glasses") >= 8,
    ),
    RewardRule(
        UserReward(
            id="calorie_tracker",
            title="On Target",
            description="Meet your calorie goal",
            points=50,
            type=RewardType.DAILY,
            category=BadgeCategory.NUTRITION,
        ),
        lambda _progress, data: bool(data.get("met_calorie_goal", False)),
    ),
    RewardRule(
        UserReward(
            id="steps_10000",
            title="10K Steps",
            description="Walk 10,000 steps in a day",
            points=100,
            type=RewardType.DAILY,
            category=BadgeCategory.STEPS,
        ),
        lambda _progress, data: _count(data, "steps") >= 10000,
    ),
    RewardRule(
        UserReward(
            id="calorie_burner",
            title="Calorie Burner",
            description="Burn 500 calories through exercise in a day",
            points=150,
            type=RewardType.DAILY,
            category=BadgeCategory.EXERCISE,
        ),
        lambda _progress, data: _count(data, "calories_burned") >= 500,
    ),
    RewardRule(
        UserReward(
            id="streak_7",
            title="Week Warrior",
            description="Keep a 7-day streak",
            points=100,
            type=RewardType.STREAK,
            category=BadgeCategory.CONSISTENCY,
        ),
        _streak_days(7),
    ),
    RewardRule(
        UserReward(
            id="streak_30",
            title="Monthly Master",
            description="Keep a 30-day streak",
            points=500,
            type=RewardType.STREAK,
            category=BadgeCategory.CONSISTENCY,
        ),
        _streak_days(30),
    ),
    RewardRule(
        UserReward(
            id="streak_100",
            title="Century Club",
            description="Keep a 100-day streak",
            points=1500,
            type=RewardType.STREAK,
            category=BadgeCategory.ACHIEVEMENT,
        ),
        _streak_days(100),
    ),
)


def check_for_new_rewards(
    progress: UserProgress, activity_data: ActivityData, now: datetime | None = None
) -> list[UserReward]:
    """Return catalogue badges newly unlocked by this activity."""
    earned_at = now or datetime.now(tz=UTC)
    return [
        rule.reward.unlocked(earned_at)
        for rule in REWARD_CATALOGUE
        if not progress.has_reward(rule.reward.id)
        and rule.condition(progress, activity_data)
    ]


def apply_points(progress: UserProgress, points: int) -> UserProgress:
    """Add points and recompute the level fields."""
    total = max(progress.total_points + points, 0)
    level = level_for_points(total)
    return progress.with_changes(
        total_points=total,
        current_level=level,
        points_to_next_level=points_to_next_level(total, level),
        level_progress=level_progress(total, level),
    )


class ProgressRepository(Protocol):
    """Persistence interface for points and unlocked badges."""

    def get_progress(self, user_id: UUID) -> UserProgress | None:
        """Return stored progress, including unlocked rewards."""

    def save_progress(self, user_id: UUID, progress: UserProgress) -> None:
        """Upsert the point and level fields."""

    def add_rewards(self, user_id: UUID, rewards: list[UserReward]) -> None:
        """Append newly unlocked rewards."""


@dataclass(frozen=True)
class ActivityResult:
    """Outcome of processing one activity."""

    xp_awarded: int
    progress: UserProgress
    new_rewards: list[UserReward]
    leveled_up: bool
    accepted: bool = True


@dataclass
class RewardsService:
    """Awards points for activities and unlocks badges.

    Each activity type is limited per user to a fixed number of awards per
    rolling hour; the log of recent awards lives in process memory only.
    """

    repository: ProgressRepository
    max_per_hour: int = MAX_ACTIVITIES_PER_HOUR
    _recent: dict[tuple[UUID, ActivityType], list[datetime]] = field(
        default_factory=dict, repr=False
    )

    def get_progress(self, user_id: UUID) -> UserProgress:
        return self.repository.get_progress(user_id) or UserProgress()

    def process_activity(  # noqa: PLR0913
        self,
        user_id: UUID,
        activity: ActivityType,
        data: ActivityData | None = None,
        streak_days: int = 0,
        now: datetime | None = None,
    ) -> ActivityResult:
        """Award XP, unlock matching badges and persist the new progress."""
        timestamp = now or datetime.now(tz=UTC)
        activity_data = data or {}
        current = self.get_progress(user_id)
        if not self._accept(user_id, activity, activity_data, timestamp):
            _logger.warning(
                "Activity rejected: user=%s activity=%s", user_id, activity.value
            )
            return ActivityResult(
                xp_awarded=0,
                progress=current,
                new_rewards=[],
                leveled_up=False,
                accepted=False,
            )

        progress = current.with_changes(
            current_streak=streak_days,
            longest_streak=max(current.longest_streak, streak_days),
        )
        if activity is ActivityType.MEAL_LOGGING:
            progress = progress.with_changes(meals_logged=progress.meals_logged + 1)
            activity_data = {
                **activity_data,
                "total_meals_logged": progress.meals_logged,
            }
        xp = calculate_xp(activity, activity_data, streak_days)
        new_rewards = check_for_new_rewards(progress, activity_data, timestamp)
        bonus = sum(reward.points for reward in new_rewards)

        updated = apply_points(progress, xp + bonus).with_changes(
            unlocked_rewards=[*progress.unlocked_rewards, *new_rewards]
        )
        self.repository.save_progress(user_id, updated)
        if new_rewards:
            self.repository.add_rewards(user_id, new_rewards)

        leveled_up = updated.current_level is not current.current_level
        _logger.info(
            "Activity processed: user=%s activity=%s xp=%s rewards=%s level=%s",
            user_id,
            activity.value,
            xp,
            [reward.id for reward in new_rewards],
            updated.current_level.title,
        )
        return ActivityResult(
            xp_awarded=xp,
            progress=updated,
            new_rewards=new_rewards,
            leveled_up=leveled_up,
        )

    def _accept(
        self,
        user_id: UUID,
        activity: ActivityType,
        data: ActivityData,
        timestamp: datetime,
    ) -> bool:
        if activity is ActivityType.EXERCISE and (
            _count(data, "session_calories") > MAX_SESSION_CALORIES
        ):
            return False
        window_start = timestamp - timedelta(hours=1)
        recent = [
            seen
            for seen in self._recent.get((user_id, activity), [])
            if seen > window_start
        ]
        if len(recent) >= self.max_per_hour:
            self._recent[(user_id, activity)] = recent
            return False
        self._recent[(user_id, activity)] = [*recent, timestamp]
        return True
