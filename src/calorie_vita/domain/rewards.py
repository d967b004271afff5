"""Domain models for points, levels and badges."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum


class UserLevel(Enum):
    """Levels ordered by the points required to reach them."""

    BEGINNER = ("Beginner", 0)
    ROOKIE = ("Rookie", 500)
    ENTHUSIAST = ("Enthusiast", 1500)
    CHAMPION = ("Champion", 3000)
    MASTER = ("Master", 5000)
    LEGEND = ("Legend", 10000)
    TITAN = ("Titan", 25000)
    IMMORTAL = ("Immortal", 50000)
    DEITY = ("Deity", 100000)

    @property
    def title(self) -> str:
        return self.value[0]

    @property
    def required_points(self) -> int:
        return self.value[1]


class RewardType(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    MILESTONE = "milestone"
    SPECIAL = "special"
    STREAK = "streak"
    CHALLENGE = "challenge"


class BadgeCategory(Enum):
    LOGGING = "logging"
    NUTRITION = "nutrition"
    EXERCISE = "exercise"
    WATER = "water"
    CONSISTENCY = "consistency"
    ACHIEVEMENT = "achievement"
    STEPS = "steps"


class ActivityType(Enum):
    """Activities that earn experience points."""

    MEAL_LOGGING = "meal_logging"
    EXERCISE = "exercise"
    CALORIE_GOAL = "calorie_goal"
    STEPS = "steps"
    WATER_INTAKE = "water_intake"
    WEIGHT_CHECK_IN = "weight_check_in"
    SLEEP_LOGGING = "sleep_logging"
    DAILY_GOAL_COMPLETION = "daily_goal_completion"


@dataclass(frozen=True)
class UserReward:
    """A badge, locked in the catalogue or unlocked for a user."""

    id: str
    title: str
    description: str
    points: int
    type: RewardType
    category: BadgeCategory | None = None
    earned_at: datetime | None = None
    is_unlocked: bool = False

    def unlocked(self, earned_at: datetime) -> "UserReward":
        return replace(self, is_unlocked=True, earned_at=earned_at)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "points": self.points,
            "type": self.type.value,
            "category": self.category.value if self.category else None,
            "earned_at": self.earned_at.isoformat() if self.earned_at else None,
            "is_unlocked": self.is_unlocked,
        }


@dataclass(frozen=True)
class UserProgress:
    """Points, level and unlocked badges of a user."""

    total_points: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    meals_logged: int = 0
    current_level: UserLevel = UserLevel.BEGINNER
    points_to_next_level: int = UserLevel.ROOKIE.required_points
    level_progress: float = 0.0
    unlocked_rewards: list[UserReward] = field(default_factory=list)

    def with_changes(self, **changes: object) -> "UserProgress":
        return replace(self, **changes)

    def has_reward(self, reward_id: str) -> bool:
        return any(reward.id == reward_id for reward in self.unlocked_rewards)

    def to_dict(self) -> dict[str, object]:
        return {
            "total_points": self.total_points,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "meals_logged": self.meals_logged,
            "current_level": self.current_level.title,
            "points_to_next_level": self.points_to_next_level,
            "level_progress": self.level_progress,
            "unlocked_rewards": [reward.to_dict() for reward in self.unlocked_rewards],
        }
