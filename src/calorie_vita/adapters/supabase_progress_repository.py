"""Supabase repository for reward progress."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from calorie_vita.domain.rewards import (
    BadgeCategory,
    RewardType,
    UserProgress,
    UserReward,
)
from calorie_vita.services.rewards import (
    ProgressRepository,
    level_for_points,
    level_progress,
    points_to_next_level,
)


@dataclass
class SupabaseProgressRepository(ProgressRepository):
    """Supabase implementation for user_progress and user_rewards."""

    client: Client

    def get_progress(self, user_id: UUID) -> UserProgress | None:
        """Return progress with unlocked rewards in unlock order."""
        response = (
            self.client.table("user_progress")
            .select("total_points, current_streak, longest_streak, meals_logged")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        total_points = int(row.get("total_points") or 0)
        # Level fields are derived from points, never read back.
        level = level_for_points(total_points)
        return UserProgress(
            total_points=total_points,
            current_streak=int(row.get("current_streak") or 0),
            longest_streak=int(row.get("longest_streak") or 0),
            meals_logged=int(row.get("meals_logged") or 0),
            current_level=level,
            points_to_next_level=points_to_next_level(total_points, level),
            level_progress=level_progress(total_points, level),
            unlocked_rewards=self._list_rewards(user_id),
        )

    def save_progress(self, user_id: UUID, progress: UserProgress) -> None:
        self.client.table("user_progress").upsert(
            {
                "user_id": str(user_id),
                "total_points": progress.total_points,
                "current_streak": progress.current_streak,
                "longest_streak": progress.longest_streak,
                "meals_logged": progress.meals_logged,
                "current_level": progress.current_level.name,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="user_id",
        ).execute()

    def add_rewards(self, user_id: UUID, rewards: list[UserReward]) -> None:
        payload = [
            {
                "user_id": str(user_id),
                "reward_id": reward.id,
                "title": reward.title,
                "description": reward.description,
                "points": reward.points,
                "type": reward.type.value,
                "category": reward.category.value if reward.category else None,
                "earned_at": (reward.earned_at or datetime.now(tz=UTC)).isoformat(),
            }
            for reward in rewards
        ]
        if payload:
            self.client.table("user_rewards").insert(payload).execute()

    def _list_rewards(self, user_id: UUID) -> list[UserReward]:
        response = (
            self.client.table("user_rewards")
            .select("reward_id, title, description, points, type, category, earned_at")
            .eq("user_id", str(user_id))
            .order("earned_at", desc=False)
            .execute()
        )
        return [_parse_reward(row) for row in response.data or []]


def _parse_reward(row: dict[str, object]) -> UserReward:
    category = row.get("category")
    earned_raw = row.get("earned_at")
    return UserReward(
        id=str(row["reward_id"]),
        title=str(row.get("title") or ""),
        description=str(row.get("description") or ""),
        points=int(row.get("points") or 0),
        type=RewardType(row.get("type") or RewardType.MILESTONE.value),
        category=BadgeCategory(category) if category else None,
        earned_at=(
            datetime.fromisoformat(earned_raw)
            if isinstance(earned_raw, str) and earned_raw
            else None
        ),
        is_unlocked=True,
    )
