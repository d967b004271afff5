"""Supabase repository for goal streaks."""

from dataclasses import dataclass
from datetime import UTC, date, datetime
from uuid import UUID

from supabase import Client

from calorie_vita.domain.streaks import DailyGoalType, GoalStreak
from calorie_vita.services.streaks import StreakRepository


@dataclass
class SupabaseStreakRepository(StreakRepository):
    """Supabase implementation for the goal_streaks table."""

    client: Client

    def load_streaks(self, user_id: UUID) -> list[GoalStreak]:
        response = (
            self.client.table("goal_streaks")
            .select(
                "goal_type, current_streak, longest_streak, achieved_today, "
                "last_achieved_date, streak_start_date, total_days_achieved"
            )
            .eq("user_id", str(user_id))
            .execute()
        )
        streaks = []
        for row in response.data or []:
            try:
                goal_type = DailyGoalType(row.get("goal_type"))
            except ValueError:
                continue
            streaks.append(_parse_row(goal_type, row))
        return streaks

    def save_streaks(self, user_id: UUID, streaks: list[GoalStreak]) -> None:
        """Upsert streak rows keyed by (user_id, goal_type)."""
        if not streaks:
            return
        updated_at = datetime.now(tz=UTC).isoformat()
        payload = [
            {"user_id": str(user_id), **streak.to_dict(), "updated_at": updated_at}
            for streak in streaks
        ]
        self.client.table("goal_streaks").upsert(
            payload, on_conflict="user_id,goal_type"
        ).execute()

    def delete_streaks(self, user_id: UUID) -> None:
        self.client.table("goal_streaks").delete().eq(
            "user_id", str(user_id)
        ).execute()


def _parse_row(goal_type: DailyGoalType, row: dict[str, object]) -> GoalStreak:
    last_achieved = date.fromisoformat(str(row["last_achieved_date"])[:10])
    start_raw = row.get("streak_start_date")
    return GoalStreak(
        goal_type=goal_type,
        current_streak=int(row.get("current_streak") or 0),
        longest_streak=int(row.get("longest_streak") or 0),
        achieved_today=bool(row.get("achieved_today", False)),
        last_achieved_date=last_achieved,
        streak_start_date=(
            date.fromisoformat(str(start_raw)[:10]) if start_raw else last_achieved
        ),
        total_days_achieved=int(row.get("total_days_achieved") or 0),
    )
