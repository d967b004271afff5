"""Supabase repository for analytics reads."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from supabase import Client

from calorie_vita.adapters.supabase_daily_summary_repository import (
    SUMMARY_COLUMNS,
    fetch_goals,
    parse_summary_row,
)
from calorie_vita.domain.summaries import (
    DailySummary,
    FoodEntry,
    MacroBreakdown,
    UserGoals,
)
from calorie_vita.services.analytics import AnalyticsRepository


@dataclass
class SupabaseAnalyticsRepository(AnalyticsRepository):
    """Supabase implementation for analytics queries."""

    client: Client

    def list_food_entries(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> list[FoodEntry]:
        """Return food entries in the time range."""
        response = (
            self.client.table("food_entries")
            .select("logged_at, name, calories, carbs, protein, fat, fiber, sugar")
            .eq("user_id", str(user_id))
            .gte("logged_at", start.isoformat())
            .lt("logged_at", end.isoformat())
            .order("logged_at", desc=False)
            .execute()
        )
        return [_parse_entry(row) for row in response.data or []]

    def list_daily_summaries(
        self, user_id: UUID, start: date, end: date
    ) -> list[DailySummary]:
        """Return stored summaries for dates in [start, end]."""
        response = (
            self.client.table("daily_summaries")
            .select(SUMMARY_COLUMNS)
            .eq("user_id", str(user_id))
            .gte("date", start.isoformat())
            .lte("date", end.isoformat())
            .order("date", desc=False)
            .execute()
        )
        return [parse_summary_row(row) for row in response.data or []]

    def get_goals(self, user_id: UUID) -> UserGoals | None:
        return fetch_goals(self.client, user_id)

    def get_profile(self, user_id: UUID) -> dict[str, object] | None:
        response = (
            self.client.table("user_profiles")
            .select("*")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        profile = dict(response.data[0])
        profile.pop("user_id", None)
        return profile


def _parse_entry(row: dict[str, object]) -> FoodEntry:
    return FoodEntry(
        logged_at=datetime.fromisoformat(str(row["logged_at"])),
        name=str(row.get("name") or ""),
        calories=int(float(row.get("calories") or 0)),
        macros=MacroBreakdown(
            carbs=float(row.get("carbs") or 0.0),
            protein=float(row.get("protein") or 0.0),
            fat=float(row.get("fat") or 0.0),
            fiber=float(row.get("fiber") or 0.0),
            sugar=float(row.get("sugar") or 0.0),
        ),
    )
