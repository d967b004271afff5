"""Supabase repository for stored daily summaries and goals."""

from dataclasses import dataclass
from datetime import UTC, date, datetime
from uuid import UUID

from supabase import Client

from calorie_vita.domain.summaries import (
    DEFAULT_CALORIES_GOAL,
    DEFAULT_STEPS_GOAL,
    DEFAULT_WATER_GLASSES_GOAL,
    DailySummary,
    FoodEntry,
    UserGoals,
)
from calorie_vita.services.daily_summaries import DailySummaryRepository

SUMMARY_COLUMNS = (
    "date, calories_consumed, calories_burned, calories_goal, steps, steps_goal, "
    "water_glasses, water_glasses_goal, exercise_minutes, meals_logged, sleep_hours, "
    "weight_kg, bmi"
)


@dataclass
class SupabaseDailySummaryRepository(DailySummaryRepository):
    """Supabase implementation for the daily_summaries table."""

    client: Client

    def get_summary(self, user_id: UUID, day: date) -> DailySummary | None:
        """Return the stored summary for a day."""
        response = (
            self.client.table("daily_summaries")
            .select(SUMMARY_COLUMNS)
            .eq("user_id", str(user_id))
            .eq("date", day.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return parse_summary_row(response.data[0])

    def upsert_summary(
        self,
        user_id: UUID,
        summary: DailySummary,
        exercise_type: str | None = None,
    ) -> None:
        """Insert or replace the row keyed by (user_id, date)."""
        payload: dict[str, object] = {
            "user_id": str(user_id),
            "date": summary.date.isoformat(),
            "calories_consumed": summary.calories_consumed,
            "calories_burned": summary.calories_burned,
            "calories_goal": summary.calories_goal,
            "steps": summary.steps,
            "steps_goal": summary.steps_goal,
            "water_glasses": summary.water_glasses,
            "water_glasses_goal": summary.water_glasses_goal,
            "exercise_minutes": summary.exercise_minutes,
            "meals_logged": summary.meals_logged,
            "sleep_hours": summary.sleep_hours,
            "weight_kg": summary.weight_kg,
            "bmi": summary.bmi,
            "updated_at": datetime.now(tz=UTC).isoformat(),
        }
        if exercise_type:
            payload["exercise_type"] = exercise_type
        self.client.table("daily_summaries").upsert(
            payload, on_conflict="user_id,date"
        ).execute()

    def get_goals(self, user_id: UUID) -> UserGoals | None:
        return fetch_goals(self.client, user_id)

    def upsert_goals(self, user_id: UUID, goals: UserGoals) -> None:
        self.client.table("user_goals").upsert(
            {
                "user_id": str(user_id),
                "calories_goal": goals.calories_goal,
                "steps_goal": goals.steps_goal,
                "water_glasses_goal": goals.water_glasses_goal,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="user_id",
        ).execute()

    def add_food_entry(self, user_id: UUID, entry: FoodEntry) -> None:
        """Insert a logged food item into food_entries."""
        self.client.table("food_entries").insert(
            {
                "user_id": str(user_id),
                "logged_at": entry.logged_at.isoformat(),
                "name": entry.name,
                "calories": entry.calories,
                **entry.macros.to_dict(),
            }
        ).execute()


def fetch_goals(client: Client, user_id: UUID) -> UserGoals | None:
    """Read the user_goals row for a user."""
    response = (
        client.table("user_goals")
        .select("calories_goal, steps_goal, water_glasses_goal")
        .eq("user_id", str(user_id))
        .limit(1)
        .execute()
    )
    if not response.data:
        return None
    row = response.data[0]
    return UserGoals(
        calories_goal=_int(row.get("calories_goal"), DEFAULT_CALORIES_GOAL),
        steps_goal=_int(row.get("steps_goal"), DEFAULT_STEPS_GOAL),
        water_glasses_goal=_int(
            row.get("water_glasses_goal"), DEFAULT_WATER_GLASSES_GOAL
        ),
    )


def parse_summary_row(row: dict[str, object]) -> DailySummary:
    """Build a summary from a row, defaulting missing fields."""
    return DailySummary(
        date=date.fromisoformat(str(row["date"])[:10]),
        calories_consumed=_int(row.get("calories_consumed"), 0),
        calories_burned=_int(row.get("calories_burned"), 0),
        calories_goal=_int(row.get("calories_goal"), DEFAULT_CALORIES_GOAL),
        steps=_int(row.get("steps"), 0),
        steps_goal=_int(row.get("steps_goal"), DEFAULT_STEPS_GOAL),
        water_glasses=_int(row.get("water_glasses"), 0),
        water_glasses_goal=_int(
            row.get("water_glasses_goal"), DEFAULT_WATER_GLASSES_GOAL
        ),
        exercise_minutes=_int(row.get("exercise_minutes"), 0),
        meals_logged=_int(row.get("meals_logged"), 0),
        sleep_hours=_float(row.get("sleep_hours")) or 0.0,
        weight_kg=_float(row.get("weight_kg")),
        bmi=_float(row.get("bmi")),
    )


def _int(value: object, default: int) -> int:
    if value is None:
        return default
    return int(float(value))


def _float(value: object) -> float | None:
    return None if value is None else float(value)
