"""Fail-soft access to the platform health bridge."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date
from typing import TypeVar
from uuid import UUID

from calorie_vita.adapters.health_bridge_client import HealthBridgeClient
from calorie_vita.domain.fitness import (
    FitnessSnapshot,
    HealthTodayData,
    TimeRange,
    WeeklyFitnessSummary,
    WorkoutSession,
)
from calorie_vita.services.periods import day_range, local_today, window_dates

T = TypeVar("T")

_logger = logging.getLogger(__name__)


@dataclass
class HealthService:
    """Wraps every bridge call with a timeout and a zero/empty default.

    Errors never propagate: a failed or slow call is logged and the caller
    receives the default value. There is no retry.
    """

    client: HealthBridgeClient
    call_timeout_seconds: float = 3.0

    async def is_available(self, user_id: UUID) -> bool:
        return await self._safe(
            lambda: self.client.check_availability(user_id),
            default=False,
            action="checkAvailability",
        )

    async def request_permissions(self, user_id: UUID) -> bool:
        return await self._safe(
            lambda: self.client.request_permissions(user_id),
            default=False,
            action="requestPermissions",
        )

    async def is_connected(self, user_id: UUID) -> bool:
        """Return True when the bridge is available and permissions are granted."""
        if not await self.is_available(user_id):
            return False
        return await self.request_permissions(user_id)

    async def get_steps(self, user_id: UUID, time_range: TimeRange) -> int:
        return await self._safe(
            lambda: self.client.get_steps(user_id, time_range),
            default=0,
            action="getSteps",
        )

    async def get_calories(self, user_id: UUID, time_range: TimeRange) -> float:
        return await self._safe(
            lambda: self.client.get_calories(user_id, time_range),
            default=0.0,
            action="getCalories",
        )

    async def get_workouts(
        self, user_id: UUID, time_range: TimeRange
    ) -> list[WorkoutSession]:
        return await self._safe(
            lambda: self.client.get_workouts(user_id, time_range),
            default=[],
            action="getWorkouts",
        )

    async def get_today_steps(self, user_id: UUID) -> int:
        return await self._safe(
            lambda: self.client.get_today_steps(user_id),
            default=0,
            action="getTodaySteps",
        )

    async def get_today_calories(self, user_id: UUID) -> float:
        return await self._safe(
            lambda: self.client.get_today_calories(user_id),
            default=0.0,
            action="getTodayCalories",
        )

    async def get_today_workouts(self, user_id: UUID) -> list[WorkoutSession]:
        return await self._safe(
            lambda: self.client.get_today_workouts(user_id),
            default=[],
            action="getTodayWorkouts",
        )

    async def get_today_data(self, user_id: UUID) -> HealthTodayData:
        """Return today's rollup, assembling it per metric if the rollup fails."""
        rollup: HealthTodayData | None = await self._safe(
            lambda: self.client.get_today_data(user_id),
            default=None,
            action="getTodayData",
        )
        if rollup is not None:
            return rollup
        steps, calories, workouts = await asyncio.gather(
            self.get_today_steps(user_id),
            self.get_today_calories(user_id),
            self.get_today_workouts(user_id),
        )
        return HealthTodayData(
            steps=steps,
            calories_burned=calories,
            workout_sessions=len(workouts),
            workout_duration_minutes=sum(w.duration_minutes for w in workouts),
        )

    async def get_snapshot(
        self, user_id: UUID, day: date, timezone_name: str
    ) -> FitnessSnapshot:
        """Fetch steps and calories for one local day concurrently."""
        time_range = day_range(day, timezone_name)
        steps, calories = await asyncio.gather(
            self.get_steps(user_id, time_range),
            self.get_calories(user_id, time_range),
        )
        return FitnessSnapshot(date=day, steps=steps, calories_burned=calories)

    async def daily_snapshots(
        self, user_id: UUID, dates: list[date], timezone_name: str
    ) -> list[FitnessSnapshot]:
        """Fetch one snapshot per date, oldest first."""
        return list(
            await asyncio.gather(
                *(self.get_snapshot(user_id, day, timezone_name) for day in dates)
            )
        )

    async def weekly_summary(
        self, user_id: UUID, timezone_name: str
    ) -> WeeklyFitnessSummary:
        dates = window_dates(7, local_today(timezone_name))
        snapshots = await self.daily_snapshots(user_id, dates, timezone_name)
        return WeeklyFitnessSummary.from_snapshots(snapshots)

    async def _safe(
        self, func: Callable[[], Awaitable[T]], *, default: T, action: str
    ) -> T:
        try:
            return await asyncio.wait_for(func(), timeout=self.call_timeout_seconds)
        except TimeoutError:
            _logger.warning(
                "Health bridge %s timed out after %ss", action, self.call_timeout_seconds
            )
        except Exception as exc:
            _logger.warning("Health bridge %s failed: %s", action, exc)
        return default
