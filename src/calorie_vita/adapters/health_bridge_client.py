"""Named-method RPC client for the platform health bridge."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

import httpx

from calorie_vita.domain.fitness import HealthTodayData, TimeRange, WorkoutSession


class HealthBridgeError(Exception):
    """Error reported by the bridge as a (code, message) pair."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message


class HealthBridgeClient(Protocol):
    """Interface for the health bridge method surface."""

    async def check_availability(self, user_id: UUID) -> bool:
        """Return True when the platform health store is reachable."""

    async def request_permissions(self, user_id: UUID) -> bool:
        """Return True when read permissions are granted."""

    async def get_steps(self, user_id: UUID, time_range: TimeRange) -> int:
        """Return the step count in the range."""

    async def get_calories(self, user_id: UUID, time_range: TimeRange) -> float:
        """Return active calories burned in the range."""

    async def get_workouts(
        self, user_id: UUID, time_range: TimeRange
    ) -> list[WorkoutSession]:
        """Return exercise sessions overlapping the range."""

    async def get_today_steps(self, user_id: UUID) -> int:
        """Return the step count since local midnight."""

    async def get_today_calories(self, user_id: UUID) -> float:
        """Return active calories burned since local midnight."""

    async def get_today_workouts(self, user_id: UUID) -> list[WorkoutSession]:
        """Return today's exercise sessions."""

    async def get_today_data(self, user_id: UUID) -> HealthTodayData:
        """Return today's steps, calories and workout rollup."""


@dataclass
class HttpxHealthBridgeClient(HealthBridgeClient):
    """HTTPX-backed bridge client posting to a single RPC endpoint."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 10

    @classmethod
    def create(cls, base_url: str) -> "HttpxHealthBridgeClient":
        """Create a bridge client with a managed httpx session."""
        return cls(base_url=base_url.rstrip("/"), http_client=httpx.AsyncClient())

    async def call(self, method: str, params: dict[str, object]) -> object:
        """Invoke a bridge method and return its raw result."""
        response = await self.http_client.post(
            f"{self.base_url}/rpc",
            json={"method": method, "params": params},
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json()
        error = payload.get("error")
        if error:
            raise HealthBridgeError(
                str(error.get("code", "UNKNOWN")), str(error.get("message", ""))
            )
        return payload.get("result")

    async def check_availability(self, user_id: UUID) -> bool:
        result = await self.call("checkAvailability", {"userId": str(user_id)})
        return bool(result)

    async def request_permissions(self, user_id: UUID) -> bool:
        result = await self.call("requestPermissions", {"userId": str(user_id)})
        return bool(result)

    async def get_steps(self, user_id: UUID, time_range: TimeRange) -> int:
        result = await self.call(
            "getSteps", {"userId": str(user_id), **time_range.to_params()}
        )
        return int(result or 0)

    async def get_calories(self, user_id: UUID, time_range: TimeRange) -> float:
        result = await self.call(
            "getCalories", {"userId": str(user_id), **time_range.to_params()}
        )
        return float(result or 0.0)

    async def get_workouts(
        self, user_id: UUID, time_range: TimeRange
    ) -> list[WorkoutSession]:
        result = await self.call(
            "getWorkouts", {"userId": str(user_id), **time_range.to_params()}
        )
        return [_parse_session(record) for record in result or []]

    async def get_today_steps(self, user_id: UUID) -> int:
        result = await self.call("getTodaySteps", {"userId": str(user_id)})
        return int(result or 0)

    async def get_today_calories(self, user_id: UUID) -> float:
        result = await self.call("getTodayCalories", {"userId": str(user_id)})
        return float(result or 0.0)

    async def get_today_workouts(self, user_id: UUID) -> list[WorkoutSession]:
        result = await self.call("getTodayWorkouts", {"userId": str(user_id)})
        return [_parse_session(record) for record in result or []]

    async def get_today_data(self, user_id: UUID) -> HealthTodayData:
        result = await self.call("getTodayData", {"userId": str(user_id)}) or {}
        return HealthTodayData(
            steps=int(result.get("steps", 0) or 0),
            calories_burned=float(result.get("caloriesBurned", 0.0) or 0.0),
            workout_sessions=int(result.get("workoutSessions", 0) or 0),
            workout_duration_minutes=float(result.get("workoutDuration", 0.0) or 0.0),
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _parse_session(record: dict[str, object]) -> WorkoutSession:
    return WorkoutSession(
        start=datetime.fromisoformat(str(record["start"])),
        end=datetime.fromisoformat(str(record["end"])),
    )
