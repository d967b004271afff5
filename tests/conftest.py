"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID, uuid4

import pytest

from calorie_vita.adapters.health_bridge_client import (
    HealthBridgeClient,
    HealthBridgeError,
)
from calorie_vita.config import Settings
from calorie_vita.containers import AppContainer
from calorie_vita.domain.fitness import HealthTodayData, TimeRange, WorkoutSession
from calorie_vita.domain.rewards import UserProgress, UserReward
from calorie_vita.domain.streaks import DailyGoalType, GoalStreak
from calorie_vita.domain.summaries import DailySummary, FoodEntry, UserGoals
from calorie_vita.services.analytics import AnalyticsRegistry, AnalyticsRepository
from calorie_vita.services.cache import InMemoryCache
from calorie_vita.services.daily_summaries import (
    DailySummaryRepository,
    DailySummaryService,
)
from calorie_vita.services.health import HealthService
from calorie_vita.services.insights import InsightsClient, InsightsService
from calorie_vita.services.rewards import ProgressRepository, RewardsService
from calorie_vita.services.streaks import StreakRepository, StreakService


@dataclass
class InMemoryAnalyticsRepository(AnalyticsRepository):
    """In-memory analytics repository for tests."""

    entries: list[FoodEntry] = field(default_factory=list)
    summaries: list[DailySummary] = field(default_factory=list)
    goals: UserGoals | None = None
    profile: dict[str, object] | None = None
    fail: bool = False

    def list_food_entries(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> list[FoodEntry]:
        if self.fail:
            raise RuntimeError("store unavailable")
        return [entry for entry in self.entries if start <= entry.logged_at < end]

    def list_daily_summaries(
        self, user_id: UUID, start: date, end: date
    ) -> list[DailySummary]:
        if self.fail:
            raise RuntimeError("store unavailable")
        return [s for s in self.summaries if start <= s.date <= end]

    def get_goals(self, user_id: UUID) -> UserGoals | None:
        return self.goals

    def get_profile(self, user_id: UUID) -> dict[str, object] | None:
        return self.profile


@dataclass
class FakeHealthBridgeClient(HealthBridgeClient):
    """Fake bridge keyed by the UTC date of each requested range."""

    steps_by_day: dict[date, int] = field(default_factory=dict)
    calories_by_day: dict[date, float] = field(default_factory=dict)
    workouts: list[WorkoutSession] = field(default_factory=list)
    today: HealthTodayData = field(default_factory=HealthTodayData)
    available: bool = True
    permissions: bool = True
    fail: bool = False
    rollup_fails: bool = False
    calls: list[str] = field(default_factory=list)

    def _check(self, method: str) -> None:
        self.calls.append(method)
        if self.fail:
            raise HealthBridgeError("UNAVAILABLE", "bridge offline")

    async def check_availability(self, user_id: UUID) -> bool:
        self._check("checkAvailability")
        return self.available

    async def request_permissions(self, user_id: UUID) -> bool:
        self._check("requestPermissions")
        return self.permissions

    async def get_steps(self, user_id: UUID, time_range: TimeRange) -> int:
        self._check("getSteps")
        return self.steps_by_day.get(time_range.start.date(), 0)

    async def get_calories(self, user_id: UUID, time_range: TimeRange) -> float:
        self._check("getCalories")
        return self.calories_by_day.get(time_range.start.date(), 0.0)

    async def get_workouts(
        self, user_id: UUID, time_range: TimeRange
    ) -> list[WorkoutSession]:
        self._check("getWorkouts")
        return self.workouts

    async def get_today_steps(self, user_id: UUID) -> int:
        self._check("getTodaySteps")
        return self.today.steps

    async def get_today_calories(self, user_id: UUID) -> float:
        self._check("getTodayCalories")
        return self.today.calories_burned

    async def get_today_workouts(self, user_id: UUID) -> list[WorkoutSession]:
        self._check("getTodayWorkouts")
        return self.workouts

    async def get_today_data(self, user_id: UUID) -> HealthTodayData:
        self._check("getTodayData")
        if self.rollup_fails:
            raise HealthBridgeError("UNIMPLEMENTED", "getTodayData not supported")
        return self.today


@dataclass
class InMemoryDailySummaryRepository(DailySummaryRepository):
    """In-memory daily summary repository for tests."""

    summaries: dict[tuple[UUID, date], DailySummary] = field(default_factory=dict)
    exercise_types: list[str] = field(default_factory=list)
    goals: UserGoals | None = None
    food_entries: list[FoodEntry] = field(default_factory=list)

    def get_summary(self, user_id: UUID, day: date) -> DailySummary | None:
        return self.summaries.get((user_id, day))

    def upsert_summary(
        self,
        user_id: UUID,
        summary: DailySummary,
        exercise_type: str | None = None,
    ) -> None:
        self.summaries[(user_id, summary.date)] = summary
        if exercise_type:
            self.exercise_types.append(exercise_type)

    def get_goals(self, user_id: UUID) -> UserGoals | None:
        return self.goals

    def upsert_goals(self, user_id: UUID, goals: UserGoals) -> None:
        self.goals = goals

    def add_food_entry(self, user_id: UUID, entry: FoodEntry) -> None:
        self.food_entries.append(entry)


@dataclass
class InMemoryStreakRepository(StreakRepository):
    """In-memory streak repository for tests."""

    streaks: dict[UUID, dict[DailyGoalType, GoalStreak]] = field(default_factory=dict)
    saves: int = 0

    def load_streaks(self, user_id: UUID) -> list[GoalStreak]:
        return list(self.streaks.get(user_id, {}).values())

    def save_streaks(self, user_id: UUID, streaks: list[GoalStreak]) -> None:
        self.saves += 1
        stored = self.streaks.setdefault(user_id, {})
        for streak in streaks:
            stored[streak.goal_type] = streak

    def delete_streaks(self, user_id: UUID) -> None:
        self.streaks.pop(user_id, None)


@dataclass
class InMemoryProgressRepository(ProgressRepository):
    """In-memory progress repository for tests."""

    progress: dict[UUID, UserProgress] = field(default_factory=dict)
    rewards: dict[UUID, list[UserReward]] = field(default_factory=dict)

    def get_progress(self, user_id: UUID) -> UserProgress | None:
        stored = self.progress.get(user_id)
        if stored is None:
            return None
        return stored.with_changes(unlocked_rewards=list(self.rewards.get(user_id, [])))

    def save_progress(self, user_id: UUID, progress: UserProgress) -> None:
        self.progress[user_id] = progress

    def add_rewards(self, user_id: UUID, rewards: list[UserReward]) -> None:
        self.rewards.setdefault(user_id, []).extend(rewards)


@dataclass
class FakeInsightsClient(InsightsClient):
    """Fake LLM client returning a fixed payload."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "summary": "Solid week overall.",
            "tips": ["Add a vegetable to dinner", "Walk after lunch"],
        }
    )
    fail: bool = False
    prompts: list[str] = field(default_factory=list)

    async def generate(
        self,
        *,
        model: str,
        store: bool,
        prompt: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        self.prompts.append(prompt)
        if self.fail:
            raise RuntimeError("model unavailable")
        return self.payload


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        api_token="api-token",
        openai_api_key="openai-key",
    )


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def analytics_repository() -> InMemoryAnalyticsRepository:
    return InMemoryAnalyticsRepository()


@pytest.fixture
def bridge_client() -> FakeHealthBridgeClient:
    return FakeHealthBridgeClient()


@pytest.fixture
def health_service(bridge_client: FakeHealthBridgeClient) -> HealthService:
    return HealthService(client=bridge_client, call_timeout_seconds=1.0)


@pytest.fixture
def summary_repository() -> InMemoryDailySummaryRepository:
    return InMemoryDailySummaryRepository()


@pytest.fixture
def streak_repository() -> InMemoryStreakRepository:
    return InMemoryStreakRepository()


@pytest.fixture
def progress_repository() -> InMemoryProgressRepository:
    return InMemoryProgressRepository()


@pytest.fixture
def insights_client() -> FakeInsightsClient:
    return FakeInsightsClient()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    analytics_repository: InMemoryAnalyticsRepository,
    health_service: HealthService,
    summary_repository: InMemoryDailySummaryRepository,
    streak_repository: InMemoryStreakRepository,
    progress_repository: InMemoryProgressRepository,
    insights_client: FakeInsightsClient,
) -> AppContainer:
    streak_service = StreakService(streak_repository)
    rewards_service = RewardsService(progress_repository)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        analytics_repository=analytics_repository,
        analytics_registry=AnalyticsRegistry(
            repository=analytics_repository,
            health_service=health_service,
        ),
        health_service=health_service,
        daily_summary_service=DailySummaryService(
            repository=summary_repository,
            rewards_service=rewards_service,
            streak_service=streak_service,
        ),
        streak_service=streak_service,
        rewards_service=rewards_service,
        insights_service=InsightsService(
            client=insights_client,
            cache=InMemoryCache(),
            model=settings.openai_model,
        ),
        close_resources=close_resources,
    )
