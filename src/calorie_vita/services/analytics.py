"""Daily analytics aggregation over the remote store and the health bridge."""

import asyncio
import logging
from collections import OrderedDict, defaultdict
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from calorie_vita.config import MergePolicy
from calorie_vita.domain.fitness import FitnessSnapshot, TimeRange
from calorie_vita.domain.insights import Insight, Period, PeriodTotals, Recommendation
from calorie_vita.domain.summaries import (
    DailySummary,
    FoodEntry,
    MacroBreakdown,
    UserGoals,
)
from calorie_vita.services.channels import Channel
from calorie_vita.services.health import HealthService
from calorie_vita.services.insights import (
    generate_insights,
    generate_recommendations,
)
from calorie_vita.services.periods import local_today, window_dates, window_range

_logger = logging.getLogger(__name__)


class AnalyticsRepository(Protocol):
    """Read interface over the remote store used by analytics."""

    def list_food_entries(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> list[FoodEntry]:
        """Return food entries logged within a time range."""

    def list_daily_summaries(
        self, user_id: UUID, start: date, end: date
    ) -> list[DailySummary]:
        """Return cached daily summaries for dates in [start, end]."""

    def get_goals(self, user_id: UUID) -> UserGoals | None:
        """Return the user's daily goals, if configured."""

    def get_profile(self, user_id: UUID) -> dict[str, object] | None:
        """Return free-form profile fields, if present."""


@dataclass(frozen=True)
class StoreSnapshot:
    """Everything read from the remote store for one window."""

    entries: list[FoodEntry] = field(default_factory=list)
    summaries: list[DailySummary] = field(default_factory=list)
    goals: UserGoals = field(default_factory=UserGoals)


@dataclass
class AnalyticsService:
    """Per-user cache of daily summaries republished on channels.

    Fetches are not serialized: overlapping calls race and whichever finishes
    last overwrites the published state.
    """

    user_id: UUID
    repository: AnalyticsRepository
    health_service: HealthService
    timezone_name: str = "UTC"
    merge_policy: MergePolicy = MergePolicy.PREFER_LARGER
    source_timeout_seconds: float = 5.0
    days: int = 7
    last_updated: datetime | None = None
    daily_summaries: Channel[list[DailySummary]] = field(
        default_factory=lambda: Channel("daily_summaries", [])
    )
    macro_breakdown: Channel[MacroBreakdown] = field(
        default_factory=lambda: Channel("macro_breakdown", MacroBreakdown())
    )
    insights: Channel[list[Insight]] = field(
        default_factory=lambda: Channel("insights", [])
    )
    recommendations: Channel[list[Recommendation]] = field(
        default_factory=lambda: Channel("recommendations", [])
    )

    async def initialize(self, days: int = 7) -> list[DailySummary]:
        """Load the first window and publish it."""
        self.days = days
        return await self._load(days)

    async def update_period(self, days: int) -> list[DailySummary]:
        """Switch to a new window length and reload."""
        self.days = days
        return await self._load(days)

    async def refresh(self) -> list[DailySummary]:
        """Reload the current window."""
        return await self._load(self.days)

    @property
    def cached_summaries(self) -> list[DailySummary]:
        return self.daily_summaries.latest

    @property
    def cached_macros(self) -> MacroBreakdown:
        return self.macro_breakdown.latest

    def period_totals(self, period: Period) -> PeriodTotals:
        return period_totals(self.cached_summaries, period)

    async def live_today(self) -> DailySummary:
        """Today's cached summary merged with the bridge's live rollup."""
        today = local_today(self.timezone_name)
        cached = next(
            (s for s in reversed(self.cached_summaries) if s.date == today),
            DailySummary.placeholder(today),
        )
        live = await self.health_service.get_today_data(self.user_id)
        return cached.with_changes(
            steps=merge_metric(cached.steps, live.steps, self.merge_policy),
            calories_burned=merge_metric(
                cached.calories_burned, round(live.calories_burned), self.merge_policy
            ),
        )

    async def _load(self, days: int) -> list[DailySummary]:
        dates = window_dates(days, local_today(self.timezone_name))
        store, snapshots = await asyncio.gather(
            self._fetch_store(dates),
            self._fetch_health(dates),
        )
        summaries = build_daily_summaries(
            dates,
            store,
            snapshots,
            self.timezone_name,
            self.merge_policy,
        )
        macros = sum_macros(summaries)
        now = datetime.now(tz=UTC)
        self.last_updated = now
        self.daily_summaries.publish(summaries)
        self.macro_breakdown.publish(macros)
        self.insights.publish(generate_insights(summaries, macros, now))
        self.recommendations.publish(generate_recommendations(summaries, macros, now))
        _logger.info(
            "Analytics loaded: user=%s days=%s entries=%s snapshots=%s",
            self.user_id,
            days,
            len(store.entries),
            len(snapshots),
        )
        return summaries

    async def _fetch_store(self, dates: list[date]) -> StoreSnapshot:
        window = window_range(dates, self.timezone_name)
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._read_store, dates, window),
                timeout=self.source_timeout_seconds,
            )
        except TimeoutError:
            _logger.warning("Store fetch timed out for user %s", self.user_id)
        except Exception:
            _logger.exception("Store fetch failed for user %s", self.user_id)
        return StoreSnapshot()

    def _read_store(self, dates: list[date], window: TimeRange) -> StoreSnapshot:
        entries = self.repository.list_food_entries(
            self.user_id, window.start, window.end
        )
        summaries = self.repository.list_daily_summaries(
            self.user_id, dates[0], dates[-1]
        )
        goals = self.repository.get_goals(self.user_id) or UserGoals()
        return StoreSnapshot(entries=entries, summaries=summaries, goals=goals)

    async def _fetch_health(self, dates: list[date]) -> list[FitnessSnapshot]:
        try:
            return await asyncio.wait_for(
                self.health_service.daily_snapshots(
                    self.user_id, dates, self.timezone_name
                ),
                timeout=self.source_timeout_seconds,
            )
        except TimeoutError:
            _logger.warning("Health fetch timed out for user %s", self.user_id)
        except Exception:
            _logger.exception("Health fetch failed for user %s", self.user_id)
        return []


@dataclass
class AnalyticsRegistry:
    """Hands out one analytics service per user.

    At most ``max_users`` services are kept; the least recently used one is
    dropped first. A timezone change replaces the user's service, since its
    cached days are bucketed in the old zone.
    """

    repository: AnalyticsRepository
    health_service: HealthService
    default_timezone: str = "UTC"
    merge_policy: MergePolicy = MergePolicy.PREFER_LARGER
    source_timeout_seconds: float = 5.0
    max_users: int = 1000
    _services: OrderedDict[UUID, AnalyticsService] = field(
        default_factory=OrderedDict
    )

    def for_user(
        self, user_id: UUID, timezone_name: str | None = None
    ) -> AnalyticsService:
        service = self._services.get(user_id)
        if service is not None and (
            timezone_name is None or timezone_name == service.timezone_name
        ):
            self._services.move_to_end(user_id)
            return service

        days = service.days if service is not None else 7
        if service is not None:
            _logger.info(
                "Timezone changed for user %s: %s -> %s",
                user_id,
                service.timezone_name,
                timezone_name,
            )
        service = AnalyticsService(
            user_id=user_id,
            repository=self.repository,
            health_service=self.health_service,
            timezone_name=timezone_name or self.default_timezone,
            merge_policy=self.merge_policy,
            source_timeout_seconds=self.source_timeout_seconds,
            days=days,
        )
        self._services[user_id] = service
        self._services.move_to_end(user_id)
        while len(self._services) > self.max_users:
            self._services.popitem(last=False)
        return service

    def get(self, user_id: UUID) -> AnalyticsService | None:
        return self._services.get(user_id)

    def discard(self, user_id: UUID) -> None:
        self._services.pop(user_id, None)


def merge_metric(store_value: int, health_value: int, policy: MergePolicy) -> int:
    """Choose between a cached store value and a health bridge value."""
    if policy is MergePolicy.PREFER_STORE:
        return store_value or health_value
    if policy is MergePolicy.PREFER_HEALTH:
        return health_value or store_value
    return max(store_value, health_value)


def build_daily_summaries(
    dates: list[date],
    store: StoreSnapshot,
    snapshots: list[FitnessSnapshot],
    timezone_name: str,
    policy: MergePolicy,
) -> list[DailySummary]:
    """Merge store entries, cached summaries and bridge snapshots per date."""
    tz = ZoneInfo(timezone_name)
    entries_by_day: dict[date, list[FoodEntry]] = defaultdict(list)
    for entry in store.entries:
        entries_by_day[entry.logged_at.astimezone(tz).date()].append(entry)
    cached_by_day = {summary.date: summary for summary in store.summaries}
    snapshot_by_day = {snapshot.date: snapshot for snapshot in snapshots}

    summaries = []
    for day in dates:
        day_entries = entries_by_day.get(day, [])
        entry_calories = sum(entry.calories for entry in day_entries)
        macros = MacroBreakdown()
        for entry in day_entries:
            macros = macros + entry.macros

        base = cached_by_day.get(day) or DailySummary.placeholder(day, store.goals)
        snapshot = snapshot_by_day.get(day)
        health_steps = snapshot.steps or 0 if snapshot else 0
        health_burned = round(snapshot.calories_burned or 0.0) if snapshot else 0

        summaries.append(
            base.with_changes(
                calories_consumed=max(entry_calories, base.calories_consumed),
                calories_burned=merge_metric(
                    base.calories_burned, health_burned, policy
                ),
                steps=merge_metric(base.steps, health_steps, policy),
                calories_goal=store.goals.calories_goal,
                steps_goal=store.goals.steps_goal,
                water_glasses_goal=store.goals.water_glasses_goal,
                macro_breakdown=macros,
            )
        )
    return summaries


def sum_macros(summaries: list[DailySummary]) -> MacroBreakdown:
    total = MacroBreakdown()
    for summary in summaries:
        total = total + summary.macro_breakdown
    return total


def period_totals(summaries: list[DailySummary], period: Period) -> PeriodTotals:
    """Card totals for the most recent period window."""
    current = _current_window(summaries, period.days)
    previous = _previous_window(summaries, period.days)
    return PeriodTotals(
        period=period,
        calories_consumed=sum(s.calories_consumed for s in current),
        steps=sum(s.steps for s in current),
        workouts=_workout_days(current),
        calories_change=percentage_change(summaries, "calories", period),
        steps_change=percentage_change(summaries, "steps", period),
        workouts_change=_signed(_workout_days(current) - _workout_days(previous))
        if previous
        else "0",
    )


def percentage_change(
    summaries: list[DailySummary], metric: str, period: Period
) -> str:
    """Change of a metric between the latest window and the one before it."""
    current = _current_window(summaries, period.days)
    previous = _previous_window(summaries, period.days)
    if not current or not previous:
        return "0%"
    current_value = _metric_total(current, metric)
    previous_value = _metric_total(previous, metric)
    if previous_value == 0:
        return "0%"
    change = round((current_value - previous_value) / previous_value * 100)
    return f"{_signed(change)}%"


def _metric_total(summaries: list[DailySummary], metric: str) -> int:
    if metric == "calories":
        return sum(s.calories_consumed for s in summaries)
    if metric == "steps":
        return sum(s.steps for s in summaries)
    raise ValueError(f"Unknown metric: {metric}")


def _current_window(summaries: list[DailySummary], days: int) -> list[DailySummary]:
    return summaries[-days:] if summaries else []


def _previous_window(summaries: list[DailySummary], days: int) -> list[DailySummary]:
    # A partial earlier window is no baseline.
    end = len(summaries) - days
    if end < days:
        return []
    return summaries[end - days : end]


def _workout_days(summaries: list[DailySummary]) -> int:
    return sum(1 for s in summaries if s.calories_burned > 0)


def _signed(value: int) -> str:
    return f"+{value}" if value >= 0 else str(value)
