"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from calorie_vita.adapters.health_bridge_client import HttpxHealthBridgeClient
from calorie_vita.adapters.openai_insights_client import OpenAIInsightsClient
from calorie_vita.adapters.supabase_analytics_repository import (
    SupabaseAnalyticsRepository,
)
from calorie_vita.adapters.supabase_daily_summary_repository import (
    SupabaseDailySummaryRepository,
)
from calorie_vita.adapters.supabase_progress_repository import (
    SupabaseProgressRepository,
)
from calorie_vita.adapters.supabase_streak_repository import SupabaseStreakRepository
from calorie_vita.config import Settings
from calorie_vita.services.analytics import AnalyticsRegistry, AnalyticsRepository
from calorie_vita.services.cache import InMemoryCache
from calorie_vita.services.daily_summaries import DailySummaryService
from calorie_vita.services.health import HealthService
from calorie_vita.services.insights import InsightsService
from calorie_vita.services.rewards import RewardsService
from calorie_vita.services.streaks import StreakService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    analytics_repository: AnalyticsRepository
    analytics_registry: AnalyticsRegistry
    health_service: HealthService
    daily_summary_service: DailySummaryService
    streak_service: StreakService
    rewards_service: RewardsService
    insights_service: InsightsService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    analytics_repository = SupabaseAnalyticsRepository(supabase_client)
    summary_repository = SupabaseDailySummaryRepository(supabase_client)
    streak_repository = SupabaseStreakRepository(supabase_client)
    progress_repository = SupabaseProgressRepository(supabase_client)

    bridge_client = HttpxHealthBridgeClient.create(resolved_settings.health_bridge_url)
    health_service = HealthService(
        client=bridge_client,
        call_timeout_seconds=resolved_settings.health_call_timeout_seconds,
    )
    analytics_registry = AnalyticsRegistry(
        repository=analytics_repository,
        health_service=health_service,
        default_timezone=resolved_settings.default_timezone,
        merge_policy=resolved_settings.merge_policy,
        source_timeout_seconds=resolved_settings.source_timeout_seconds,
        max_users=resolved_settings.analytics_max_users,
    )
    streak_service = StreakService(streak_repository)
    rewards_service = RewardsService(progress_repository)
    daily_summary_service = DailySummaryService(
        repository=summary_repository,
        rewards_service=rewards_service,
        streak_service=streak_service,
    )
    openai_client = OpenAIInsightsClient.create(resolved_settings.openai_api_key)
    insights_service = InsightsService(
        client=openai_client,
        cache=InMemoryCache(),
        model=resolved_settings.openai_model,
        store=resolved_settings.openai_store,
        ttl_seconds=resolved_settings.insights_ttl_seconds,
    )

    async def close_resources() -> None:
        await bridge_client.close()
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        analytics_repository=analytics_repository,
        analytics_registry=analytics_registry,
        health_service=health_service,
        daily_summary_service=daily_summary_service,
        streak_service=streak_service,
        rewards_service=rewards_service,
        insights_service=insights_service,
        close_resources=close_resources,
    )
