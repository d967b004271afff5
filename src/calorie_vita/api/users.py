"""Per-user analytics, summary, streak and progress endpoints."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status

from calorie_vita.api.models import (
    ExerciseRequest,
    GoalsRequest,
    MealRequest,
    SleepRequest,
    StepsRequest,
    WaterIntakeRequest,
    WeightRequest,
)
from calorie_vita.domain.insights import Period
from calorie_vita.domain.streaks import DailyGoalType
from calorie_vita.domain.summaries import MacroBreakdown, UserGoals
from calorie_vita.services.periods import day_range, local_today

if TYPE_CHECKING:
    from calorie_vita.containers import AppContainer
    from calorie_vita.services.analytics import AnalyticsService
    from calorie_vita.services.daily_summaries import SummaryUpdate

_logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users/{user_id}", tags=["users"])


def _get_api_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.api_token


async def require_api_token(
    x_api_token: str | None = Header(default=None),
    api_token: str = Depends(_get_api_token),
) -> None:
    """Ensure requests include a valid API token."""
    if not x_api_token or x_api_token != api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def _timezone(request: Request, timezone: str | None) -> str:
    resolved = timezone or _container(request).settings.default_timezone
    try:
        ZoneInfo(resolved)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {resolved}") from exc
    return resolved


def _analytics(
    request: Request, user_id: UUID, timezone: str | None
) -> AnalyticsService:
    registry = _container(request).analytics_registry
    return registry.for_user(
        user_id, _timezone(request, timezone) if timezone else None
    )


def _analytics_state(service: AnalyticsService) -> dict[str, object]:
    return {
        "days": service.days,
        "timezone": service.timezone_name,
        "last_updated": service.last_updated,
        "daily_summaries": [s.to_dict() for s in service.cached_summaries],
        "macro_breakdown": service.cached_macros.to_dict(),
        "insights": [asdict(i) for i in service.insights.latest],
        "recommendations": [asdict(r) for r in service.recommendations.latest],
    }


def _summary_update(update: SummaryUpdate) -> dict[str, object]:
    results = update.results
    return {
        "summary": update.summary.to_dict(),
        "xp_awarded": sum(result.xp_awarded for result in results),
        "accepted": all(result.accepted for result in results),
        "new_rewards": [
            reward.to_dict() for result in results for reward in result.new_rewards
        ],
        "leveled_up": any(result.leveled_up for result in results),
        "progress": results[-1].progress.to_dict() if results else None,
    }


@router.post("/analytics/initialize", dependencies=[Depends(require_api_token)])
async def initialize_analytics(
    user_id: UUID,
    request: Request,
    days: int = Query(default=7, ge=1, le=365),
    timezone: str | None = None,
) -> dict[str, object]:
    """Load the first analytics window for a user."""
    service = _analytics(request, user_id, timezone)
    await service.initialize(days)
    return _analytics_state(service)


@router.post("/analytics/period", dependencies=[Depends(require_api_token)])
async def update_analytics_period(
    user_id: UUID,
    request: Request,
    days: int = Query(ge=1, le=365),
) -> dict[str, object]:
    service = _analytics(request, user_id, None)
    await service.update_period(days)
    return _analytics_state(service)


@router.post("/analytics/refresh", dependencies=[Depends(require_api_token)])
async def refresh_analytics(user_id: UUID, request: Request) -> dict[str, object]:
    service = _analytics(request, user_id, None)
    await service.refresh()
    return _analytics_state(service)


@router.get("/analytics", dependencies=[Depends(require_api_token)])
async def get_analytics(user_id: UUID, request: Request) -> dict[str, object]:
    """Return the latest published analytics state without refetching."""
    return _analytics_state(_analytics(request, user_id, None))


@router.get("/analytics/cards", dependencies=[Depends(require_api_token)])
async def get_analytics_cards(
    user_id: UUID, request: Request, period: Period = Period.WEEKLY
) -> dict[str, object]:
    service = _analytics(request, user_id, None)
    return asdict(service.period_totals(period))


@router.get("/analytics/today", dependencies=[Depends(require_api_token)])
async def get_live_today(user_id: UUID, request: Request) -> dict[str, object]:
    """Return today's cached summary merged with live bridge values."""
    service = _analytics(request, user_id, None)
    return (await service.live_today()).to_dict()


@router.get("/analytics/insights/ai", dependencies=[Depends(require_api_token)])
async def get_ai_insights(
    user_id: UUID,
    request: Request,
    period: Period = Period.WEEKLY,
    force_refresh: bool = False,
) -> dict[str, object]:
    """Return AI-written insights for the cached analytics window."""
    container = _container(request)
    service = _analytics(request, user_id, None)
    try:
        profile = await asyncio.to_thread(
            container.analytics_repository.get_profile, user_id
        )
    except Exception:
        _logger.exception("Failed to load profile for user %s", user_id)
        profile = None
    result = await container.insights_service.generate(
        user_id,
        period,
        service.cached_summaries[-period.days :],
        service.cached_macros,
        profile,
        force_refresh=force_refresh,
    )
    return asdict(result)


@router.delete("/analytics/insights/ai", dependencies=[Depends(require_api_token)])
async def clear_ai_insights(user_id: UUID, request: Request) -> dict[str, int]:
    """Drop cached AI insights so the next request calls the model."""
    removed = _container(request).insights_service.invalidate(user_id)
    return {"invalidated": removed}


@router.get("/summary/today", dependencies=[Depends(require_api_token)])
async def get_today_summary(
    user_id: UUID, request: Request, timezone: str | None = None
) -> dict[str, object]:
    container = _container(request)
    summary = container.daily_summary_service.get_today(
        user_id, _timezone(request, timezone)
    )
    return summary.to_dict()


@router.post("/summary/water", dependencies=[Depends(require_api_token)])
async def update_water(
    user_id: UUID,
    payload: WaterIntakeRequest,
    request: Request,
    timezone: str | None = None,
) -> dict[str, object]:
    container = _container(request)
    update = container.daily_summary_service.update_water_intake(
        user_id, payload.glasses, _timezone(request, timezone)
    )
    return _summary_update(update)


@router.post("/summary/steps", dependencies=[Depends(require_api_token)])
async def update_steps(
    user_id: UUID,
    payload: StepsRequest,
    request: Request,
    timezone: str | None = None,
) -> dict[str, object]:
    container = _container(request)
    update = container.daily_summary_service.update_steps(
        user_id, payload.steps, _timezone(request, timezone)
    )
    return _summary_update(update)


@router.post("/summary/exercise", dependencies=[Depends(require_api_token)])
async def add_exercise(
    user_id: UUID,
    payload: ExerciseRequest,
    request: Request,
    timezone: str | None = None,
) -> dict[str, object]:
    container = _container(request)
    update = container.daily_summary_service.add_exercise(
        user_id,
        payload.calories_burned,
        payload.duration_minutes,
        payload.exercise_type,
        _timezone(request, timezone),
    )
    return _summary_update(update)


@router.post("/summary/meals", dependencies=[Depends(require_api_token)])
async def log_meal(
    user_id: UUID,
    payload: MealRequest,
    request: Request,
    timezone: str | None = None,
) -> dict[str, object]:
    """Log a food item and add it to today's consumed calories."""
    container = _container(request)
    update = container.daily_summary_service.log_meal(
        user_id,
        payload.name,
        payload.calories,
        _timezone(request, timezone),
        macros=MacroBreakdown(
            carbs=payload.carbs,
            protein=payload.protein,
            fat=payload.fat,
            fiber=payload.fiber,
            sugar=payload.sugar,
        ),
    )
    return _summary_update(update)


@router.post("/summary/weight", dependencies=[Depends(require_api_token)])
async def update_weight(
    user_id: UUID,
    payload: WeightRequest,
    request: Request,
    timezone: str | None = None,
) -> dict[str, object]:
    container = _container(request)
    update = container.daily_summary_service.update_weight(
        user_id, payload.weight_kg, payload.bmi, _timezone(request, timezone)
    )
    return _summary_update(update)


@router.post("/summary/sleep", dependencies=[Depends(require_api_token)])
async def update_sleep(
    user_id: UUID,
    payload: SleepRequest,
    request: Request,
    timezone: str | None = None,
) -> dict[str, object]:
    container = _container(request)
    update = container.daily_summary_service.update_sleep(
        user_id, payload.hours, _timezone(request, timezone)
    )
    return _summary_update(update)


@router.put("/goals", dependencies=[Depends(require_api_token)])
async def update_goals(
    user_id: UUID,
    payload: GoalsRequest,
    request: Request,
    timezone: str | None = None,
) -> dict[str, object]:
    container = _container(request)
    update = container.daily_summary_service.update_goals(
        user_id,
        UserGoals(
            calories_goal=payload.calories_goal,
            steps_goal=payload.steps_goal,
            water_glasses_goal=payload.water_glasses_goal,
        ),
        _timezone(request, timezone),
    )
    return _summary_update(update)


@router.get("/streaks", dependencies=[Depends(require_api_token)])
async def get_streaks(
    user_id: UUID, request: Request, timezone: str | None = None
) -> dict[str, object]:
    container = _container(request)
    today = local_today(_timezone(request, timezone))
    return container.streak_service.get_summary(user_id, today).to_dict()


@router.post("/streaks/evaluate", dependencies=[Depends(require_api_token)])
async def evaluate_streaks(
    user_id: UUID, request: Request, timezone: str | None = None
) -> dict[str, object]:
    """Advance streaks for every goal today's stored summary meets."""
    container = _container(request)
    timezone_name = _timezone(request, timezone)
    summary = container.daily_summary_service.get_today(user_id, timezone_name)
    streaks = container.streak_service.evaluate_day(user_id, summary, summary.date)
    return streaks.to_dict()


@router.post(
    "/streaks/{goal_type}/achieved", dependencies=[Depends(require_api_token)]
)
async def mark_goal_achieved(
    user_id: UUID,
    goal_type: DailyGoalType,
    request: Request,
    timezone: str | None = None,
) -> dict[str, object]:
    """Record a goal as met today, including goals not derived from summaries."""
    container = _container(request)
    today = local_today(_timezone(request, timezone))
    return container.streak_service.mark_goal_achieved(
        user_id, goal_type, today
    ).to_dict()


@router.post(
    "/streaks/{goal_type}/missed", dependencies=[Depends(require_api_token)]
)
async def mark_goal_missed(
    user_id: UUID,
    goal_type: DailyGoalType,
    request: Request,
    timezone: str | None = None,
) -> dict[str, object]:
    container = _container(request)
    today = local_today(_timezone(request, timezone))
    return container.streak_service.mark_goal_not_achieved(
        user_id, goal_type, today
    ).to_dict()


@router.delete("/streaks", dependencies=[Depends(require_api_token)])
async def reset_streaks(
    user_id: UUID, request: Request, timezone: str | None = None
) -> dict[str, object]:
    container = _container(request)
    today = local_today(_timezone(request, timezone))
    return container.streak_service.reset(user_id, today).to_dict()


@router.get("/progress", dependencies=[Depends(require_api_token)])
async def get_progress(user_id: UUID, request: Request) -> dict[str, object]:
    container = _container(request)
    return container.rewards_service.get_progress(user_id).to_dict()


@router.get("/health/today", dependencies=[Depends(require_api_token)])
async def get_health_today(user_id: UUID, request: Request) -> dict[str, object]:
    """Return today's bridge rollup and whether the bridge is connected."""
    health_service = _container(request).health_service
    connected, today = await asyncio.gather(
        health_service.is_connected(user_id),
        health_service.get_today_data(user_id),
    )
    return {"connected": connected, **today.to_dict()}


@router.get("/health/weekly", dependencies=[Depends(require_api_token)])
async def get_health_weekly(
    user_id: UUID, request: Request, timezone: str | None = None
) -> dict[str, object]:
    """Return the last seven days of bridge activity with totals and averages."""
    health_service = _container(request).health_service
    summary = await health_service.weekly_summary(
        user_id, _timezone(request, timezone)
    )
    return {
        **asdict(summary),
        "average_activity_level": summary.average_activity_level,
    }


@router.get("/health/workouts", dependencies=[Depends(require_api_token)])
async def get_health_workouts(
    user_id: UUID, request: Request, timezone: str | None = None
) -> list[dict[str, object]]:
    """Return workout sessions recorded by the bridge for the local day."""
    health_service = _container(request).health_service
    timezone_name = _timezone(request, timezone)
    workouts = await health_service.get_workouts(
        user_id, day_range(local_today(timezone_name), timezone_name)
    )
    return [
        {
            "start": workout.start,
            "end": workout.end,
            "duration_minutes": workout.duration_minutes,
        }
        for workout in workouts
    ]
