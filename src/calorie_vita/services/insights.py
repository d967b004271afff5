"""Rule-based analytics cards and the cached AI insights call."""

import hashlib
import json
import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from pydantic import ValidationError

from calorie_vita.domain.insights import (
    AIInsightResult,
    AIInsights,
    Insight,
    Period,
    Recommendation,
)
from calorie_vita.domain.summaries import DailySummary, MacroBreakdown
from calorie_vita.services.cache import Cache

_logger = logging.getLogger(__name__)

AI_UNAVAILABLE_TEXT = "AI service unavailable, please try again later."

CALORIE_TREND_THRESHOLD = 10
CONSISTENCY_DAYS = 5
LOW_CALORIES = 1500
HIGH_CALORIES = 2500
LOW_PROTEIN_G = 100
TARGET_PROTEIN_G = 120

AI_INSIGHTS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "summary": {"type": "string"},
        "tips": {"type": "array", "items": {"type": "string"}, "maxItems": 5},
    },
    "required": ["summary", "tips"],
    "additionalProperties": False,
}


def generate_insights(
    summaries: list[DailySummary], macros: MacroBreakdown, now: datetime
) -> list[Insight]:
    """Derive observations from the latest summaries and macros."""
    insights: list[Insight] = []

    if len(summaries) >= 7:
        this_week = sum(s.calories_consumed for s in summaries[-7:])
        last_week = (
            sum(s.calories_consumed for s in summaries[-14:-7])
            if len(summaries) >= 14
            else this_week
        )
        if last_week > 0:
            change = round((this_week - last_week) / last_week * 100)
            if change > CALORIE_TREND_THRESHOLD:
                insights.append(
                    Insight(
                        title="Calorie Increase",
                        message=f"Calories up {change}% from last week",
                        tone="warning",
                        created_at=now,
                    )
                )
            elif change < -CALORIE_TREND_THRESHOLD:
                insights.append(
                    Insight(
                        title="Calorie Decrease",
                        message=f"Calories down {abs(change)}% from last week",
                        tone="info",
                        created_at=now,
                    )
                )

    if macros.total_calories > 0 and not macros.is_within_recommended:
        insights.append(
            Insight(
                title="Macro Imbalance",
                message="Your macro balance could be improved",
                tone="warning",
                created_at=now,
            )
        )

    goal_days = sum(1 for s in summaries[-7:] if s.is_goal_achieved)
    if goal_days >= CONSISTENCY_DAYS:
        insights.append(
            Insight(
                title="Great Consistency!",
                message=f"You met your goals {goal_days} days this week",
                tone="success",
                created_at=now,
            )
        )
    return insights


def generate_recommendations(
    summaries: list[DailySummary], macros: MacroBreakdown, now: datetime
) -> list[Recommendation]:
    """Suggestions for today, ordered by priority."""
    recommendations: list[Recommendation] = []

    if summaries:
        today_calories = summaries[-1].calories_consumed
        if today_calories < LOW_CALORIES:
            recommendations.append(
                Recommendation(
                    title="Increase Calorie Intake",
                    description="Consider adding a healthy snack",
                    icon="restaurant",
                    tone="warning",
                    priority=1,
                    created_at=now,
                )
            )
        elif today_calories > HIGH_CALORIES:
            recommendations.append(
                Recommendation(
                    title="Take a Walk",
                    description="A 30-minute walk can help balance today's intake",
                    icon="directions_walk",
                    tone="info",
                    priority=2,
                    created_at=now,
                )
            )

    if macros.protein < LOW_PROTEIN_G:
        missing = TARGET_PROTEIN_G - macros.protein
        recommendations.append(
            Recommendation(
                title="Boost Protein",
                description=f"Add {missing:.0f}g protein to reach your target",
                icon="fitness_center",
                tone="info",
                priority=4,
                created_at=now,
            )
        )

    recommendations.sort(key=lambda item: item.priority)
    return recommendations


class InsightsClient(Protocol):
    """Interface for the LLM that writes AI insights."""

    async def generate(
        self,
        *,
        model: str,
        store: bool,
        prompt: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        """Return structured insight data matching schema."""


@dataclass(frozen=True)
class _CachedInsight:
    fingerprint: str
    result: AIInsightResult


@dataclass
class InsightsService:
    """Generates AI insights and caches them per user and period."""

    client: InsightsClient
    cache: Cache
    model: str
    store: bool = False
    ttl_seconds: int = 300

    async def generate(  # noqa: PLR0913
        self,
        user_id: UUID,
        period: Period,
        summaries: list[DailySummary],
        macros: MacroBreakdown,
        profile: dict[str, object] | None = None,
        *,
        force_refresh: bool = False,
    ) -> AIInsightResult:
        """Return insight text for the period, reusing a fresh cached result."""
        key = _cache_key(user_id, period)
        fingerprint = data_fingerprint(period, summaries, macros)
        if not force_refresh:
            cached = self.cache.get(key)
            if isinstance(cached, _CachedInsight) and cached.fingerprint == fingerprint:
                return replace(cached.result, cached=True)

        prompt = build_prompt(period, summaries, macros, profile)
        try:
            raw = await self.client.generate(
                model=self.model,
                store=self.store,
                prompt=prompt,
                schema=AI_INSIGHTS_SCHEMA,
            )
            insights = AIInsights.model_validate(raw)
        except ValidationError:
            _logger.warning("AI insights returned an invalid payload")
            return _degraded()
        except Exception:
            _logger.exception("AI insights request failed")
            return _degraded()

        result = AIInsightResult(
            text=format_insights(insights), generated_at=datetime.now(tz=UTC)
        )
        self.cache.set(
            key, _CachedInsight(fingerprint=fingerprint, result=result), self.ttl_seconds
        )
        return result

    def invalidate(self, user_id: UUID) -> int:
        return self.cache.invalidate(f"insights:{user_id}:")


def build_prompt(
    period: Period,
    summaries: list[DailySummary],
    macros: MacroBreakdown,
    profile: dict[str, object] | None,
) -> str:
    """Assemble the analysis prompt from the user's recent data."""
    days = len(summaries) or 1
    total_calories = sum(s.calories_consumed for s in summaries)
    total_steps = sum(s.steps for s in summaries)
    payload = {
        "period": period.value,
        "profile": profile or {},
        "recent_calories": [s.calories_consumed for s in summaries],
        "recent_steps": [s.steps for s in summaries],
        "calories_burned": [s.calories_burned for s in summaries],
        "macros": macros.to_dict(),
        "total_calories": total_calories,
        "average_calories": round(total_calories / days),
        "average_steps": round(total_steps / days),
        "goal_days": sum(1 for s in summaries if s.is_goal_achieved),
    }
    return (
        "You are a nutrition and fitness coach. "
        f"Analyse this user's {period.value} data and reply with a short "
        "summary and up to five practical tips.\n"
        f"Data: {json.dumps(payload, sort_keys=True)}"
    )


def data_fingerprint(
    period: Period, summaries: list[DailySummary], macros: MacroBreakdown
) -> str:
    """Stable hash of the data an insight was generated from."""
    material = json.dumps(
        {
            "period": period.value,
            "days": len(summaries),
            "calories": sum(s.calories_consumed for s in summaries),
            "steps": sum(s.steps for s in summaries),
            "burned": sum(s.calories_burned for s in summaries),
            "macros": macros.to_dict(),
        },
        sort_keys=True,
    )
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def format_insights(insights: AIInsights) -> str:
    lines = [insights.summary.strip()]
    lines.extend(f"- {tip.strip()}" for tip in insights.tips if tip.strip())
    return "\n".join(lines)


def _cache_key(user_id: UUID, period: Period) -> str:
    return f"insights:{user_id}:{period.value}"


def _degraded() -> AIInsightResult:
    return AIInsightResult(
        text=AI_UNAVAILABLE_TEXT, generated_at=datetime.now(tz=UTC), degraded=True
    )
