"""Tests for container wiring."""

import asyncio

from calorie_vita.config import MergePolicy
from calorie_vita.containers import build_container


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert container.analytics_registry.merge_policy is MergePolicy.PREFER_LARGER
    assert container.health_service.call_timeout_seconds == 3.0
    assert container.insights_service.ttl_seconds == 300
    asyncio.run(container.close_resources())
