"""Application configuration."""

import os
from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class MergePolicy(str, Enum):
    """How a metric present in both the store and the health bridge is chosen."""

    PREFER_LARGER = "prefer_larger"
    PREFER_STORE = "prefer_store"
    PREFER_HEALTH = "prefer_health"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    api_token: str
    openai_api_key: str
    openai_model: str = "gpt-4o-mini"
    openai_store: bool = False
    health_bridge_url: str = "http://localhost:8765"
    health_call_timeout_seconds: float = 3.0
    source_timeout_seconds: float = 5.0
    analytics_max_users: int = 1000
    insights_ttl_seconds: int = 300
    merge_policy: MergePolicy = MergePolicy.PREFER_LARGER
    default_timezone: str = "UTC"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
