from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration derived from environment variables."""

    api_port: int = Field(default=8000, alias="API_PORT")
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"], alias="CORS_ORIGINS")
    frontend_base_url: Optional[HttpUrl] = Field(default=None, alias="FRONTEND_BASE_URL")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    session_secret: str = Field(default="dev-insecure-session-secret", alias="SESSION_SECRET")

    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")
    key_prefix: str = Field(default="nts", alias="KEY_PREFIX")
    puzzle_cache_ttl_seconds: int = Field(default=172_800, alias="PUZZLE_CACHE_TTL_SECONDS")
    player_flag_ttl_seconds: int = Field(default=172_800, alias="PLAYER_FLAG_TTL_SECONDS")
    warm_cache_on_startup: bool = Field(default=True, alias="WARM_CACHE_ON_STARTUP")

    accept_client_day_key: bool = Field(default=True, alias="ACCEPT_CLIENT_DAY_KEY")
    day_key_skew_days: int = Field(default=1, alias="DAY_KEY_SKEW_DAYS")

    reddit_base_url: str = Field(default="https://www.reddit.com", alias="REDDIT_BASE_URL")
    reddit_user_agent: str = Field(
        default="namethesub/0.1 (daily community guessing game)", alias="REDDIT_USER_AGENT"
    )
    reddit_timeout_seconds: float = Field(default=10.0, alias="REDDIT_TIMEOUT_SECONDS")

    easy_min_subscribers: int = Field(default=1_000_000, alias="EASY_MIN_SUBSCRIBERS")
    medium_min_subscribers: int = Field(default=10_000, alias="MEDIUM_MIN_SUBSCRIBERS")
    global_listing_limit: int = Field(default=120, alias="GLOBAL_LISTING_LIMIT")
    community_listing_limit: int = Field(default=50, alias="COMMUNITY_LISTING_LIMIT")
    comment_limit: int = Field(default=200, alias="COMMENT_LIMIT")
    comment_pool_limit: int = Field(default=60, alias="COMMENT_POOL_LIMIT")
    scan_limit: int = Field(default=50, alias="SCAN_LIMIT")
    qualified_cap: int = Field(default=5, alias="QUALIFIED_CAP")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
