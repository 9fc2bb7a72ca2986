"""
Application configuration management
Loads environment variables and provides type-safe configuration access
Supports both local .env files and cloud environment variables
"""

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal


def get_env_file() -> str | None:
    """
    Determine which .env file to use (if any).
    Priority: .env.production > .env > None (cloud env vars only)
    """
    if Path(".env.production").exists():
        return ".env.production"
    elif Path(".env").exists():
        return ".env"
    return None


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    This configuration works in multiple contexts:
    - Local development: Reads from .env or .env.production
    - Cloud deployment: Reads from injected environment variables
    - Docker: Reads from environment variables passed to container
    """

    model_config = SettingsConfigDict(
        env_file=get_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./contest_tracker.db"

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_TTL_SECONDS: int = 600  # 10 minutes
    UPCOMING_CACHE_KEY: str = "upcoming_contests"

    # Upstream contest platforms
    CODEFORCES_API_URL: str = "https://codeforces.com/api/contest.list"
    CODECHEF_API_URL: str = "https://www.codechef.com/api/list/contests/all"
    CODECHEF_PAST_API_URL: str = "https://www.codechef.com/api/list/contests/past"
    CODECHEF_PAGE_SIZE: int = 20
    LEETCODE_GRAPHQL_URL: str = "https://leetcode.com/graphql"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Solution videos (YouTube Data API v3)
    YOUTUBE_API_URL: str = "https://www.googleapis.com/youtube/v3/playlistItems"
    YOUTUBE_API_KEY: str | None = None
    YOUTUBE_PLAYLIST_IDS: list[str] = [
        "PLcXpkI9A-RZI6FhydNz3JBt_-p_i25Cbr",
        "PLcXpkI9A-RZIZ6lsE0KCcLWeKNoG45fYr",
        "PLcXpkI9A-RZLUfBSNp-YQBCOezZKbDSgB",
    ]

    # Background jobs
    SCHEDULER_ENABLED: bool = True
    REFRESH_INTERVAL_SECONDS: int = 600  # 10 minutes
    BACKFILL_STOP_AFTER: int = 3  # existing rows seen before a backfill gives up

    # Application URLs
    FRONTEND_URL: str = "http://localhost:5173"

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "production"
    DEBUG: bool = False

    # CORS
    @property
    def CORS_ORIGINS(self) -> list[str]:
        """Get allowed CORS origins"""
        origins = [self.FRONTEND_URL]
        if self.ENVIRONMENT == "development":
            origins.extend([
                "http://localhost:5173",
                "http://localhost:5174"
            ])
        return origins

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_READ: str = "120/minute"
    RATE_LIMIT_VOTE: str = "30/minute"


# Global settings instance
settings = Settings()
