"""
Application Configuration

Load settings from environment variables with validation.
"""

from functools import lru_cache
from typing import Optional
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""
    
    # Environment
    environment: str = "development"
    debug: bool = True
    
    # Database
    database_url: str = "sqlite+aiosqlite:///./anisync.db"
    
    # Admin key for the manual trigger endpoints (unset = open)
    admin_api_key: Optional[str] = None
    
    # HTTP
    http_timeout_seconds: float = 30.0
    user_agent: str = (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    )
    feed_fetch_retries: int = 3
    feed_fetch_retry_delay_seconds: float = 2.0
    
    # Worker pools
    source_workers: int = 3
    page_workers: int = 3
    
    # Scheduler
    scheduler_enabled: bool = True
    scheduler_tick_seconds: int = 60
    
    # Tracker recognition
    known_tracker_host: str = "mikanani"
    known_tracker_source: str = "mikan"
    
    # Download poster images and hash them for catalog merge hints
    poster_hashing: bool = False
    
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
