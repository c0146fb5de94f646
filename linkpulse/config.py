from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = True

    # Application
    app_name: str = "LinkPulse"
    app_version: str = "1.0.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Database (links + click events)
    database_url: str = "sqlite:///./linkpulse.db"
    store_timeout: float = 5.0  # Seconds before a store call is abandoned

    # Aliases
    base_url: str = "http://127.0.0.1:8000"
    alias_length: int = 7
    max_alias_attempts: int = 5

    # Cache settings
    cache_backend: str = "redis"  # Options: "redis", "memory", "null"
    redis_url: str = "redis://localhost:6379/0"
    cache_socket_timeout: float = 2.0
    url_cache_ttl: int = 24 * 60 * 60  # Alias -> long URL (24 hours)
    analytics_cache_ttl: int = 5 * 60  # Rollups (5 minutes)

    # Analytics
    analytics_window_days: int = 7

    # Background click processing
    click_worker_count: int = 4
    click_queue_size: int = 10000

    # Click enrichment
    geoip_database_path: Optional[str] = None  # MaxMind GeoLite2-City .mmdb
    visitor_cookie_name: str = "visitorId"
    visitor_cookie_max_age: int = 365 * 24 * 60 * 60  # 1 year

    # Auth boundary (identity is verified upstream)
    owner_header: str = "X-Owner-Id"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
